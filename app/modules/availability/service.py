# app/modules/availability/service.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.appointments import repository as appt_repo
from app.modules.availability.generator import generate_available_dates, is_offered_date
from app.modules.availability.slots import SlotEnumerator, format_hhmm
from app.modules.doctors import repository as doctors_repo


def _enumerator(rules) -> SlotEnumerator:
    return SlotEnumerator.for_rules(
        rules,
        settings.DEFAULT_SLOT_CATALOG,
        settings.SLOT_INTERVAL_MINUTES,
    )


async def get_available_dates(
    session: AsyncSession, doctor_id: UUID, today: Optional[date] = None
) -> List[str]:
    rules = await doctors_repo.list_availability_rules(session, doctor_id=doctor_id)
    return generate_available_dates(
        rules, today or date.today(), settings.BOOKING_HORIZON_DAYS
    )


async def get_available_times(
    session: AsyncSession, doctor_id: UUID, on_date: date, today: Optional[date] = None
) -> List[str]:
    """
    Free HH:MM slots for the doctor on `on_date`.
    Only scheduled appointments block a slot. A date the calendar does not
    offer (today, the past, beyond the horizon, a day off) has no slots.
    """
    rules = await doctors_repo.list_availability_rules(session, doctor_id=doctor_id)
    if not is_offered_date(rules, on_date, today or date.today(), settings.BOOKING_HORIZON_DAYS):
        return []
    booked = await appt_repo.list_scheduled_appointments(
        session, doctor_id=doctor_id, on_date=on_date
    )
    return _enumerator(rules).available((a.appointment_time for a in booked), on_date)


async def is_slot_offered(
    session: AsyncSession,
    doctor_id: UUID,
    on_date: date,
    at_time,
    today: Optional[date] = None,
) -> bool:
    """
    Whether (date, time) is part of the doctor's offer at all, bookings ignored.
    """
    rules = await doctors_repo.list_availability_rules(session, doctor_id=doctor_id)
    if not is_offered_date(rules, on_date, today or date.today(), settings.BOOKING_HORIZON_DAYS):
        return False
    return format_hhmm(at_time) in _enumerator(rules).offered(on_date)
