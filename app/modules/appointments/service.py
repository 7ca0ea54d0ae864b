# app/modules/appointments/service.py
from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import true
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.appointments import repository as repo
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.appointments.schemas import (
    AppointmentListItem,
    AppointmentListPage,
    AppointmentStats,
)
from app.modules.users.schemas import Actor


def _to_list_item(appt: Appointment) -> AppointmentListItem:
    return AppointmentListItem.model_validate(appt)


def _page(rows, total: int, limit: int, offset: int) -> AppointmentListPage:
    return AppointmentListPage(
        items=[_to_list_item(a) for a in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )


# MY APPOINTMENTS
async def list_my_appointments_svc(
    session: AsyncSession,
    actor: Actor,
    limit: int,
    offset: int,
    status: str | None = None,
) -> AppointmentListPage:
    """
    Get appointments for the current actor.
    - patient => appointments where actor is patient
    - doctor => appointments where actor is doctor or patient
    - admin => all
    """
    if actor.is_patient:
        cond = Appointment.patient_id == actor.user_id
    elif actor.is_doctor:
        cond = (Appointment.doctor_id == actor.user_id) | (Appointment.patient_id == actor.user_id)
    else:  # admin
        cond = true()

    if status is not None:
        cond = cond & (Appointment.status == status)

    rows, total = await repo.page_appointments(session, cond, limit=limit, offset=offset)
    return _page(rows, total, limit, offset)


# DOCTOR VIEW SCHEDULED
async def list_appointments_by_doctor_svc(
    session: AsyncSession,
    doctor_id: UUID,
    limit: int,
    offset: int,
) -> AppointmentListPage:
    """
    Get the scheduled appointments of one doctor, soonest first.
    Admin or the doctor himself will call this endpoint (router checks permissions).
    """
    cond = (
        (Appointment.doctor_id == doctor_id)
        & (Appointment.status == ApptStatus.SCHEDULED.value)
    )
    rows, total = await repo.page_appointments(
        session, cond, limit=limit, offset=offset, newest_first=False
    )
    return _page(rows, total, limit, offset)


# ADMIN STATS
async def appointment_stats_svc(session: AsyncSession) -> AppointmentStats:
    by_status = {s.value: 0 for s in ApptStatus}
    by_status.update(await repo.count_by_status(session))
    doctors, patients = await repo.count_distinct_parties(session)
    revenue = await repo.completed_revenue(session)
    return AppointmentStats(
        total=sum(by_status.values()),
        by_status=by_status,
        doctors=doctors,
        patients=patients,
        completed_revenue=Decimal(str(revenue)),
    )
