# app/modules/appointments/repository.py
"""
Storage access for appointments.

Every function runs in the caller's session/transaction. Writes that hit a
unique index are reported as SlotConflictError after rolling the session
back; other database failures become StorageError.
"""
from __future__ import annotations

from datetime import date, time
from typing import Any, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, delete, func, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.appointments.errors import SlotConflictError, StorageError
from app.modules.appointments.models import Appointment, ApptStatus

_SCHEDULED = ApptStatus.SCHEDULED.value


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    # psycopg exposes the SQLSTATE; SQLite only has the message
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    return "UNIQUE constraint failed" in str(orig)


async def _flush_or_raise(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        if _is_unique_violation(exc):
            raise SlotConflictError("slot_already_taken") from exc
        raise StorageError("integrity_error") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError("storage_failure") from exc


# ---- Reads ----

async def get_appointment(session: AsyncSession, appointment_id: UUID) -> Optional[Appointment]:
    return await session.get(Appointment, appointment_id)


async def list_scheduled_appointments(
    session: AsyncSession, *, doctor_id: UUID, on_date: date
) -> Sequence[Appointment]:
    """
    Scheduled rows of a doctor on one date: the only rows that block a slot.
    """
    stmt = (
        select(Appointment)
        .where(
            and_(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == on_date,
                Appointment.status == _SCHEDULED,
            )
        )
        .order_by(Appointment.appointment_time)
    )
    return (await session.execute(stmt)).scalars().all()


async def list_appointments(
    session: AsyncSession,
    *,
    patient_id: UUID,
    doctor_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> Sequence[Appointment]:
    stmt = select(Appointment).where(Appointment.patient_id == patient_id)
    if doctor_id is not None:
        stmt = stmt.where(Appointment.doctor_id == doctor_id)
    if status is not None:
        stmt = stmt.where(Appointment.status == status)
    stmt = stmt.order_by(Appointment.appointment_date, Appointment.appointment_time)
    return (await session.execute(stmt)).scalars().all()


async def find_scheduled_for_pair(
    session: AsyncSession, *, doctor_id: UUID, patient_id: UUID
) -> Optional[Appointment]:
    rows = await list_appointments(
        session, patient_id=patient_id, doctor_id=doctor_id, status=_SCHEDULED
    )
    return rows[0] if rows else None


async def find_scheduled_at_slot(
    session: AsyncSession,
    *,
    doctor_id: UUID,
    on_date: date,
    at_time: time,
    exclude_id: Optional[UUID] = None,
) -> Optional[Appointment]:
    stmt = select(Appointment).where(
        and_(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == on_date,
            Appointment.appointment_time == at_time,
            Appointment.status == _SCHEDULED,
        )
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return (await session.execute(stmt.limit(1))).scalars().first()


async def find_cancelled_appointment(
    session: AsyncSession, *, doctor_id: UUID, on_date: date, at_time: time
) -> Optional[Appointment]:
    stmt = (
        select(Appointment)
        .where(
            and_(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == on_date,
                Appointment.appointment_time == at_time,
                Appointment.status == ApptStatus.CANCELLED.value,
            )
        )
        .limit(1)
    )
    return (await session.execute(stmt)).scalars().first()


# ---- Writes ----

async def insert_appointment(session: AsyncSession, **fields: Any) -> Appointment:
    """
    Insert a scheduled appointment. Raises SlotConflictError when a unique
    index rejects it (someone else took the slot first).
    """
    appt = Appointment(status=_SCHEDULED, **fields)
    session.add(appt)
    await _flush_or_raise(session)
    await session.refresh(appt)
    return appt


async def update_appointment(
    session: AsyncSession, appointment_id: UUID, **fields: Any
) -> Appointment:
    appt = await session.get(Appointment, appointment_id)
    if appt is None:
        raise StorageError("appointment_vanished")
    for k, v in fields.items():
        setattr(appt, k, v)
    await _flush_or_raise(session)
    await session.refresh(appt)
    return appt


async def _delete_where(session: AsyncSession, cond) -> int:
    try:
        res = await session.execute(delete(Appointment).where(cond))
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StorageError("delete_failed") from exc
    return res.rowcount or 0  # type: ignore


async def delete_appointment(session: AsyncSession, appointment_id: UUID) -> int:
    return await _delete_where(session, Appointment.id == appointment_id)


async def delete_all_for_patient(session: AsyncSession, patient_id: UUID) -> int:
    return await _delete_where(session, Appointment.patient_id == patient_id)


async def delete_all_for_doctor(session: AsyncSession, doctor_id: UUID) -> int:
    return await _delete_where(session, Appointment.doctor_id == doctor_id)


# ---- Paging / stats ----

async def page_appointments(
    session: AsyncSession, cond, *, limit: int, offset: int, newest_first: bool = True
) -> Tuple[Sequence[Appointment], int]:
    total_stmt = select(func.count()).select_from(Appointment).where(cond)
    total = (await session.execute(total_stmt)).scalar_one()

    if newest_first:
        order = (Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
    else:
        order = (Appointment.appointment_date, Appointment.appointment_time)
    stmt = select(Appointment).where(cond).order_by(*order).limit(limit).offset(offset)
    rows = (await session.execute(stmt)).scalars().all()
    return rows, total


async def count_by_status(session: AsyncSession) -> dict[str, int]:
    stmt = select(Appointment.status, func.count()).group_by(Appointment.status)
    return {status: n for status, n in (await session.execute(stmt)).all()}


async def count_distinct_parties(session: AsyncSession) -> Tuple[int, int]:
    doctors = await session.execute(select(func.count(Appointment.doctor_id.distinct())))
    patients = await session.execute(select(func.count(Appointment.patient_id.distinct())))
    return doctors.scalar_one(), patients.scalar_one()


async def completed_revenue(session: AsyncSession):
    stmt = select(func.coalesce(func.sum(Appointment.price), 0)).where(
        Appointment.status == ApptStatus.COMPLETED.value
    )
    return (await session.execute(stmt)).scalar_one()
