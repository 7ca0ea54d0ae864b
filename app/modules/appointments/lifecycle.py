# app/modules/appointments/lifecycle.py
"""
Status transitions of a single appointment.

    scheduled --complete (doctor party)--> completed
    scheduled --cancel (either party)----> cancelled --delete (patient party)--> (gone)

completed is terminal. There is no way back from cancelled to scheduled;
the slot itself becomes bookable again as soon as the row is cancelled.
"""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.appointments import repository as repo
from app.modules.appointments.errors import (
    AppointmentNotFound,
    AuthorizationError,
    BookingValidationError,
    InvalidTransition,
    StorageError,
)
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.appointments.schemas import AppointmentPublic, BulkDeleteResult
from app.modules.log import write_audit_log
from app.modules.users.schemas import Actor

logger = logging.getLogger(__name__)


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


def is_doctor_party(appt: Appointment, actor: Actor) -> bool:
    return actor.is_doctor and appt.doctor_id == actor.user_id


def is_patient_party(appt: Appointment, actor: Actor) -> bool:
    return appt.patient_id == actor.user_id


async def _load(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appt = await repo.get_appointment(session, appointment_id)
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")
    return appt


def _require_confirmation(confirmed: bool) -> None:
    if not confirmed:
        raise BookingValidationError("confirmation_required")


async def _set_status(
    session: AsyncSession, appt: Appointment, status: ApptStatus, actor: Actor, action: str
) -> AppointmentPublic:
    appointment_id = appt.id
    updated = await repo.update_appointment(session, appointment_id, status=status.value)
    await write_audit_log(session, actor.user_id, action, f"appointment={appointment_id}")
    logger.info("Appointment %s -> %s by %s", appointment_id, status.value, actor.user_id)
    return _to_public(updated)


async def complete_appointment(
    session: AsyncSession, appointment_id: UUID, actor: Actor, confirmed: bool = False
) -> AppointmentPublic:
    """
    Doctor marks the appointment as done. Only from scheduled.
    """
    appt = await _load(session, appointment_id)
    if not is_doctor_party(appt, actor):
        raise AuthorizationError("only_the_doctor_can_complete")
    _require_confirmation(confirmed)
    if appt.status != ApptStatus.SCHEDULED.value:
        raise InvalidTransition(f"cannot_complete_{appt.status}")
    return await _set_status(session, appt, ApptStatus.COMPLETED, actor, "COMPLETE_APPOINTMENT")


async def cancel_appointment(
    session: AsyncSession, appointment_id: UUID, actor: Actor, confirmed: bool = False
) -> AppointmentPublic:
    """
    Either party cancels:
    - patient can only cancel his own appointment
    - doctor can only cancel appointments in which he is the doctor
    Cancelling twice is idempotent; a completed appointment cannot be cancelled.
    """
    appt = await _load(session, appointment_id)
    if not (is_patient_party(appt, actor) or is_doctor_party(appt, actor)):
        raise AuthorizationError("not_owner")
    _require_confirmation(confirmed)

    # If canceled, it can be considered idempotent and returned immediately.
    if appt.status == ApptStatus.CANCELLED.value:
        return _to_public(appt)
    if appt.status != ApptStatus.SCHEDULED.value:
        raise InvalidTransition(f"cannot_cancel_{appt.status}")
    return await _set_status(session, appt, ApptStatus.CANCELLED, actor, "CANCEL_APPOINTMENT")


async def delete_appointment(
    session: AsyncSession, appointment_id: UUID, actor: Actor, confirmed: bool = False
) -> None:
    """
    Patient removes a cancelled appointment from their history. Irreversible.
    """
    appt = await _load(session, appointment_id)
    if not is_patient_party(appt, actor):
        raise AuthorizationError("only_the_patient_can_delete")
    _require_confirmation(confirmed)
    if appt.status != ApptStatus.CANCELLED.value:
        raise InvalidTransition("only_cancelled_can_be_deleted")

    await repo.delete_appointment(session, appointment_id)
    await write_audit_log(session, actor.user_id, "DELETE_APPOINTMENT", f"appointment={appointment_id}")


async def delete_all_appointments(
    session: AsyncSession, actor: Actor, confirmed: bool = False
) -> BulkDeleteResult:
    """
    Privacy cleanup: delete every appointment where the actor is the patient,
    and, for doctors, every appointment where they are the doctor.

    Both deletes share one transaction: either both sides are gone or neither.
    """
    _require_confirmation(confirmed)
    try:
        patient_side = await repo.delete_all_for_patient(session, actor.user_id)
        doctor_side = 0
        if actor.is_doctor:
            doctor_side = await repo.delete_all_for_doctor(session, actor.user_id)
        await write_audit_log(
            session,
            actor.user_id,
            "DELETE_ALL_APPOINTMENTS",
            f"patient_side={patient_side} doctor_side={doctor_side}",
        )
        await session.flush()
    except (StorageError, SQLAlchemyError) as exc:
        logger.exception("Bulk delete failed for %s; nothing removed", actor.user_id)
        await session.rollback()
        raise StorageError("bulk_delete_failed") from exc

    return BulkDeleteResult(patient_side=patient_side, doctor_side=doctor_side)
