# app/modules/appointments/booking.py
"""
Booking conflict resolution.

A booking attempt runs, in order:

1. beneficiary check (who the appointment is for)
2. existing-appointment check: a patient holds at most one scheduled
   appointment per doctor, so a second attempt is answered with the
   current one and the client offers Continue (abandon) or Reschedule
3. service / slot validation against the doctor's offer
4. commit: pre-check the slot, delete stale cancelled rows occupying it,
   then insert (or update in place, for a reschedule)

The partial unique indexes on appointments are the real guarantee; the
pre-checks only give earlier, friendlier answers. A unique violation at
commit is re-read and reported as existing_appointment or slot_conflict.
Nothing is written before step 4.
"""
from __future__ import annotations

import logging
from datetime import date, time
from typing import Awaitable, Callable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.appointments import repository as repo
from app.modules.appointments.errors import (
    AppointmentNotFound,
    AuthorizationError,
    BookingValidationError,
    InvalidTransition,
    SlotConflictError,
    StorageError,
)
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.appointments.schemas import (
    AppointmentPublic,
    BeneficiaryFields,
    BookingOutcome,
    BookingRequest,
    BookingResult,
    RescheduleRequest,
)
from app.modules.availability.service import is_slot_offered
from app.modules.doctors import repository as doctors_repo
from app.modules.doctors.models import Service
from app.modules.log import write_audit_log
from app.modules.users.schemas import Actor

logger = logging.getLogger(__name__)

_BENEFICIARY_FIELDS = frozenset(BeneficiaryFields.model_fields)


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


def _invalid(message: str) -> BookingResult:
    return BookingResult(outcome=BookingOutcome.validation_error, message=message)


def resolve_beneficiary(req: BeneficiaryFields) -> dict:
    """
    Columns Commit will write for the beneficiary.
    Raises BookingValidationError when booking for someone else without
    both a name and a phone.
    """
    if req.is_for_self:
        return {"is_for_self": True, "beneficiary_name": None, "beneficiary_phone": None}

    name = (req.beneficiary_name or "").strip()
    phone = (req.beneficiary_phone or "").strip()
    if not name or not phone:
        raise BookingValidationError("beneficiary_name_and_phone_required")
    return {"is_for_self": False, "beneficiary_name": name, "beneficiary_phone": phone}


async def _bookable_service(
    session: AsyncSession, service_id: UUID, doctor_id: UUID
) -> Optional[Service]:
    svc = await doctors_repo.get_service(session, service_id=service_id)
    if svc is None or not svc.is_active or svc.doctor_id != doctor_id:
        return None
    return svc


async def _purge_cancelled(
    session: AsyncSession, doctor_id: UUID, on_date: date, at_time: time
) -> int:
    """
    Delete stale cancelled rows sitting on the target slot (resurrection).
    """
    purged = 0
    while True:
        stale = await repo.find_cancelled_appointment(
            session, doctor_id=doctor_id, on_date=on_date, at_time=at_time
        )
        if stale is None:
            return purged
        if not await repo.delete_appointment(session, stale.id):
            return purged
        purged += 1


async def _classify_conflict(
    session: AsyncSession,
    doctor_id: UUID,
    patient_id: UUID,
    exclude_id: Optional[UUID],
) -> BookingResult:
    # The session was rolled back; read the state that won the race
    existing = await repo.find_scheduled_for_pair(
        session, doctor_id=doctor_id, patient_id=patient_id
    )
    if existing is not None and existing.id != exclude_id:
        return BookingResult(
            outcome=BookingOutcome.existing_appointment,
            appointment=_to_public(existing),
        )
    return BookingResult(outcome=BookingOutcome.slot_conflict, message="slot_already_taken")


async def _commit_to_slot(
    session: AsyncSession,
    *,
    actor: Actor,
    doctor_id: UUID,
    patient_id: UUID,
    on_date: date,
    at_time: time,
    write: Callable[[], Awaitable[Appointment]],
    action: str,
    exclude_id: Optional[UUID] = None,
) -> BookingResult:
    try:
        taken = await repo.find_scheduled_at_slot(
            session,
            doctor_id=doctor_id,
            on_date=on_date,
            at_time=at_time,
            exclude_id=exclude_id,
        )
        if taken is not None:
            logger.info("Slot %s %s of doctor %s already taken", on_date, at_time, doctor_id)
            return BookingResult(outcome=BookingOutcome.slot_conflict, message="slot_already_taken")

        purged = await _purge_cancelled(session, doctor_id, on_date, at_time)
        if purged:
            logger.info("Removed %d cancelled row(s) from slot %s %s", purged, on_date, at_time)

        appt = await write()
        await write_audit_log(
            session,
            actor.user_id,
            action,
            f"appointment={appt.id} doctor={doctor_id} at={on_date.isoformat()} {at_time.strftime('%H:%M')}",
        )
    except SlotConflictError:
        logger.warning(
            "Unique index rejected %s for doctor %s at %s %s",
            action, doctor_id, on_date, at_time,
        )
        try:
            return await _classify_conflict(session, doctor_id, patient_id, exclude_id)
        except SQLAlchemyError:
            logger.exception("Could not re-read state after conflict")
            return BookingResult(outcome=BookingOutcome.slot_conflict, message="slot_already_taken")
    except (StorageError, SQLAlchemyError):
        logger.exception("%s failed for doctor %s at %s %s", action, doctor_id, on_date, at_time)
        await session.rollback()
        return BookingResult(outcome=BookingOutcome.error, message="booking_failed")

    return BookingResult(outcome=BookingOutcome.success, appointment=_to_public(appt))


async def attempt_booking(
    session: AsyncSession,
    request: BookingRequest,
    actor: Actor,
    today: Optional[date] = None,
) -> BookingResult:
    """
    Book a new appointment for the actor (the patient party).

    Raises AuthorizationError for admins; every other outcome is returned
    as a BookingResult.
    """
    if actor.is_admin:
        raise AuthorizationError("admins_cannot_book")
    if request.doctor_id == actor.user_id:
        return _invalid("cannot_book_with_self")

    try:
        beneficiary = resolve_beneficiary(request)
    except BookingValidationError as exc:
        return _invalid(str(exc))

    existing = await repo.find_scheduled_for_pair(
        session, doctor_id=request.doctor_id, patient_id=actor.user_id
    )
    if existing is not None:
        logger.info(
            "Patient %s already has appointment %s with doctor %s",
            actor.user_id, existing.id, request.doctor_id,
        )
        return BookingResult(
            outcome=BookingOutcome.existing_appointment,
            appointment=_to_public(existing),
        )

    service = await _bookable_service(session, request.service_id, request.doctor_id)
    if service is None:
        return _invalid("service_not_offered")

    if not await is_slot_offered(
        session, request.doctor_id, request.appointment_date, request.appointment_time, today
    ):
        return _invalid("slot_not_offered")

    async def _insert() -> Appointment:
        return await repo.insert_appointment(
            session,
            doctor_id=request.doctor_id,
            patient_id=actor.user_id,
            service_id=service.id,
            appointment_date=request.appointment_date,
            appointment_time=request.appointment_time,
            price=service.price,
            **beneficiary,
        )

    return await _commit_to_slot(
        session,
        actor=actor,
        doctor_id=request.doctor_id,
        patient_id=actor.user_id,
        on_date=request.appointment_date,
        at_time=request.appointment_time,
        write=_insert,
        action="BOOK_APPOINTMENT",
    )


async def reschedule_existing(
    session: AsyncSession,
    appointment_id: UUID,
    request: RescheduleRequest,
    actor: Actor,
    today: Optional[date] = None,
) -> BookingResult:
    """
    Move the patient's scheduled appointment to a new date/time in place.
    The row keeps its id, its service unless another one is given, and its
    beneficiary unless the request sends beneficiary fields.
    """
    appt = await repo.get_appointment(session, appointment_id)
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")
    if appt.patient_id != actor.user_id:
        raise AuthorizationError("not_owner")
    if appt.status != ApptStatus.SCHEDULED.value:
        raise InvalidTransition("only_scheduled_can_be_rescheduled")

    # Beneficiary columns change only when the request names them
    fields: dict = {}
    if request.model_fields_set & _BENEFICIARY_FIELDS:
        try:
            fields = resolve_beneficiary(request)
        except BookingValidationError as exc:
            return _invalid(str(exc))

    doctor_id, patient_id = appt.doctor_id, appt.patient_id
    if request.service_id is not None and request.service_id != appt.service_id:
        service = await _bookable_service(session, request.service_id, doctor_id)
        if service is None:
            return _invalid("service_not_offered")
        fields.update(service_id=service.id, price=service.price)

    if not await is_slot_offered(
        session, doctor_id, request.appointment_date, request.appointment_time, today
    ):
        return _invalid("slot_not_offered")

    fields.update(
        appointment_date=request.appointment_date,
        appointment_time=request.appointment_time,
    )

    async def _update() -> Appointment:
        return await repo.update_appointment(session, appointment_id, **fields)

    return await _commit_to_slot(
        session,
        actor=actor,
        doctor_id=doctor_id,
        patient_id=patient_id,
        on_date=request.appointment_date,
        at_time=request.appointment_time,
        write=_update,
        action="RESCHEDULE_APPOINTMENT",
        exclude_id=appointment_id,
    )
