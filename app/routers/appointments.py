# app/routers/appointments.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.sql import get_session
from app.dependencies import get_current_actor, require_roles
from app.modules.users.schemas import Actor

from app.modules.appointments.schemas import (
    AppointmentListPage,
    AppointmentPublic,
    BookingOutcome,
    BookingRequest,
    BookingResult,
    BulkDeleteResult,
    RescheduleRequest,
)
from app.modules.appointments.booking import attempt_booking, reschedule_existing
from app.modules.appointments.lifecycle import (
    cancel_appointment,
    complete_appointment,
    delete_all_appointments,
    delete_appointment,
)
from app.modules.appointments.service import (
    list_my_appointments_svc,
    list_appointments_by_doctor_svc,
)
from app.modules.appointments.errors import (
    AppointmentNotFound,
    AuthorizationError,
    BookingValidationError,
    InvalidTransition,
    StorageError,
)

router = APIRouter(tags=["appointments"])

_OUTCOME_STATUS = {
    BookingOutcome.success: status.HTTP_201_CREATED,
    BookingOutcome.existing_appointment: status.HTTP_409_CONFLICT,
    BookingOutcome.slot_conflict: status.HTTP_409_CONFLICT,
    BookingOutcome.validation_error: status.HTTP_400_BAD_REQUEST,
    BookingOutcome.error: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_http(exc: Exception):
    if isinstance(exc, AppointmentNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    if isinstance(exc, AuthorizationError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc) or "forbidden")
    if isinstance(exc, InvalidTransition):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, BookingValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, StorageError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="could_not_complete")
    raise exc


# Implement /appointments/book (POST)
@router.post(
    "/appointments/book",
    response_model=BookingResult,
    summary="Book an appointment (or learn about the existing one)",
)
async def appointments_book(
    payload: BookingRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),  # Bearer required
):
    try:
        result = await attempt_booking(session, payload, actor)
    except AuthorizationError as e:
        _raise_http(e)
    response.status_code = _OUTCOME_STATUS[result.outcome]
    return result


# Implement /appointments/{id}/reschedule (PUT)
@router.put(
    "/appointments/{appointment_id}/reschedule",
    response_model=BookingResult,
    summary="Move an existing scheduled appointment to a new slot",
)
async def appointments_reschedule(
    appointment_id: UUID,
    payload: RescheduleRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    try:
        result = await reschedule_existing(session, appointment_id, payload, actor)
    except (AppointmentNotFound, AuthorizationError, InvalidTransition) as e:
        _raise_http(e)
    response.status_code = (
        status.HTTP_200_OK
        if result.outcome == BookingOutcome.success
        else _OUTCOME_STATUS[result.outcome]
    )
    return result


# Implement /appointments/my (GET)
@router.get(
    "/appointments/my",
    response_model=AppointmentListPage,
    summary="Retrieve current user's appointments",
)
async def appointments_my(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: str | None = Query(
        None, alias="status", pattern="^(scheduled|completed|cancelled)$"
    ),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return await list_my_appointments_svc(session, actor, limit, offset, status_filter)


# Implement /appointments/my (DELETE)
@router.delete(
    "/appointments/my",
    response_model=BulkDeleteResult,
    summary="Delete all of the current user's appointments",
)
async def appointments_delete_all(
    confirm: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return await delete_all_appointments(session, actor, confirmed=confirm)
    except (BookingValidationError, StorageError) as e:
        _raise_http(e)


# Implement /appointments/{id}/cancel (PUT)
@router.put(
    "/appointments/{appointment_id}/cancel",
    response_model=AppointmentPublic,
    summary="Cancel an appointment (patient or doctor party)",
)
async def appointments_cancel(
    appointment_id: UUID,
    confirm: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return await cancel_appointment(session, appointment_id, actor, confirmed=confirm)
    except (AppointmentNotFound, AuthorizationError, InvalidTransition, BookingValidationError, StorageError) as e:
        _raise_http(e)


# Implement /appointments/{id}/complete (PUT)
@router.put(
    "/appointments/{appointment_id}/complete",
    response_model=AppointmentPublic,
    summary="Mark an appointment completed (doctor party only)",
)
async def appointments_complete(
    appointment_id: UUID,
    confirm: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    try:
        return await complete_appointment(session, appointment_id, actor, confirmed=confirm)
    except (AppointmentNotFound, AuthorizationError, InvalidTransition, BookingValidationError, StorageError) as e:
        _raise_http(e)


# Implement /appointments/{id} (DELETE)
@router.delete(
    "/appointments/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a cancelled appointment from history (patient only)",
)
async def appointments_delete(
    appointment_id: UUID,
    confirm: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    try:
        await delete_appointment(session, appointment_id, actor, confirmed=confirm)
    except (AppointmentNotFound, AuthorizationError, InvalidTransition, BookingValidationError, StorageError) as e:
        _raise_http(e)
    return None


# Implement /appointments/doctor/{id} (GET)
@router.get(
    "/appointments/doctor/{doctor_id}",
    response_model=AppointmentListPage,
    summary="Doctor views their scheduled appointments",
)
async def appointments_for_doctor(
    doctor_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("doctor", "admin")),
):
    # If doctor, show their own schedule.
    if actor.is_doctor and actor.user_id != doctor_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="cannot_view_other_doctor_schedule",
        )

    return await list_appointments_by_doctor_svc(
        session,
        doctor_id=doctor_id,
        limit=limit,
        offset=offset,
    )
