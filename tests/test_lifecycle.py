import uuid
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from conftest import TODAY, hm
from app.modules.appointments import repository as repo
from app.modules.appointments.booking import attempt_booking
from app.modules.appointments.errors import (
    AppointmentNotFound,
    AuthorizationError,
    BookingValidationError,
    InvalidTransition,
    StorageError,
)
from app.modules.appointments.lifecycle import (
    cancel_appointment,
    complete_appointment,
    delete_all_appointments,
    delete_appointment,
)
from app.modules.appointments.schemas import BookingOutcome, BookingRequest
from app.modules.appointments.service import appointment_stats_svc, list_my_appointments_svc
from app.modules.availability.service import get_available_times
from app.modules.doctors.models import Service
from app.modules.log import write_audit_log
from app.modules.users.schemas import Actor, Role

DAY = date(2025, 6, 10)


@pytest.fixture
def booked(session, doctor, patient, service):
    async def _book(at="09:00", who=None):
        req = BookingRequest(
            doctor_id=doctor.user_id,
            service_id=service.id,
            appointment_date=DAY,
            appointment_time=hm(at),
        )
        result = await attempt_booking(session, req, who or patient, today=TODAY)
        await session.commit()
        assert result.outcome == BookingOutcome.success
        return result.appointment

    return _book


async def book_with_colleague(session, doctor):
    """The doctor is also a patient of a colleague."""
    colleague = Actor(user_id=uuid.uuid4(), role=Role.doctor)
    svc = Service(doctor_id=colleague.user_id, name="Retorno", price=80, duration=30, is_active=True)
    session.add(svc)
    await session.commit()
    req = BookingRequest(
        doctor_id=colleague.user_id, service_id=svc.id, appointment_date=DAY, appointment_time=hm("15:00")
    )
    result = await attempt_booking(session, req, doctor, today=TODAY)
    await session.commit()
    assert result.outcome == BookingOutcome.success
    return result.appointment


@pytest.mark.asyncio
async def test_cancel_frees_slot(session, doctor, patient, booked):
    # P3
    appt = await booked("09:00")
    assert "09:00" not in await get_available_times(session, doctor.user_id, DAY, today=TODAY)

    cancelled = await cancel_appointment(session, appt.id, patient, confirmed=True)
    await session.commit()

    assert cancelled.status == "cancelled"
    assert "09:00" in await get_available_times(session, doctor.user_id, DAY, today=TODAY)


@pytest.mark.asyncio
async def test_doctor_can_cancel_and_cancel_is_idempotent(session, doctor, booked):
    appt = await booked()
    first = await cancel_appointment(session, appt.id, doctor, confirmed=True)
    again = await cancel_appointment(session, appt.id, doctor, confirmed=True)
    assert first.status == again.status == "cancelled"


@pytest.mark.asyncio
async def test_stranger_cannot_cancel(session, other_patient, booked):
    appt = await booked()
    with pytest.raises(AuthorizationError):
        await cancel_appointment(session, appt.id, other_patient, confirmed=True)


@pytest.mark.asyncio
async def test_transitions_need_confirmation(session, doctor, patient, booked):
    appt = await booked()
    with pytest.raises(BookingValidationError):
        await cancel_appointment(session, appt.id, patient)
    with pytest.raises(BookingValidationError):
        await complete_appointment(session, appt.id, doctor)


@pytest.mark.asyncio
async def test_only_doctor_completes(session, doctor, patient, booked):
    appt = await booked()
    with pytest.raises(AuthorizationError):
        await complete_appointment(session, appt.id, patient, confirmed=True)

    done = await complete_appointment(session, appt.id, doctor, confirmed=True)
    assert done.status == "completed"


@pytest.mark.asyncio
async def test_other_doctor_cannot_complete(session, booked):
    appt = await booked()
    someone = Actor(user_id=uuid.uuid4(), role=Role.doctor)
    with pytest.raises(AuthorizationError):
        await complete_appointment(session, appt.id, someone, confirmed=True)


@pytest.mark.asyncio
async def test_completed_is_terminal(session, doctor, patient, booked):
    appt = await booked()
    await complete_appointment(session, appt.id, doctor, confirmed=True)
    with pytest.raises(InvalidTransition):
        await cancel_appointment(session, appt.id, patient, confirmed=True)
    with pytest.raises(InvalidTransition):
        await complete_appointment(session, appt.id, doctor, confirmed=True)


@pytest.mark.asyncio
async def test_completed_slot_does_not_block(session, doctor, booked):
    appt = await booked("10:00")
    await complete_appointment(session, appt.id, doctor, confirmed=True)
    await session.commit()
    assert "10:00" in await get_available_times(session, doctor.user_id, DAY, today=TODAY)


@pytest.mark.asyncio
async def test_delete_only_cancelled_by_patient(session, doctor, patient, booked, count_rows):
    appt = await booked()
    with pytest.raises(InvalidTransition):
        await delete_appointment(session, appt.id, patient, confirmed=True)

    await cancel_appointment(session, appt.id, doctor, confirmed=True)
    with pytest.raises(AuthorizationError):
        await delete_appointment(session, appt.id, doctor, confirmed=True)

    await delete_appointment(session, appt.id, patient, confirmed=True)
    await session.commit()
    assert await count_rows() == 0

    with pytest.raises(AppointmentNotFound):
        await delete_appointment(session, appt.id, patient, confirmed=True)


@pytest.mark.asyncio
async def test_bulk_delete_patient_side(session, patient, other_patient, booked, count_rows):
    await booked("09:00")
    await booked("10:00", who=other_patient)

    result = await delete_all_appointments(session, patient, confirmed=True)
    await session.commit()

    assert result.patient_side == 1
    assert result.doctor_side == 0
    assert await count_rows() == 1


@pytest.mark.asyncio
async def test_bulk_delete_doctor_covers_both_sides(session, doctor, patient, other_patient, booked, count_rows):
    await booked("09:00")
    await booked("10:00", who=other_patient)

    await book_with_colleague(session, doctor)

    result = await delete_all_appointments(session, doctor, confirmed=True)
    await session.commit()

    assert result.patient_side == 1
    assert result.doctor_side == 2
    assert await count_rows() == 0


@pytest.mark.asyncio
async def test_listing_and_stats(session, doctor, patient, other_patient, booked):
    first = await booked("09:00")
    await booked("10:00", who=other_patient)
    await complete_appointment(session, first.id, doctor, confirmed=True)
    await session.commit()

    mine = await list_my_appointments_svc(session, patient, limit=10, offset=0)
    assert mine.total == 1 and mine.items[0].status == "completed"

    theirs = await list_my_appointments_svc(session, doctor, limit=1, offset=0)
    assert theirs.total == 2 and theirs.has_next is True

    stats = await appointment_stats_svc(session)
    assert stats.total == 2
    assert stats.by_status == {"scheduled": 1, "completed": 1, "cancelled": 0}
    assert stats.doctors == 1 and stats.patients == 2
    assert stats.completed_revenue == 150


@pytest.mark.asyncio
async def test_bulk_delete_failure_removes_nothing(session, doctor, patient, booked, count_rows, monkeypatch):
    await booked("09:00")
    await book_with_colleague(session, doctor)

    async def _broken(*args, **kwargs):
        raise StorageError("delete_failed")

    monkeypatch.setattr(repo, "delete_all_for_doctor", _broken)
    with pytest.raises(StorageError, match="bulk_delete_failed"):
        await delete_all_appointments(session, doctor, confirmed=True)

    # the patient side ran first and was rolled back with the rest
    assert await count_rows(patient_id=doctor.user_id) == 1
    assert await count_rows(doctor_id=doctor.user_id) == 1
    assert await count_rows() == 2


@pytest.mark.asyncio
async def test_delete_helpers_raise_storage_error(session, doctor, patient, booked, monkeypatch):
    appt = await booked()

    async def _execute(*args, **kwargs):
        raise OperationalError("DELETE FROM appointments", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "execute", _execute)
    with pytest.raises(StorageError):
        await repo.delete_appointment(session, appt.id)
    with pytest.raises(StorageError):
        await repo.delete_all_for_patient(session, patient.user_id)
    with pytest.raises(StorageError):
        await write_audit_log(session, patient.user_id, "CANCEL_APPOINTMENT")
