# app/modules/appointments/schemas.py
from __future__ import annotations

from datetime import date, time, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator


def _hhmm_only(v: time) -> time:
    if v.second or v.microsecond:
        raise ValueError("appointment_time must be HH:MM (no seconds)")
    return v.replace(tzinfo=None)


class BeneficiaryFields(BaseModel):
    """
    Who the appointment is for. Completeness is checked by the booking
    service (a validation outcome), not here, so the caller gets a prompt.
    """
    is_for_self: bool = True
    beneficiary_name: Optional[str] = Field(default=None, max_length=120)
    beneficiary_phone: Optional[str] = Field(default=None, max_length=32)


class BookingRequest(BeneficiaryFields):
    """
    Payload to book an appointment.
    - patient_id is taken from the authenticated actor, never from the client.
    - price is snapshotted from the service, never from the client.
    """
    doctor_id: UUID
    service_id: UUID
    appointment_date: date
    appointment_time: time = Field(..., description="HH:MM, 24-hour")

    @field_validator("appointment_time")
    @classmethod
    def _no_seconds(cls, v: time) -> time:
        return _hhmm_only(v)


class RescheduleRequest(BeneficiaryFields):
    """
    Move an existing scheduled appointment in place (same id).
    service_id is optional; when it changes the price is snapshotted again.
    """
    appointment_date: date
    appointment_time: time = Field(..., description="HH:MM, 24-hour")
    service_id: Optional[UUID] = None

    @field_validator("appointment_time")
    @classmethod
    def _no_seconds(cls, v: time) -> time:
        return _hhmm_only(v)


class AppointmentPublic(BaseModel):
    """
    DTO returns a detailed appointment.
    """
    id: UUID
    doctor_id: UUID
    patient_id: UUID
    service_id: UUID
    appointment_date: date
    appointment_time: time
    status: str
    price: Decimal
    is_for_self: bool
    beneficiary_name: Optional[str] = None
    beneficiary_phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("appointment_time")
    def _hhmm(self, v: time) -> str:
        return v.strftime("%H:%M")


class AppointmentListItem(BaseModel):
    """
    Used for lists
    """
    id: UUID
    doctor_id: UUID
    patient_id: UUID
    service_id: UUID
    appointment_date: date
    appointment_time: time
    status: str
    price: Decimal
    is_for_self: bool
    beneficiary_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("appointment_time")
    def _hhmm(self, v: time) -> str:
        return v.strftime("%H:%M")


class AppointmentListPage(BaseModel):
    """
    Page the appointments list (with pagination).
    """
    items: List[AppointmentListItem]
    total: int
    limit: int
    offset: int
    has_next: bool


class BookingOutcome(str, Enum):
    success = "success"
    existing_appointment = "existing_appointment"
    slot_conflict = "slot_conflict"
    validation_error = "validation_error"
    error = "error"


class BookingResult(BaseModel):
    """
    Discriminated result of a booking or reschedule attempt.
    - success: `appointment` is the booked row
    - existing_appointment: `appointment` is the patient's current scheduled row
      with this doctor; the client offers Continue (abandon) or Reschedule
    - slot_conflict: the time was taken, pick another one
    - validation_error / error: `message` says why
    """
    outcome: BookingOutcome
    appointment: Optional[AppointmentPublic] = None
    message: Optional[str] = None


class BulkDeleteResult(BaseModel):
    patient_side: int
    doctor_side: int


class AppointmentStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    doctors: int
    patients: int
    completed_revenue: Decimal
