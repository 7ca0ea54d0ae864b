# app/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import date, time
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    Time,
    Numeric,
    String,
    ForeignKey,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class ApptStatus(PyEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_SCHEDULED_ONLY = text("status = 'scheduled'")

# Constraint names, also used to classify IntegrityErrors
UQ_SLOT = "uq_appt_scheduled_slot"
UQ_PAIR = "uq_appt_scheduled_doctor_patient"


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One engagement between a doctor and a patient (or a beneficiary booked by
    the patient) for a service at a date and time.

    doctor_id / patient_id come from the identity provider.
    price is a snapshot of the service price at booking time.
    """

    __tablename__ = "appointments"

    doctor_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    patient_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[time] = mapped_column(Time, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApptStatus.SCHEDULED.value,
        server_default=ApptStatus.SCHEDULED.value,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    is_for_self: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    beneficiary_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    beneficiary_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="ck_appt_status_valid",
        ),
        CheckConstraint(
            "is_for_self OR (beneficiary_name IS NOT NULL AND beneficiary_phone IS NOT NULL)",
            name="ck_appt_beneficiary_complete",
        ),
        # No double booking: one scheduled row per doctor/date/time
        Index(
            UQ_SLOT,
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            postgresql_where=_SCHEDULED_ONLY,
            sqlite_where=_SCHEDULED_ONLY,
        ),
        # One active appointment per doctor/patient pair
        Index(
            UQ_PAIR,
            "doctor_id", "patient_id",
            unique=True,
            postgresql_where=_SCHEDULED_ONLY,
            sqlite_where=_SCHEDULED_ONLY,
        ),
        Index("ix_appt_doctor_date_time", "doctor_id", "appointment_date", "appointment_time"),
        Index("ix_appt_patient_date", "patient_id", "appointment_date"),
    )
