# app/modules/doctors/models.py
from __future__ import annotations

import uuid
from datetime import time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Time,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class AvailabilityRule(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One recurring weekly block a doctor is open for appointments.
    day_of_week is Sunday-indexed: 0 = Sunday .. 6 = Saturday.
    """

    __tablename__ = "availability_rules"

    doctor_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_rule_time_order"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_rule_day_of_week"),
        Index("ix_rule_doctor_day", "doctor_id", "day_of_week"),
    )


class Service(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A procedure a doctor offers. Its price is copied onto appointments at booking time.
    """

    __tablename__ = "services"

    doctor_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_service_price_positive"),
        CheckConstraint("duration > 0", name="ck_service_duration_positive"),
    )
