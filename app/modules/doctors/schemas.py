# app/modules/doctors/schemas.py
from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator


def _minute_precision(v: time) -> time:
    if v.second or v.microsecond:
        raise ValueError("time must be HH:MM (no seconds)")
    return v.replace(tzinfo=None)


class AvailabilityRuleIn(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday .. 6 = Saturday")
    start_time: time = Field(..., description="HH:MM local time")
    end_time: time = Field(..., description="HH:MM local time")
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _no_seconds(cls, v: time) -> time:
        return _minute_precision(v)

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time must be after start_time")
        return v


class WeeklyScheduleIn(BaseModel):
    """
    Whole weekly schedule; saving replaces every existing rule of the doctor.
    """
    rules: List[AvailabilityRuleIn] = Field(default_factory=list, max_length=100)


class AvailabilityRulePublic(BaseModel):
    id: UUID
    doctor_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool

    class Config:
        from_attributes = True

    @field_serializer("start_time", "end_time")
    def _hhmm(self, v: time) -> str:
        return v.strftime("%H:%M")


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(default=30, gt=0, le=600, description="Minutes")


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(default=None, gt=0, le=600)
    is_active: Optional[bool] = None


class ServicePublic(BaseModel):
    id: UUID
    doctor_id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: int
    is_active: bool

    class Config:
        from_attributes = True
