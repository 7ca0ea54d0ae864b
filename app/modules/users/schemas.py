# app/modules/users/schemas.py
from __future__ import annotations

from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


class Actor(BaseModel):
    """
    Authenticated caller, as asserted by the identity provider's token.
    Passed explicitly into every booking and lifecycle operation.
    """
    user_id: UUID
    role: Role

    @property
    def is_doctor(self) -> bool:
        return self.role == Role.doctor

    @property
    def is_patient(self) -> bool:
        return self.role == Role.patient

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin
