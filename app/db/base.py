# app/db/base.py
"""
Declarative base and the column mixins shared by the booking tables:
availability_rules, services and appointments. audit_logs defines its own
key and timestamp.
"""
from __future__ import annotations

import datetime as dt
import uuid
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UUIDPKMixin:
    """Client-side uuid4 key, so a row's id is known before the INSERT."""

    id: Mapped[uuid.UUID] = mapped_column(default=uuid.uuid4, primary_key=True)


class TimestampMixin:
    # set by the database; refresh after flush to read them
    created_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )


class ReprMixin:
    """
    Column-by-column __repr__ for logs. Beneficiary contact data of an
    appointment booked for someone else never reaches a log line.
    """

    _masked = frozenset({"beneficiary_name", "beneficiary_phone"})

    def __repr__(self) -> str:
        parts: list[str] = []
        for key in self.__mapper__.c.keys():  # type: ignore[attr-defined]
            value: Any = getattr(self, key, None)
            if key in self._masked and value is not None:
                value = "***"
            parts.append(f"{key}={value!r}")
        return f"<{type(self).__name__} {' '.join(parts)}>"


__all__ = ["Base", "UUIDPKMixin", "TimestampMixin", "ReprMixin"]
