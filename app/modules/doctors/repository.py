# app/modules/doctors/repository.py
from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.doctors.models import AvailabilityRule, Service


# ---- Availability rules ----

async def list_availability_rules(
    db: AsyncSession, *, doctor_id: UUID, active_only: bool = True
) -> Sequence[AvailabilityRule]:
    stmt = select(AvailabilityRule).where(AvailabilityRule.doctor_id == doctor_id)
    if active_only:
        stmt = stmt.where(AvailabilityRule.is_active.is_(True))
    rows = await db.execute(
        stmt.order_by(AvailabilityRule.day_of_week, AvailabilityRule.start_time)
    )
    return rows.scalars().all()


async def replace_availability_rules(
    db: AsyncSession, *, doctor_id: UUID, rules: Iterable[dict[str, Any]]
) -> Sequence[AvailabilityRule]:
    """
    Drop every rule of the doctor and insert the new set, in the caller's transaction.
    """
    await db.execute(delete(AvailabilityRule).where(AvailabilityRule.doctor_id == doctor_id))
    created = [AvailabilityRule(doctor_id=doctor_id, **fields) for fields in rules]
    db.add_all(created)
    await db.flush()
    return await list_availability_rules(db, doctor_id=doctor_id, active_only=False)


# ---- Services ----

async def get_service(db: AsyncSession, *, service_id: UUID) -> Optional[Service]:
    return await db.get(Service, service_id)


async def list_services(
    db: AsyncSession, *, doctor_id: UUID, active_only: bool = True
) -> Sequence[Service]:
    stmt = select(Service).where(Service.doctor_id == doctor_id)
    if active_only:
        stmt = stmt.where(Service.is_active.is_(True))
    rows = await db.execute(stmt.order_by(Service.name))
    return rows.scalars().all()


async def create_service(db: AsyncSession, *, doctor_id: UUID, **fields: Any) -> Service:
    svc = Service(doctor_id=doctor_id, is_active=True, **fields)
    db.add(svc)
    await db.flush()
    await db.refresh(svc)
    return svc


async def update_service(db: AsyncSession, svc: Service, **fields: Any) -> Service:
    for k, v in fields.items():
        if v is not None:
            setattr(svc, k, v)
    await db.flush()
    await db.refresh(svc)
    return svc
