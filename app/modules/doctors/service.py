# app/modules/doctors/service.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.doctors import repository as repo
from app.modules.doctors.schemas import (
    AvailabilityRulePublic,
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    WeeklyScheduleIn,
)
from app.modules.log import write_audit_log
from app.modules.users.schemas import Actor

logger = logging.getLogger(__name__)


# Service-level errors (map them to HTTP in the router)
class ServiceNotFound(Exception):
    pass


class NotServiceOwner(Exception):
    pass


async def get_weekly_schedule(
    session: AsyncSession, doctor_id: UUID
) -> List[AvailabilityRulePublic]:
    rules = await repo.list_availability_rules(session, doctor_id=doctor_id)
    return [AvailabilityRulePublic.model_validate(r) for r in rules]


async def replace_weekly_schedule(
    session: AsyncSession, payload: WeeklyScheduleIn, actor: Actor
) -> List[AvailabilityRulePublic]:
    """
    Save the doctor's whole weekly schedule.
    Overlapping rules are accepted; slot enumeration de-duplicates them.
    """
    rules = await repo.replace_availability_rules(
        session,
        doctor_id=actor.user_id,
        rules=[r.model_dump() for r in payload.rules],
    )
    await write_audit_log(
        session, actor.user_id, "REPLACE_AVAILABILITY", f"rules={len(payload.rules)}"
    )
    return [AvailabilityRulePublic.model_validate(r) for r in rules]


async def list_doctor_services(session: AsyncSession, doctor_id: UUID) -> List[ServicePublic]:
    services = await repo.list_services(session, doctor_id=doctor_id)
    return [ServicePublic.model_validate(s) for s in services]


async def create_service_svc(
    session: AsyncSession, payload: ServiceCreate, actor: Actor
) -> ServicePublic:
    svc = await repo.create_service(session, doctor_id=actor.user_id, **payload.model_dump())
    logger.info("Doctor %s added service %s (%s)", actor.user_id, svc.id, svc.name)
    return ServicePublic.model_validate(svc)


async def _owned_service(session: AsyncSession, service_id: UUID, actor: Actor):
    svc = await repo.get_service(session, service_id=service_id)
    if svc is None:
        raise ServiceNotFound("service_not_found")
    if svc.doctor_id != actor.user_id:
        raise NotServiceOwner("not_owner")
    return svc


async def update_service_svc(
    session: AsyncSession, service_id: UUID, payload: ServiceUpdate, actor: Actor
) -> ServicePublic:
    svc = await _owned_service(session, service_id, actor)
    svc = await repo.update_service(session, svc, **payload.model_dump(exclude_unset=True))
    return ServicePublic.model_validate(svc)


async def deactivate_service_svc(session: AsyncSession, service_id: UUID, actor: Actor) -> None:
    """
    Services are never hard-deleted: existing appointments keep referencing them.
    """
    svc = await _owned_service(session, service_id, actor)
    await repo.update_service(session, svc, is_active=False)
