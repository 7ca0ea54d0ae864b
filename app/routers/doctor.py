# app/routers/doctor.py
# Endpoints a doctor uses to manage their own schedule and services.
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.sql import get_session
from app.dependencies import require_roles
from app.modules.doctors.schemas import (
    AvailabilityRulePublic,
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    WeeklyScheduleIn,
)
from app.modules.appointments.errors import StorageError
from app.modules.doctors.service import (
    NotServiceOwner,
    ServiceNotFound,
    create_service_svc,
    deactivate_service_svc,
    replace_weekly_schedule,
    update_service_svc,
)
from app.modules.users.schemas import Actor

router = APIRouter(tags=["doctor-self-service"])


@router.put(
    "/availability/me",
    response_model=List[AvailabilityRulePublic],
    summary="Replace the whole weekly schedule of the current doctor",
)
async def replace_my_availability(
    payload: WeeklyScheduleIn,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("doctor")),
):
    try:
        return await replace_weekly_schedule(db, payload, actor)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="could_not_complete")


@router.post(
    "/services",
    response_model=ServicePublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_service(
    payload: ServiceCreate,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("doctor")),
):
    return await create_service_svc(db, payload, actor)


@router.put(
    "/services/{service_id}",
    response_model=ServicePublic,
)
async def update_service(
    service_id: UUID,
    payload: ServiceUpdate,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("doctor")),
):
    try:
        return await update_service_svc(db, service_id, payload, actor)
    except ServiceNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    except NotServiceOwner:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not_owner")


@router.delete(
    "/services/{service_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def deactivate_service(
    service_id: UUID,
    db: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("doctor")),
):
    try:
        await deactivate_service_svc(db, service_id, actor)
    except ServiceNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    except NotServiceOwner:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not_owner")
    return None
