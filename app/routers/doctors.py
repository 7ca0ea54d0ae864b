# app/routers/doctors.py
from __future__ import annotations

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.sql import get_session
from app.dependencies import get_current_actor
from app.modules.availability.service import get_available_dates, get_available_times
from app.modules.doctors.schemas import AvailabilityRulePublic, ServicePublic
from app.modules.doctors.service import get_weekly_schedule, list_doctor_services
from app.modules.users.schemas import Actor

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get(
    "/{doctor_id}/available-dates",
    response_model=List[str],
    summary="Dates a patient can book with this doctor (ISO, tomorrow onwards)",
)
async def doctor_available_dates(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),  # Bearer only
):
    return await get_available_dates(session, doctor_id)


@router.get(
    "/{doctor_id}/available-times",
    response_model=List[str],
    summary="Free HH:MM slots of this doctor on a date",
)
async def doctor_available_times(
    doctor_id: UUID,
    on_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return await get_available_times(session, doctor_id, on_date)


@router.get(
    "/{doctor_id}/availability",
    response_model=List[AvailabilityRulePublic],
    summary="Active weekly availability rules of a doctor",
)
async def doctor_availability(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return await get_weekly_schedule(session, doctor_id)


@router.get(
    "/{doctor_id}/services",
    response_model=List[ServicePublic],
    summary="Active services offered by a doctor",
)
async def doctor_services(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return await list_doctor_services(session, doctor_id)
