# app/routers/admin.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.sql import get_session
from app.dependencies import require_roles
from app.modules.appointments.schemas import AppointmentStats
from app.modules.appointments.service import appointment_stats_svc
from app.modules.users.schemas import Actor

# Create an admin router to collect administrative APIs
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/stats",
    response_model=AppointmentStats,
    summary="Aggregate appointment counts and completed revenue",
)
async def admin_stats(
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_roles("admin")),
):
    return await appointment_stats_svc(session)
