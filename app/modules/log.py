from __future__ import annotations

import logging
import uuid

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.appointments.errors import StorageError
from app.modules.audit.models import AuditLog

logger = logging.getLogger(__name__)


async def write_audit_log(
    session: AsyncSession,
    user_id: uuid.UUID | None,
    action: str,
    details: str | None = None,
):
    """
    Write an audit log entry in the caller's transaction.
    A failed insert rolls that transaction back and raises StorageError.

    action:
        "BOOK_APPOINTMENT"
        "RESCHEDULE_APPOINTMENT"
        "CANCEL_APPOINTMENT"
        "COMPLETE_APPOINTMENT"
        "DELETE_APPOINTMENT"
        "DELETE_ALL_APPOINTMENTS"
        "REPLACE_AVAILABILITY"
    """
    stmt = insert(AuditLog).values(
        user_id=user_id,
        action=action,
        details=details,
    )
    try:
        await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Audit write failed for %s", action)
        await session.rollback()
        raise StorageError("audit_write_failed") from exc
    logger.info("audit %s user=%s %s", action, user_id, details or "")
