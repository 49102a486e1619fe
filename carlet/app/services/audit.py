"""
Audit logging service for admin actions and user activity.

Vehicle history lives in notes (see the workflow service); this log covers
everything an administrator does to locations, stages and users.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from carlet.app.models.audit_log import AuditLog
from carlet.app.db.unit_of_work import commit_or_raise


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"

    LOCATION_CREATED = "LOCATION_CREATED"
    LOCATION_UPDATED = "LOCATION_UPDATED"
    LOCATION_DEACTIVATED = "LOCATION_DEACTIVATED"

    STAGE_ADDED = "STAGE_ADDED"
    STAGE_UPDATED = "STAGE_UPDATED"
    STAGE_REMOVED = "STAGE_REMOVED"
    STAGES_REORDERED = "STAGES_REORDERED"

    PAGE_VIEWED = "PAGE_VIEWED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[Dict[str, Any]] = None,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log an admin or activity event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor: Current user payload (None for system actions)
        target_type: Kind of entity acted upon ("location", "user", ...)
        target_id: ID of the entity acted upon
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor["user_id"] if actor else None,
        actor_email=actor["email"] if actor else None,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await commit_or_raise(db, "AuditLog")

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_id:
        query = query.where(AuditLog.target_id == target_id)

    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
