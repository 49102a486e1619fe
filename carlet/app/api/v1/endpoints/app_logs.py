"""
Client activity log endpoint.

The front end reports page views, which are kept in the audit log.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.db.session import get_db
from carlet.app.core.dependencies import get_current_user
from carlet.app.schemas.upload import AppLogCreate
from carlet.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/app-logs", tags=["Activity"])


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def record_page_view(
    data: AppLogCreate,
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await log_event(
        db=db,
        action=AuditAction.PAGE_VIEWED,
        actor=current_user,
        metadata={"page_name": data.page_name},
        ip_address=request.client.host if request.client else None
    )
