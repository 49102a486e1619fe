"""
User administration endpoints.

Admin-only listing, invitation and update of users, with audit logging.
Deactivating a user revokes every token they hold.
"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from carlet.app.db.session import get_db
from carlet.app.db.partial_update import apply_partial_update, USER_UPDATABLE_FIELDS
from carlet.app.db.unit_of_work import commit_or_raise
from carlet.app.models.user import User
from carlet.app.schemas.auth import UserCreate, UserUpdate, UserResponse
from carlet.app.core.exceptions import ResourceNotFoundError, ValidationError
from carlet.app.core.guards import require_admin
from carlet.app.core.redis_client import get_redis
from carlet.app.core.security import get_password_hash
from carlet.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from carlet.app.domain.workflow.stage_registry import StageRegistry
from carlet.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


async def _get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


async def _check_location(db: AsyncSession, location_id: Optional[str]) -> None:
    if location_id is None:
        return
    try:
        await StageRegistry(db).get_location(location_id, include_inactive=True)
    except ResourceNotFoundError:
        raise ValidationError(f"Unknown location {location_id}", details={"location_id": location_id})


@router.get("", response_model=List[UserResponse])
async def list_users(
    location_id: Optional[str] = Query(None, description="Only users of this location"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List users (admin-only), newest first."""
    query = select(User).order_by(User.created_at.desc(), User.id)
    if location_id:
        query = query.where(User.location_id == location_id)
    result = await db.execute(query)
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Invite a user (admin-only).
    
    Raises:
        ValidationError: email already registered or unknown location
    """
    email = user_data.email.lower()
    existing = await db.execute(select(func.count(User.id)).where(func.lower(User.email) == email))
    if existing.scalar():
        raise ValidationError("Email already registered", details={"email": email})
    await _check_location(db, user_data.location_id)
    
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=user_data.full_name,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        is_platform_admin=user_data.is_platform_admin,
        location_id=user_data.location_id,
        is_active=True
    )
    db.add(user)
    await commit_or_raise(db, "User", user.id)
    
    await log_event(
        db=db,
        action=AuditAction.USER_CREATED,
        actor=admin,
        target_type="user",
        target_id=user.id,
        metadata={"email": user.email, "role": user.role.value, "location_id": user.location_id}
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return UserResponse.model_validate(await _get_user(db, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    changes: UserUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Update role, location, admin flag or active flag (admin-only).
    
    Deactivation revokes all of the user's tokens; reactivation lifts
    that revocation.
    """
    data = changes.model_dump(exclude_unset=True)
    if "location_id" in data:
        await _check_location(db, data["location_id"])
    if user_id == admin["user_id"] and data.get("is_active") is False:
        raise ValidationError("Cannot deactivate yourself")
    
    user = await _get_user(db, user_id)
    was_active = user.is_active
    updated = apply_partial_update(user, data, USER_UPDATABLE_FIELDS, "User")
    await commit_or_raise(db, "User", user_id)
    
    if was_active and not user.is_active:
        await revoke_all_user_tokens(redis, user_id)
        action = AuditAction.USER_DEACTIVATED
    else:
        if not was_active and user.is_active:
            await clear_user_token_revocation(redis, user_id)
        action = AuditAction.USER_UPDATED
    
    await log_event(
        db=db,
        action=action,
        actor=admin,
        target_type="user",
        target_id=user_id,
        metadata={"updated_fields": updated}
    )
    return UserResponse.model_validate(user)
