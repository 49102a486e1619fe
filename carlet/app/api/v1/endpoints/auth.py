"""
Authentication API endpoints.

Provides login, logout and current-user endpoints.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from carlet.app.db.session import get_db
from carlet.app.models.user import User
from carlet.app.schemas.auth import UserLogin, TokenResponse, UserResponse
from carlet.app.core.security import verify_password
from carlet.app.core.jwt import create_access_token
from carlet.app.core.dependencies import get_current_user
from carlet.app.core.exceptions import AuthenticationError
from carlet.app.core.redis_client import get_redis
from carlet.app.core.token_revocation import revoke_token
from carlet.app.services.audit import log_event, AuditAction

logger = logging.getLogger("carlet.auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.
    
    Email matching is case-insensitive. Logs successful and failed login
    attempts for security monitoring.
    """
    email = credentials.email.lower()
    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()
    
    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            target_type="user",
            target_id=user.id if user else None,
            metadata={"email": email, "reason": "Invalid credentials"},
            ip_address=_client_ip(request)
        )
        raise AuthenticationError("Invalid credentials")
    
    if not user.is_active:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            target_type="user",
            target_id=user.id,
            metadata={"email": email, "reason": "Account is inactive"},
            ip_address=_client_ip(request)
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )
    
    access_token = create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    })
    
    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor={"user_id": user.id, "email": user.email},
        target_type="user",
        target_id=user.id,
        ip_address=_client_ip(request)
    )
    logger.info("User %s logged in", user.id)
    
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        role=user.role,
        location_id=user.location_id
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """Revoke the bearer token used for this request."""
    await revoke_token(redis, current_user["token"], current_user["user_id"])
    await log_event(
        db=db,
        action=AuditAction.LOGOUT,
        actor=current_user,
        target_type="user",
        target_id=current_user["user_id"]
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.
    
    Requires valid JWT token in Authorization header.
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()
    
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    
    return UserResponse.model_validate(user)
