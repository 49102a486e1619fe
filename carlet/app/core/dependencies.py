"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from carlet.app.core.jwt import decode_access_token
from carlet.app.core.redis_client import get_redis
from carlet.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from carlet.app.db.session import get_db
from carlet.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
) -> dict:
    """
    FastAPI dependency for JWT authentication.
    
    Checks, in order:
    1. Token signature and expiry
    2. Explicit revocation of this token (logout)
    3. Revocation of every token of the user (deactivation)
    4. The user still exists and is active
    
    Args:
        credentials: HTTP Bearer token from request header
        db: Database session for the real-time user check
        redis: Redis client holding revocations
        
    Returns:
        Current user payload: user_id, email, full_name, role,
        is_platform_admin, location_id and the raw token
        
    Raises:
        HTTPException: 401 if authentication fails, 403 for inactive users
    """
    token = credentials.credentials
    
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")
    
    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")
    
    if await is_token_revoked(redis, token):
        raise _unauthorized("Token has been revoked")
    
    if await are_user_tokens_revoked(redis, user_id):
        raise _unauthorized("User access has been revoked")
    
    # Role and location come from the database so admin changes apply immediately
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    
    if not user:
        raise _unauthorized("User not found")
    
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    
    return {
        "user_id": user.id,
        "sub": user.email,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role.value,
        "is_platform_admin": user.is_platform_admin,
        "is_admin": user.is_admin,
        "location_id": user.location_id,
        "token": token,
    }
