"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
on logout or when a user is deactivated.
"""

import logging
from redis.exceptions import RedisError
from carlet.app.core.config import settings

logger = logging.getLogger("carlet.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


async def revoke_token(redis, token: str, user_id: str) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.
    
    Args:
        redis: Redis client
        token: The JWT token string to revoke
        user_id: User ID who owns the token
        
    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        # Tokens auto-expire anyway, so the blacklist entry only needs to outlive them
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis.set(f"{TOKEN_BLACKLIST_PREFIX}{token}", str(user_id), ex=ttl_seconds)
        return True
    except RedisError as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """Check if a token has been revoked."""
    try:
        exists = await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except RedisError as e:
        # Fail open: an unreachable Redis must not lock every user out
        logger.warning("Error checking token revocation: %s", e)
        return False


async def revoke_all_user_tokens(redis, user_id: str) -> bool:
    """
    Revoke all active tokens for a specific user.
    
    Called when a user is deactivated. Any token validation checks this flag.
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis.set(f"{USER_TOKENS_PREFIX}{user_id}:revoked", "1", ex=ttl_seconds)
        return True
    except RedisError as e:
        logger.error("Error revoking all tokens for user %s: %s", user_id, e)
        return False


async def are_user_tokens_revoked(redis, user_id: str) -> bool:
    """Check if all tokens for a user have been revoked."""
    try:
        exists = await redis.exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
        return exists > 0
    except RedisError as e:
        logger.warning("Error checking user token revocation: %s", e)
        return False


async def clear_user_token_revocation(redis, user_id: str) -> bool:
    """Clear the global token revocation flag when a user is reactivated."""
    try:
        await redis.delete(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
        return True
    except RedisError as e:
        logger.error("Error clearing token revocation for user %s: %s", user_id, e)
        return False
