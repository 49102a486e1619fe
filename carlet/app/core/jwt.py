"""
JWT access tokens.

Tokens are signed with ``settings.secret_key`` and carry the user's email
as ``sub`` plus ``user_id`` and ``role``; ``jti`` makes every token unique
so one can be revoked alone. Authorization never trusts the
role claim alone; see ``dependencies.get_current_user``.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from carlet.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign ``data`` into an access token.
    
    Args:
        data: Claims to encode, e.g. ``{"sub": email, "user_id": id, "role": "admin"}``
        expires_delta: Lifetime; defaults to ``access_token_expire_minutes``
        
    Returns:
        Encoded JWT string
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "jti": uuid.uuid4().hex, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token; None for anything else."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
