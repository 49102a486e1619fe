"""
Security guards for role-based and location-based access control.

Provides dependencies and helpers for protecting endpoints.
"""

from typing import Optional
from fastapi import Depends
from carlet.app.core.dependencies import get_current_user
from carlet.app.core.exceptions import InsufficientPermissionsError


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.
    
    Admins are users with role ``admin`` or the platform admin flag.
    
    Usage:
        @router.post("/users")
        async def create_user(admin: dict = Depends(require_admin)):
            ...
    
    Raises:
        InsufficientPermissionsError: the caller is not an admin
    """
    if not current_user.get("is_admin"):
        raise InsufficientPermissionsError("Admin access required")
    return current_user


class LocationGuard:
    """
    Location scoping for shop staff.
    
    Regular users may only act inside their own location; admins may act
    anywhere.
    """
    
    @staticmethod
    def can_access(location_id: Optional[str], current_user: dict) -> bool:
        if current_user.get("is_admin"):
            return True
        return location_id is not None and location_id == current_user.get("location_id")
    
    @staticmethod
    def enforce(location_id: Optional[str], current_user: dict) -> None:
        """
        Raises:
            InsufficientPermissionsError: the location belongs to someone else
        """
        if not LocationGuard.can_access(location_id, current_user):
            raise InsufficientPermissionsError(
                "Access denied for this location",
                details={"location_id": location_id}
            )
    
    @staticmethod
    def scope_location(requested: Optional[str], current_user: dict) -> Optional[str]:
        """
        Location filter to apply to a listing.
        
        Admins see whatever they ask for (None means every location).
        Regular users are pinned to their own location.
        """
        if current_user.get("is_admin"):
            return requested
        if requested is not None:
            LocationGuard.enforce(requested, current_user)
        return current_user.get("location_id") or ""
