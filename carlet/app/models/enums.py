"""
Enumerations shared by models and schemas.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        ADMIN: Manages locations, stages and users
        USER: Shop staff working the vehicles of their own location (default)
    """
    ADMIN = "admin"
    USER = "user"


class PartStatus(str, enum.Enum):
    """
    Part procurement status.
    
    Any value may follow any other; no ordering is enforced.
    """
    NEEDED = "needed"
    ORDERED = "ordered"
    SHIPPED = "shipped"
    RECEIVED = "received"
    INSTALLED = "installed"
    RETURNED = "returned"


# Parts in these statuses no longer count as pending
RESOLVED_PART_STATUSES = frozenset({PartStatus.INSTALLED, PartStatus.RETURNED})


class ImageChannel(str, enum.Enum):
    """Which photo list of a car an image belongs to."""
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"

    @property
    def column(self) -> str:
        return f"{self.value}_images"
