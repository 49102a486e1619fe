"""
User database model.

This module defines the User SQLAlchemy model for authentication and
location membership.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
from carlet.app.db.session import Base, utcnow
from carlet.app.models.enums import UserRole


class User(Base):
    """
    Shop staff or administrator.
    
    ``location_id`` scopes a regular user to one shop; admins and platform
    admins may act on every location.
    """
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=False, default="")
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=UserRole.USER,
        nullable=False,
    )
    is_platform_admin = Column(Boolean, default=False, nullable=False)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    @property
    def is_admin(self) -> bool:
        return self.is_platform_admin or self.role == UserRole.ADMIN
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
