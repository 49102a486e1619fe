"""
Authentication and user Pydantic schemas.

Defines request and response schemas for authentication and user
management endpoints.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Optional
from carlet.app.models.enums import UserRole


class UserLogin(BaseModel):
    """
    Schema for user login.
    
    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.
    
    Returned by successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: str = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")
    location_id: Optional[str] = Field(default=None, description="Home location")


class UserCreate(BaseModel):
    """
    Schema for creating (inviting) a user. Admin only.
    """
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    full_name: str = Field("", max_length=200)
    password: str = Field(..., min_length=6, description="Initial password (min 6 characters)")
    role: UserRole = UserRole.USER
    is_platform_admin: bool = False
    location_id: Optional[str] = None


class UserUpdate(BaseModel):
    """Schema for admin updates to a user."""
    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(None, max_length=200)
    role: Optional[UserRole] = None
    is_platform_admin: Optional[bool] = None
    location_id: Optional[str] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    """
    Schema for user information response.
    
    Used by GET /auth/me and the admin user list.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    role: UserRole
    is_platform_admin: bool
    location_id: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
