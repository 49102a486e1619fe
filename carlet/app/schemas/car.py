"""
Car Pydantic schemas.

Defines request and response models for intake, details updates,
transitions and images.
"""

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from datetime import datetime
from typing import Optional, List
from carlet.app.models.enums import ImageChannel


class CarDetails(BaseModel):
    """Descriptive fields; the only ones a client may write directly."""
    model_config = ConfigDict(extra="forbid")

    vin: Optional[str] = Field(None, min_length=1, max_length=17)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    trim: Optional[str] = Field(None, max_length=100)
    license_plate: Optional[str] = Field(None, max_length=20)
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[EmailStr] = None


class CarCreate(CarDetails):
    """Schema for vehicle intake."""
    location_id: str = Field(..., min_length=1, description="Owning location")
    vin: str = Field(..., min_length=1, max_length=17, description="VIN (expected at intake)")


class CarUpdate(CarDetails):
    """Schema for partial details update. Stage, archive flag and images have their own endpoints."""


class CarResponse(BaseModel):
    """Schema for car response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    vin: Optional[str]
    year: Optional[int]
    make: Optional[str]
    model: Optional[str]
    trim: Optional[str]
    license_plate: Optional[str]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    customer_email: Optional[str]
    location_id: str
    current_stage_id: Optional[str]
    last_activity: datetime
    is_archived: bool
    check_in_images: List[str]
    check_out_images: List[str]
    version: int
    created_at: datetime
    updated_at: datetime


class TransitionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stage_id: str = Field(..., min_length=1)
    correlation_id: Optional[str] = Field(None, max_length=100, description="Client id making retries idempotent")


class AdvanceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    correlation_id: Optional[str] = Field(None, max_length=100)


class ImageAttach(BaseModel):
    model_config = ConfigDict(extra="forbid")

    channel: ImageChannel
    urls: List[str] = Field(..., min_length=1)
