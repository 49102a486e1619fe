"""
Part Pydantic schemas.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import Optional
from carlet.app.models.enums import PartStatus


class PartCreate(BaseModel):
    """Schema for adding a part to a car."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(1, ge=1)
    status: PartStatus = PartStatus.NEEDED
    vendor: Optional[str] = Field(None, max_length=200)
    cost: Optional[float] = Field(None, ge=0, description="Stored unrounded")
    eta: Optional[date] = None
    notes: Optional[str] = None


class PartUpdate(BaseModel):
    """Partial part update; any status may follow any other."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[int] = Field(None, ge=1)
    status: Optional[PartStatus] = None
    vendor: Optional[str] = Field(None, max_length=200)
    cost: Optional[float] = Field(None, ge=0)
    eta: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("name", "quantity", "status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class PartStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: PartStatus


class PartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    car_id: str
    name: str
    quantity: int
    status: PartStatus
    vendor: Optional[str]
    cost: Optional[float]
    eta: Optional[date]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
