"""
Location and stage Pydantic schemas.

Defines request and response models for the admin stage registry.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List
from carlet.app.domain.workflow.stages import Stage


class StageInput(BaseModel):
    """A stage supplied when creating a location; the id is generated if omitted."""
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(None, min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=32)


class LocationCreate(BaseModel):
    """Schema for creating a new location."""
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(None, min_length=1, max_length=36, description="Explicit id (generated if omitted)")
    name: str = Field(..., min_length=1, max_length=200, description="Shop name")
    timezone: str = Field("UTC", min_length=1, max_length=64)
    stages: List[StageInput] = Field(default_factory=list, description="Initial pipeline in order")


class LocationUpdate(BaseModel):
    """Schema for updating display fields of a location. Stages have their own endpoints."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    timezone: Optional[str] = Field(None, min_length=1, max_length=64)


class LocationResponse(BaseModel):
    """Schema for location response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    timezone: str
    stages: List[Stage]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class StageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field("#64748b", max_length=32)


class StageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=32)


class StageReorder(BaseModel):
    """New pipeline order: must be a permutation of the current stage ids."""
    model_config = ConfigDict(extra="forbid")

    stage_ids: List[str]


class StageListResponse(BaseModel):
    location_id: str
    stages: List[Stage]


class NextStageResponse(BaseModel):
    location_id: str
    current_stage_id: Optional[str]
    next_stage: Optional[Stage]
