"""
Location and stage registry endpoints.

Any member of a location may read its pipeline and board; creating
locations and editing stage lists is admin-only and audited.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.db.session import get_db
from carlet.app.core.dependencies import get_current_user
from carlet.app.core.guards import require_admin, LocationGuard
from carlet.app.domain.workflow.stage_registry import StageRegistry, validate_new_location_stages
from carlet.app.domain.workflow.stages import Stage
from carlet.app.schemas.location import (
    LocationCreate, LocationUpdate, LocationResponse,
    StageCreate, StageUpdate, StageReorder, StageListResponse, NextStageResponse
)
from carlet.app.schemas.board import BoardResponse, BoardColumn, BoardCar
from carlet.app.schemas.car import CarResponse
from carlet.app.services.audit import log_event, AuditAction
from carlet.app.services.board import build_board

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    include_inactive: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Locations visible to the caller: all for admins, their own otherwise."""
    locations = await StageRegistry(db).list_locations(include_inactive=include_inactive)
    return [
        LocationResponse.model_validate(location)
        for location in locations
        if LocationGuard.can_access(location.id, current_user)
    ]


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    data: LocationCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    stages = validate_new_location_stages([stage.model_dump(exclude_none=True) for stage in data.stages])
    location = await StageRegistry(db).create_location(
        name=data.name,
        timezone=data.timezone,
        stages=stages,
        location_id=data.id
    )
    await log_event(
        db=db,
        action=AuditAction.LOCATION_CREATED,
        actor=admin,
        target_type="location",
        target_id=location.id,
        metadata={"name": location.name, "stage_count": len(stages)}
    )
    return LocationResponse.model_validate(location)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    LocationGuard.enforce(location_id, current_user)
    location = await StageRegistry(db).get_location(location_id, include_inactive=True)
    return LocationResponse.model_validate(location)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    changes: LocationUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    registry = StageRegistry(db)
    updated = await registry.update_location(location_id, changes.model_dump(exclude_unset=True))
    await log_event(
        db=db,
        action=AuditAction.LOCATION_UPDATED,
        actor=admin,
        target_type="location",
        target_id=location_id,
        metadata={"updated_fields": updated}
    )
    return LocationResponse.model_validate(await registry.get_location(location_id))


@router.delete("/{location_id}", response_model=LocationResponse)
async def deactivate_location(
    location_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Soft-delete: the location stops accepting intake but keeps its history."""
    location = await StageRegistry(db).deactivate_location(location_id)
    await log_event(
        db=db,
        action=AuditAction.LOCATION_DEACTIVATED,
        actor=admin,
        target_type="location",
        target_id=location_id
    )
    return LocationResponse.model_validate(location)


# Stages

@router.get("/{location_id}/stages", response_model=StageListResponse)
async def list_stages(
    location_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    LocationGuard.enforce(location_id, current_user)
    stages = await StageRegistry(db).list_stages(location_id)
    return StageListResponse(location_id=location_id, stages=stages)


@router.get("/{location_id}/stages/next", response_model=NextStageResponse)
async def get_next_stage(
    location_id: str,
    current_stage_id: Optional[str] = Query(None, description="Omit for cars without a stage"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stage following ``current_stage_id``; null on the last stage or an unknown one."""
    LocationGuard.enforce(location_id, current_user)
    next_stage = await StageRegistry(db).next_stage(location_id, current_stage_id)
    return NextStageResponse(location_id=location_id, current_stage_id=current_stage_id, next_stage=next_stage)


@router.post("/{location_id}/stages", response_model=Stage, status_code=status.HTTP_201_CREATED)
async def add_stage(
    location_id: str,
    data: StageCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    stage = await StageRegistry(db).add_stage(location_id, data.name, data.color)
    await log_event(
        db=db,
        action=AuditAction.STAGE_ADDED,
        actor=admin,
        target_type="location",
        target_id=location_id,
        metadata={"stage_id": stage.id, "name": stage.name}
    )
    return stage


@router.put("/{location_id}/stages/order", response_model=StageListResponse)
async def reorder_stages(
    location_id: str,
    data: StageReorder,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    stages = await StageRegistry(db).reorder_stages(location_id, data.stage_ids)
    await log_event(
        db=db,
        action=AuditAction.STAGES_REORDERED,
        actor=admin,
        target_type="location",
        target_id=location_id,
        metadata={"stage_ids": [stage.id for stage in stages]}
    )
    return StageListResponse(location_id=location_id, stages=stages)


@router.patch("/{location_id}/stages/{stage_id}", response_model=Stage)
async def update_stage(
    location_id: str,
    stage_id: str,
    data: StageUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    stage = await StageRegistry(db).update_stage(location_id, stage_id, name=data.name, color=data.color)
    await log_event(
        db=db,
        action=AuditAction.STAGE_UPDATED,
        actor=admin,
        target_type="location",
        target_id=location_id,
        metadata={"stage_id": stage_id, **data.model_dump(exclude_unset=True)}
    )
    return stage


@router.delete("/{location_id}/stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_stage(
    location_id: str,
    stage_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a stage.
    
    Refused with ERR_STAGE_IN_USE while active cars sit on it.
    """
    await StageRegistry(db).remove_stage(location_id, stage_id)
    await log_event(
        db=db,
        action=AuditAction.STAGE_REMOVED,
        actor=admin,
        target_type="location",
        target_id=location_id,
        metadata={"stage_id": stage_id}
    )


# Board

def _board_car(car, pending: int) -> BoardCar:
    return BoardCar(**CarResponse.model_validate(car).model_dump(), pending_parts=pending)


@router.get("/{location_id}/board", response_model=BoardResponse)
async def get_board(
    location_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active cars grouped by stage in pipeline order, with pending part counts."""
    LocationGuard.enforce(location_id, current_user)
    board = await build_board(db, location_id)
    return BoardResponse(
        location_id=location_id,
        stages=[
            BoardColumn(
                stage=column["stage"],
                car_count=column["car_count"],
                cars=[_board_car(car, pending) for car, pending in column["cars"]]
            )
            for column in board["stages"]
        ],
        unstaged=[_board_car(car, pending) for car, pending in board["unstaged"]]
    )
