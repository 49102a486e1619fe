"""
Parts tracking endpoints.

Parts are listed and added under their car; status changes and edits go
through the part's own id.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.db.session import get_db
from carlet.app.core.config import settings
from carlet.app.core.dependencies import get_current_user
from carlet.app.core.guards import LocationGuard
from carlet.app.schemas.part import PartCreate, PartUpdate, PartStatusUpdate, PartResponse
from carlet.app.services.parts import PartsService

router = APIRouter(tags=["Parts"])


def get_parts_service(db: AsyncSession = Depends(get_db)) -> PartsService:
    return PartsService(db, max_retries=settings.max_update_retries)


async def _enforce_car_access(service: PartsService, car_id: str, current_user: dict) -> None:
    car = await service.vehicles.get_car(car_id)
    LocationGuard.enforce(car.location_id, current_user)


@router.get("/cars/{car_id}/parts", response_model=List[PartResponse])
async def list_parts(
    car_id: str,
    current_user: dict = Depends(get_current_user),
    service: PartsService = Depends(get_parts_service)
):
    await _enforce_car_access(service, car_id, current_user)
    return [PartResponse.model_validate(part) for part in await service.list_parts(car_id)]


@router.post("/cars/{car_id}/parts", response_model=PartResponse, status_code=status.HTTP_201_CREATED)
async def add_part(
    car_id: str,
    data: PartCreate,
    current_user: dict = Depends(get_current_user),
    service: PartsService = Depends(get_parts_service)
):
    await _enforce_car_access(service, car_id, current_user)
    part = await service.add_part(car_id, **data.model_dump())
    return PartResponse.model_validate(part)


@router.get("/parts/{part_id}", response_model=PartResponse)
async def get_part(
    part_id: str,
    current_user: dict = Depends(get_current_user),
    service: PartsService = Depends(get_parts_service)
):
    part = await service.get_part(part_id)
    await _enforce_car_access(service, part.car_id, current_user)
    return PartResponse.model_validate(part)


@router.patch("/parts/{part_id}", response_model=PartResponse)
async def update_part(
    part_id: str,
    changes: PartUpdate,
    current_user: dict = Depends(get_current_user),
    service: PartsService = Depends(get_parts_service)
):
    part = await service.get_part(part_id)
    await _enforce_car_access(service, part.car_id, current_user)
    part = await service.update_part(part_id, changes.model_dump(exclude_unset=True))
    return PartResponse.model_validate(part)


@router.put("/parts/{part_id}/status", response_model=PartResponse)
async def set_part_status(
    part_id: str,
    data: PartStatusUpdate,
    current_user: dict = Depends(get_current_user),
    service: PartsService = Depends(get_parts_service)
):
    """Set any status; there is no required order between statuses."""
    part = await service.get_part(part_id)
    await _enforce_car_access(service, part.car_id, current_user)
    part = await service.set_part_status(part_id, data.status)
    return PartResponse.model_validate(part)
