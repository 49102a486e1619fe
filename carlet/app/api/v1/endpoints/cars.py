"""
Vehicle endpoints.

Intake, listing, details, stage transitions, archiving and photos. Every
route is scoped to the caller's location unless the caller is an admin.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.db.session import get_db
from carlet.app.core.config import settings
from carlet.app.core.dependencies import get_current_user
from carlet.app.core.exceptions import AppException
from carlet.app.core.guards import LocationGuard
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow
from carlet.app.models.car import Car
from carlet.app.models.enums import ImageChannel
from carlet.app.schemas.car import (
    CarCreate, CarUpdate, CarResponse, TransitionRequest, AdvanceRequest, ImageAttach
)
from carlet.app.services.file_storage import FileStorage, get_file_storage

logger = logging.getLogger("carlet.api.cars")

router = APIRouter(prefix="/cars", tags=["Cars"])


def get_workflow(db: AsyncSession = Depends(get_db)) -> VehicleWorkflow:
    return VehicleWorkflow(db, max_retries=settings.max_update_retries)


def author_of(current_user: dict) -> str:
    return current_user.get("full_name") or current_user.get("email") or ""


async def load_car(workflow: VehicleWorkflow, car_id: str, current_user: dict) -> Car:
    """Fetch a car and check the caller may act on its location."""
    car = await workflow.get_car(car_id)
    LocationGuard.enforce(car.location_id, current_user)
    return car


@router.post("", response_model=CarResponse, status_code=status.HTTP_201_CREATED)
async def intake_car(
    data: CarCreate,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """
    Register a car on the first stage of its location.
    
    The model year is decoded from the VIN when not supplied.
    """
    LocationGuard.enforce(data.location_id, current_user)
    fields = data.model_dump(exclude_unset=True, exclude={"location_id"})
    car = await workflow.intake(data.location_id, fields)
    return CarResponse.model_validate(car)


@router.get("", response_model=List[CarResponse])
async def list_cars(
    location_id: Optional[str] = Query(None),
    is_archived: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Search VIN, plate, customer, make, model"),
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """List cars, most recently active first."""
    scoped_location = LocationGuard.scope_location(location_id, current_user)
    cars = await workflow.list_cars(
        location_id=scoped_location,
        is_archived=is_archived,
        search=q,
        offset=offset,
        limit=limit
    )
    return [CarResponse.model_validate(car) for car in cars]


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(
    car_id: str,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    return CarResponse.model_validate(await load_car(workflow, car_id, current_user))


@router.patch("/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: str,
    changes: CarUpdate,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """Update descriptive fields. Unknown fields are rejected."""
    await load_car(workflow, car_id, current_user)
    car = await workflow.update_details(car_id, changes.model_dump(exclude_unset=True))
    return CarResponse.model_validate(car)


@router.post("/{car_id}/transition", response_model=CarResponse)
async def transition_car(
    car_id: str,
    data: TransitionRequest,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """
    Move a car to a stage of its location and record the move as a note.
    
    Repeating a request with the same ``correlation_id`` has no further effect.
    """
    await load_car(workflow, car_id, current_user)
    car = await workflow.transition(
        car_id,
        data.stage_id,
        author_name=author_of(current_user),
        correlation_id=data.correlation_id
    )
    return CarResponse.model_validate(car)


@router.post("/{car_id}/advance", response_model=CarResponse)
async def advance_car(
    car_id: str,
    data: Optional[AdvanceRequest] = None,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    await load_car(workflow, car_id, current_user)
    car = await workflow.advance(
        car_id,
        author_name=author_of(current_user),
        correlation_id=data.correlation_id if data else None
    )
    return CarResponse.model_validate(car)


@router.post("/{car_id}/archive", response_model=CarResponse)
async def archive_car(
    car_id: str,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    await load_car(workflow, car_id, current_user)
    return CarResponse.model_validate(await workflow.archive(car_id))


# Images

@router.post("/{car_id}/images", response_model=CarResponse)
async def attach_images(
    car_id: str,
    data: ImageAttach,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """Append already-uploaded image URLs to a channel."""
    await load_car(workflow, car_id, current_user)
    car = await workflow.attach_images(car_id, data.channel, data.urls)
    return CarResponse.model_validate(car)


@router.post("/{car_id}/images/{channel}/upload", response_model=CarResponse)
async def upload_images(
    car_id: str,
    channel: ImageChannel,
    files: List[UploadFile] = File(...),
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow),
    storage: FileStorage = Depends(get_file_storage)
):
    """Store uploaded photos and attach their URLs in one call."""
    await load_car(workflow, car_id, current_user)
    stored = []
    try:
        for upload in files:
            filename = upload.filename or ""
            stored.append((filename, storage.store(await upload.read(), filename)))
        car = await workflow.attach_images(car_id, channel, [url for _, url in stored], uploads=stored)
    except AppException:
        for _, url in stored:
            storage.delete(url)
        raise
    return CarResponse.model_validate(car)


@router.delete("/{car_id}/images/{channel}/{index}", response_model=CarResponse)
async def remove_image(
    car_id: str,
    channel: ImageChannel,
    index: int,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """
    Remove the image at ``index`` of a channel.
    
    The stored file is kept; other records may still reference it.
    """
    await load_car(workflow, car_id, current_user)
    car = await workflow.remove_image(car_id, channel, index)
    return CarResponse.model_validate(car)
