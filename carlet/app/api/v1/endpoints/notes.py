"""
Vehicle note endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from carlet.app.core.dependencies import get_current_user
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow
from carlet.app.schemas.note import NoteCreate, NoteResponse
from carlet.app.api.v1.endpoints.cars import get_workflow, load_car, author_of

router = APIRouter(prefix="/cars/{car_id}/notes", tags=["Notes"])


@router.get("", response_model=List[NoteResponse])
async def list_notes(
    car_id: str,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    """Notes of a car, newest first."""
    await load_car(workflow, car_id, current_user)
    return [NoteResponse.model_validate(note) for note in await workflow.list_notes(car_id)]


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    car_id: str,
    data: NoteCreate,
    current_user: dict = Depends(get_current_user),
    workflow: VehicleWorkflow = Depends(get_workflow)
):
    await load_car(workflow, car_id, current_user)
    note = await workflow.add_note(car_id, data.content, author_name=author_of(current_user))
    return NoteResponse.model_validate(note)
