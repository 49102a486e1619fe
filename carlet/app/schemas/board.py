"""
Board (pipeline summary) schemas.
"""

from pydantic import BaseModel
from typing import List
from carlet.app.domain.workflow.stages import Stage
from carlet.app.schemas.car import CarResponse


class BoardCar(CarResponse):
    pending_parts: int


class BoardColumn(BaseModel):
    stage: Stage
    car_count: int
    cars: List[BoardCar]


class BoardResponse(BaseModel):
    location_id: str
    stages: List[BoardColumn]
    unstaged: List[BoardCar]
