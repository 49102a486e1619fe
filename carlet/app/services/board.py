"""
Board (pipeline summary) for a location.

Groups the location's active cars under the stage they sit on, in pipeline
order, with each car's count of pending parts.
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from carlet.app.domain.workflow import stages as pipeline
from carlet.app.domain.workflow.stage_registry import StageRegistry
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow
from carlet.app.services.parts import count_pending_parts


async def build_board(db: AsyncSession, location_id: str, car_limit: int = 1000) -> Dict[str, Any]:
    """
    Summarize a location's pipeline.

    Returns:
        {"location_id", "stages": [{"stage", "car_count", "cars": [(car, pending_parts)]}],
         "unstaged": [(car, pending_parts)]}

        ``unstaged`` holds active cars whose stage is null or no longer in
        the pipeline.
    """
    stages = await StageRegistry(db).list_stages(location_id)
    cars = await VehicleWorkflow(db).list_cars(location_id=location_id, is_archived=False, limit=car_limit)
    pending = await count_pending_parts(db, [car.id for car in cars])

    columns: Dict[str, List] = {stage.id: [] for stage in stages}
    unstaged = []
    for car in cars:
        entry = (car, pending[car.id])
        if pipeline.find_stage(stages, car.current_stage_id) is None:
            unstaged.append(entry)
        else:
            columns[car.current_stage_id].append(entry)

    return {
        "location_id": location_id,
        "stages": [
            {"stage": stage, "car_count": len(columns[stage.id]), "cars": columns[stage.id]}
            for stage in stages
        ],
        "unstaged": unstaged,
    }
