"""
Parts tracking service.

Parts carry a procurement status that may move freely between values.
Every part change also refreshes the owning car's ``last_activity``.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from carlet.app.core.exceptions import ResourceNotFoundError, ValidationError
from carlet.app.db.partial_update import apply_partial_update, PART_UPDATABLE_FIELDS
from carlet.app.db.session import utcnow
from carlet.app.db.unit_of_work import commit_or_raise, run_with_retry
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow
from carlet.app.models.enums import PartStatus, RESOLVED_PART_STATUSES
from carlet.app.models.part import Part

logger = logging.getLogger("carlet.parts")


def validate_cost(cost: Optional[float]) -> None:
    if cost is not None and cost < 0:
        raise ValidationError("Part cost must be non-negative", details={"cost": cost})


class PartsService:
    """Part operations for one database session."""

    def __init__(self, db: AsyncSession, max_retries: int = 5):
        self.db = db
        self.max_retries = max_retries
        self.vehicles = VehicleWorkflow(db, max_retries=max_retries)

    async def get_part(self, part_id: str) -> Part:
        result = await self.db.execute(
            select(Part).where(Part.id == part_id).execution_options(populate_existing=True)
        )
        part = result.scalar_one_or_none()
        if not part:
            raise ResourceNotFoundError("Part", part_id)
        return part

    async def list_parts(self, car_id: str) -> List[Part]:
        await self.vehicles.get_car(car_id)
        result = await self.db.execute(
            select(Part).where(Part.car_id == car_id).order_by(Part.created_at, Part.id)
        )
        return list(result.scalars().all())

    async def add_part(
        self,
        car_id: str,
        name: str,
        status: PartStatus = PartStatus.NEEDED,
        vendor: Optional[str] = None,
        cost: Optional[float] = None,
        eta: Optional[date] = None,
        quantity: int = 1,
        notes: Optional[str] = None,
    ) -> Part:
        """
        Add a part to a car. ``cost`` is stored exactly as given.

        Raises:
            ResourceNotFoundError: unknown car
            ValidationError: negative cost
        """
        validate_cost(cost)

        async def add_once() -> Part:
            car = await self.vehicles.get_car(car_id)
            part = Part(
                id=str(uuid.uuid4()),
                car_id=car.id,
                name=name,
                quantity=quantity,
                status=status,
                vendor=vendor,
                cost=cost,
                eta=eta,
                notes=notes,
            )
            self.db.add(part)
            car.last_activity = utcnow()
            await commit_or_raise(self.db, "Car", car_id)
            return part

        part = await run_with_retry(self.db, add_once, self.max_retries, "Car", car_id)
        logger.info("Added part %s (%s) to car %s", part.id, part.name, car_id)
        return part

    async def set_part_status(self, part_id: str, status: PartStatus) -> Part:
        """Set any status regardless of the current one."""
        return await self.update_part(part_id, {"status": status})

    async def update_part(self, part_id: str, changes: Mapping[str, Any]) -> Part:
        """Allow-listed partial update of a part."""
        validate_cost(changes.get("cost"))

        async def update_once() -> Part:
            part = await self.get_part(part_id)
            car = await self.vehicles.get_car(part.car_id)
            apply_partial_update(part, changes, PART_UPDATABLE_FIELDS, "Part")
            car.last_activity = utcnow()
            await commit_or_raise(self.db, "Car", car.id)
            return part

        part = await self.get_part(part_id)
        return await run_with_retry(self.db, update_once, self.max_retries, "Car", part.car_id)


async def count_pending_parts(db: AsyncSession, car_ids: List[str]) -> Dict[str, int]:
    """
    Number of unresolved parts per car (installed/returned excluded).
    Cars without pending parts are reported as 0.
    """
    counts = {car_id: 0 for car_id in car_ids}
    if not car_ids:
        return counts

    result = await db.execute(
        select(Part.car_id, func.count(Part.id))
        .where(
            Part.car_id.in_(car_ids),
            Part.status.not_in(list(RESOLVED_PART_STATUSES))
        )
        .group_by(Part.car_id)
    )
    for car_id, count in result.all():
        counts[car_id] = count
    return counts
