"""
Stage Registry.

Owns each location's ordered stage pipeline. Every write replaces the
whole stage list in a single versioned row update, so readers always see
either the old or the new list, never a half-written one.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from carlet.app.core.exceptions import ConcurrencyConflict, ResourceNotFoundError, StageInUse
from carlet.app.db.partial_update import apply_partial_update, LOCATION_UPDATABLE_FIELDS
from carlet.app.db.unit_of_work import commit_or_raise
from carlet.app.domain.workflow import stages as pipeline
from carlet.app.domain.workflow.stages import Stage
from carlet.app.models.car import Car
from carlet.app.models.location import Location

logger = logging.getLogger("carlet.workflow.stages")


class StageRegistry:
    """
    Location and stage-list operations for one database session.

    Usage:
        registry = StageRegistry(db)
        stages = await registry.list_stages(location_id)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # Locations

    async def get_location(self, location_id: str, include_inactive: bool = False) -> Location:
        """
        Load a location with fresh column values.

        Raises:
            ResourceNotFoundError: unknown (or inactive) location
        """
        query = select(Location).where(Location.id == location_id).execution_options(populate_existing=True)
        if not include_inactive:
            query = query.where(Location.is_active == True)
        result = await self.db.execute(query)
        location = result.scalar_one_or_none()
        if not location:
            raise ResourceNotFoundError("Location", location_id)
        return location

    async def list_locations(self, include_inactive: bool = False) -> List[Location]:
        query = select(Location).order_by(Location.name, Location.id)
        if not include_inactive:
            query = query.where(Location.is_active == True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_location(
        self,
        name: str,
        timezone: str = "UTC",
        stages: Sequence[Stage] = (),
        location_id: Optional[str] = None,
    ) -> Location:
        """
        Create a location with an initial stage list.

        Raises:
            ValidationError: duplicate stage ids or an id already taken
        """
        stages = list(stages)
        pipeline.ensure_unique_ids(stages)

        location = Location(
            id=location_id or str(uuid.uuid4()),
            name=name,
            timezone=timezone,
            stages=pipeline.dump_stages(stages),
            is_active=True,
        )
        self.db.add(location)
        await commit_or_raise(self.db, "Location", location.id)

        logger.info("Created location %s with %d stage(s)", location.id, len(stages))
        return location

    async def update_location(self, location_id: str, changes: Mapping[str, Any]) -> List[str]:
        """Apply an allow-listed partial update (name, timezone)."""
        location = await self.get_location(location_id)
        updated = apply_partial_update(location, changes, LOCATION_UPDATABLE_FIELDS, "Location")
        await commit_or_raise(self.db, "Location", location_id)
        return updated

    async def deactivate_location(self, location_id: str) -> Location:
        location = await self.get_location(location_id)
        location.is_active = False
        await commit_or_raise(self.db, "Location", location_id)
        return location

    # Stages

    async def claim_pipeline(self, location: Location) -> None:
        """
        Bump the location's version in the current transaction.

        Writes that place a car on one of the location's stages call this
        before committing, so they conflict with a concurrent change of the
        stage list instead of landing on a stage that was just removed.

        Raises:
            ConcurrencyConflict: the location changed since it was read
        """
        result = await self.db.execute(
            update(Location)
            .where(Location.id == location.id, Location.version == location.version)
            .values(version=location.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ConcurrencyConflict("Location", location.id)

    async def list_stages(self, location_id: str) -> List[Stage]:
        """
        Ordered stages of a location; empty when none are configured.

        Raises:
            ResourceNotFoundError: unknown location
        """
        location = await self.get_location(location_id, include_inactive=True)
        return pipeline.load_stages(location.stages)

    async def next_stage(self, location_id: str, current_stage_id: Optional[str]) -> Optional[Stage]:
        stages = await self.list_stages(location_id)
        return pipeline.next_stage(stages, current_stage_id)

    async def add_stage(self, location_id: str, name: str, color: str) -> Stage:
        """Append a new stage with a fresh id. Names and colors may repeat."""
        location = await self.get_location(location_id)
        stages = pipeline.load_stages(location.stages)
        stage = Stage(id=pipeline.new_stage_id(), name=name, color=color)

        location.stages = pipeline.dump_stages([*stages, stage])
        await commit_or_raise(self.db, "Location", location_id)

        logger.info("Added stage %s (%s) to location %s", stage.id, stage.name, location_id)
        return stage

    async def update_stage(
        self,
        location_id: str,
        stage_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Stage:
        """Rename or recolor a stage in place; its rank is unchanged."""
        location = await self.get_location(location_id)
        stages = pipeline.load_stages(location.stages)
        index = pipeline.stage_index(stages, stage_id)
        if index < 0:
            raise ResourceNotFoundError("Stage", stage_id)

        changes: Dict[str, str] = {}
        if name is not None:
            changes["name"] = name
        if color is not None:
            changes["color"] = color
        stages[index] = stages[index].model_copy(update=changes)

        location.stages = pipeline.dump_stages(stages)
        await commit_or_raise(self.db, "Location", location_id)
        return stages[index]

    async def reorder_stages(self, location_id: str, new_order: Sequence[str]) -> List[Stage]:
        """
        Rearrange the pipeline.

        Raises:
            InvalidPermutation: ``new_order`` is not a permutation of the
                current stage ids; the stored order is left untouched
        """
        location = await self.get_location(location_id)
        reordered = pipeline.reorder(pipeline.load_stages(location.stages), new_order)

        location.stages = pipeline.dump_stages(reordered)
        await commit_or_raise(self.db, "Location", location_id)

        logger.info("Reordered stages of location %s", location_id)
        return reordered

    async def remove_stage(self, location_id: str, stage_id: str) -> None:
        """
        Remove a stage from the pipeline.

        Refused while an active (non-archived) car sits on the stage.
        Archived cars on the stage have their stage pointer cleared in the
        same transaction.

        Raises:
            ResourceNotFoundError: unknown stage
            StageInUse: active cars still reference the stage
        """
        location = await self.get_location(location_id)
        stages = pipeline.load_stages(location.stages)
        if pipeline.find_stage(stages, stage_id) is None:
            raise ResourceNotFoundError("Stage", stage_id)

        in_use = await self.db.execute(
            select(func.count(Car.id)).where(
                Car.location_id == location_id,
                Car.current_stage_id == stage_id,
                Car.is_archived == False
            )
        )
        active_cars = in_use.scalar()
        if active_cars:
            raise StageInUse(stage_id, active_cars)

        await self.db.execute(
            update(Car)
            .where(
                Car.location_id == location_id,
                Car.current_stage_id == stage_id,
                Car.is_archived == True
            )
            .values(current_stage_id=None, version=Car.version + 1)
            .execution_options(synchronize_session=False)
        )
        location.stages = pipeline.dump_stages([s for s in stages if s.id != stage_id])
        await commit_or_raise(self.db, "Location", location_id)

        logger.info("Removed stage %s from location %s", stage_id, location_id)


def validate_new_location_stages(raw_stages: Sequence[Mapping[str, Any]]) -> List[Stage]:
    """
    Build Stage values for a new location, assigning ids where missing.

    Raises:
        ValidationError: duplicate ids
    """
    stages = [
        Stage(id=item.get("id") or pipeline.new_stage_id(), name=item["name"], color=item.get("color") or "#64748b")
        for item in raw_stages
    ]
    pipeline.ensure_unique_ids(stages)
    return stages
