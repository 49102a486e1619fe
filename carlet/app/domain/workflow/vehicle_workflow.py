"""
Vehicle intake and stage transitions.

Keeps a car's ``current_stage_id`` inside its location's pipeline and its
note trail in step with every move. A transition's row update and its
audit note are committed in one transaction: either both are visible
afterwards or neither is.

Writes to ``cars`` are versioned. Operations whose effect does not depend
on what the caller saw (transition, advance, archive, image append) are
retried on a version conflict; ``remove_image`` is not, because its index
refers to the list the caller observed.

Intake and stage moves also bump the owning location's version, so a
car placed on a stage cannot commit against a stage list that
a concurrent removal has already replaced.
"""

import logging
import uuid
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from carlet.app.core.exceptions import (
    IndexOutOfRange,
    InvalidStage,
    NoNextStage,
    ResourceNotFoundError,
    ValidationError,
)
from carlet.app.db.partial_update import apply_partial_update, CAR_UPDATABLE_FIELDS
from carlet.app.db.session import utcnow
from carlet.app.db.unit_of_work import commit_or_raise, run_with_retry
from carlet.app.domain.workflow import stages as pipeline
from carlet.app.domain.workflow.stage_registry import StageRegistry
from carlet.app.domain.workflow.stages import Stage
from carlet.app.models.car import Car
from carlet.app.models.enums import ImageChannel
from carlet.app.models.note import Note
from carlet.app.services.file_storage import stage_upload
from carlet.app.services.vin_decoder import decode_year

logger = logging.getLogger("carlet.workflow.vehicles")

UNKNOWN_STAGE_NAME = "Unknown"

# Resolves the destination of a move from the freshly loaded car and its pipeline
TargetResolver = Callable[[Car, List[Stage]], Stage]


class VehicleWorkflow:
    """
    Vehicle lifecycle operations for one database session.

    Args:
        db: Database session
        max_retries: attempts for operations retried on version conflicts
    """

    def __init__(self, db: AsyncSession, max_retries: int = 5):
        self.db = db
        self.max_retries = max_retries
        self.registry = StageRegistry(db)

    async def get_car(self, car_id: str) -> Car:
        """
        Load a car with fresh column values.

        Raises:
            ResourceNotFoundError: unknown car
        """
        result = await self.db.execute(
            select(Car).where(Car.id == car_id).execution_options(populate_existing=True)
        )
        car = result.scalar_one_or_none()
        if not car:
            raise ResourceNotFoundError("Car", car_id)
        return car

    async def list_cars(
        self,
        location_id: Optional[str] = None,
        is_archived: Optional[bool] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> List[Car]:
        """
        List cars with equality filters and an optional free-text search
        over VIN, plate, customer name, make and model.
        """
        query = select(Car).order_by(Car.last_activity.desc(), Car.id)
        if location_id is not None:
            query = query.where(Car.location_id == location_id)
        if is_archived is not None:
            query = query.where(Car.is_archived == is_archived)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                func.lower(Car.vin).like(pattern),
                func.lower(Car.license_plate).like(pattern),
                func.lower(Car.customer_name).like(pattern),
                func.lower(Car.make).like(pattern),
                func.lower(Car.model).like(pattern),
            ))
        result = await self.db.execute(query.offset(offset).limit(limit))
        return list(result.scalars().all())

    async def intake(self, location_id: str, fields: Mapping[str, Any]) -> Car:
        """
        Register a new car on the first stage of its location.

        When ``year`` is not given it is decoded from the VIN if possible.
        Retried when the stage list changes while the car is being placed.

        Raises:
            ValidationError: unknown or inactive location, or a field that
                cannot be set at intake
        """
        car_id = str(uuid.uuid4())

        async def intake_once() -> Car:
            try:
                location = await self.registry.get_location(location_id)
            except ResourceNotFoundError:
                raise ValidationError(f"Unknown location {location_id}", details={"location_id": location_id})

            stages = pipeline.load_stages(location.stages)
            car = Car(
                id=car_id,
                location_id=location.id,
                current_stage_id=stages[0].id if stages else None,
                last_activity=utcnow(),
                is_archived=False,
                check_in_images=[],
                check_out_images=[],
            )
            apply_partial_update(car, fields, CAR_UPDATABLE_FIELDS, "Car")
            if car.year is None:
                car.year = decode_year(car.vin)

            await self.registry.claim_pipeline(location)
            self.db.add(car)
            await commit_or_raise(self.db, "Car", car.id)

            logger.info("Intake of car %s at location %s on stage %s", car.id, location.id, car.current_stage_id)
            return car

        return await run_with_retry(self.db, intake_once, self.max_retries, "Car", car_id)

    async def update_details(self, car_id: str, changes: Mapping[str, Any]) -> Car:
        """Allow-listed update of descriptive fields only."""
        car = await self.get_car(car_id)
        apply_partial_update(car, changes, CAR_UPDATABLE_FIELDS, "Car")
        car.last_activity = utcnow()
        await commit_or_raise(self.db, "Car", car_id)
        return car

    # Transitions

    async def transition(
        self,
        car_id: str,
        target_stage_id: str,
        author_name: str = "",
        correlation_id: Optional[str] = None,
    ) -> Car:
        """
        Move a car to ``target_stage_id`` and append the matching note.

        Raises:
            ResourceNotFoundError: unknown car
            ValidationError: the car is archived
            InvalidStage: the stage is not in the car's location
        """
        def resolve(car: Car, stages: List[Stage]) -> Stage:
            target = pipeline.find_stage(stages, target_stage_id)
            if target is None:
                raise InvalidStage(target_stage_id, car.location_id)
            return target

        return await run_with_retry(
            self.db,
            lambda: self._move(car_id, resolve, author_name, correlation_id),
            self.max_retries,
            "Car",
            car_id,
        )

    async def advance(self, car_id: str, author_name: str = "", correlation_id: Optional[str] = None) -> Car:
        """
        Move a car to the stage after its current one.

        Raises:
            NoNextStage: the car is on the last stage, or on none
        """
        def resolve(car: Car, stages: List[Stage]) -> Stage:
            target = pipeline.next_stage(stages, car.current_stage_id)
            if target is None:
                raise NoNextStage(car.id, car.current_stage_id)
            return target

        return await run_with_retry(
            self.db,
            lambda: self._move(car_id, resolve, author_name, correlation_id),
            self.max_retries,
            "Car",
            car_id,
        )

    async def _move(
        self,
        car_id: str,
        resolve_target: TargetResolver,
        author_name: str,
        correlation_id: Optional[str],
    ) -> Car:
        car = await self.get_car(car_id)
        if correlation_id and await self._has_note(car_id, correlation_id):
            logger.info("Transition %s of car %s already applied", correlation_id, car_id)
            return car
        if car.is_archived:
            raise ValidationError(f"Car {car_id} is archived", details={"car_id": car_id})

        location = await self.registry.get_location(car.location_id, include_inactive=True)
        stages = pipeline.load_stages(location.stages)
        target = resolve_target(car, stages)
        source = pipeline.find_stage(stages, car.current_stage_id)
        source_name = source.name if source else UNKNOWN_STAGE_NAME
        await self.registry.claim_pipeline(location)

        car.current_stage_id = target.id
        car.last_activity = utcnow()
        self.db.add(Note(
            id=str(uuid.uuid4()),
            car_id=car.id,
            content=f"Moved from {source_name} to {target.name}",
            author_name=author_name or "",
            stage_name=target.name,
            correlation_id=correlation_id,
            created_at=car.last_activity,
        ))
        # Duplicate correlation ids only collide when two retries race
        await commit_or_raise(self.db, "Car", car_id, conflict_on_integrity=bool(correlation_id))

        logger.info("Car %s moved from %s to %s", car_id, source_name, target.name)
        return car

    async def _has_note(self, car_id: str, correlation_id: str) -> bool:
        result = await self.db.execute(
            select(func.count(Note.id)).where(Note.car_id == car_id, Note.correlation_id == correlation_id)
        )
        return result.scalar() > 0

    async def archive(self, car_id: str) -> Car:
        """Mark a car archived. Archiving an archived car is a no-op."""
        async def archive_once() -> Car:
            car = await self.get_car(car_id)
            if car.is_archived:
                return car
            car.is_archived = True
            car.last_activity = utcnow()
            await commit_or_raise(self.db, "Car", car_id)
            logger.info("Archived car %s", car_id)
            return car

        return await run_with_retry(self.db, archive_once, self.max_retries, "Car", car_id)

    # Images

    async def attach_images(
        self,
        car_id: str,
        channel: ImageChannel,
        urls: Sequence[str],
        uploads: Sequence[Tuple[str, str]] = (),
    ) -> Car:
        """
        Append ``urls`` to one of the car's image lists.

        Concurrent calls never lose each other's URLs: a write based on a
        stale list fails its version check and is replayed on the fresh one.

        Args:
            uploads: ``(filename, url)`` pairs of freshly stored files whose
                ``files`` rows are committed together with the append
        """
        async def append_once() -> Car:
            car = await self.get_car(car_id)
            current = list(getattr(car, channel.column) or [])
            setattr(car, channel.column, [*current, *urls])
            car.last_activity = utcnow()
            for filename, url in uploads:
                stage_upload(self.db, filename, url)
            await commit_or_raise(self.db, "Car", car_id)
            return car

        return await run_with_retry(self.db, append_once, self.max_retries, "Car", car_id)

    async def remove_image(self, car_id: str, channel: ImageChannel, index: int) -> Car:
        """
        Remove the image at ``index``.

        Raises:
            IndexOutOfRange: ``index`` is not valid for the current list
            ConcurrencyConflict: the list changed while removing
        """
        car = await self.get_car(car_id)
        current = list(getattr(car, channel.column) or [])
        if index < 0 or index >= len(current):
            raise IndexOutOfRange(index, len(current))

        del current[index]
        setattr(car, channel.column, current)
        car.last_activity = utcnow()
        await commit_or_raise(self.db, "Car", car_id)
        return car

    # Notes

    async def add_note(self, car_id: str, content: str, author_name: str = "") -> Note:
        """Append a free-form note stamped with the car's current stage name."""
        async def add_once() -> Note:
            car = await self.get_car(car_id)
            location = await self.registry.get_location(car.location_id, include_inactive=True)
            stage = pipeline.find_stage(pipeline.load_stages(location.stages), car.current_stage_id)

            car.last_activity = utcnow()
            note = Note(
                id=str(uuid.uuid4()),
                car_id=car.id,
                content=content,
                author_name=author_name or "",
                stage_name=stage.name if stage else UNKNOWN_STAGE_NAME,
                created_at=car.last_activity,
            )
            self.db.add(note)
            await commit_or_raise(self.db, "Car", car_id)
            return note

        return await run_with_retry(self.db, add_once, self.max_retries, "Car", car_id)

    async def list_notes(self, car_id: str) -> List[Note]:
        """Notes of a car, newest first."""
        await self.get_car(car_id)
        result = await self.db.execute(
            select(Note).where(Note.car_id == car_id).order_by(Note.created_at.desc())
        )
        return list(result.scalars().all())
