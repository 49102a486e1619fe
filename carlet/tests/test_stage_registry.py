"""
Stage registry tests.

Covers pipeline ordering rules, reorder validation and stage removal.
"""

import pytest
from carlet.app.core.exceptions import (
    InvalidPermutation, ResourceNotFoundError, StageInUse, ValidationError
)
from carlet.app.domain.workflow import stages as pipeline
from carlet.app.domain.workflow.stage_registry import StageRegistry, validate_new_location_stages
from carlet.app.domain.workflow.stages import Stage
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow


def ids(stages):
    return [stage.id for stage in stages]


# TEST 1: Pure pipeline rules
def test_next_stage_rules():
    stages = [Stage(id="a", name="A"), Stage(id="b", name="B")]
    
    assert pipeline.next_stage(stages, "a").id == "b"
    assert pipeline.next_stage(stages, "b") is None
    assert pipeline.next_stage(stages, None) is None
    assert pipeline.next_stage(stages, "zzz") is None
    assert pipeline.next_stage([], None) is None


def test_reorder_reports_every_kind_of_mismatch():
    stages = [Stage(id="a", name="A"), Stage(id="b", name="B"), Stage(id="c", name="C")]
    
    with pytest.raises(InvalidPermutation) as exc:
        pipeline.reorder(stages, ["a", "a", "z"])
    
    assert exc.value.details == {
        "duplicate_ids": ["a"],
        "missing_ids": ["b", "c"],
        "unknown_ids": ["z"],
    }
    assert ids(pipeline.reorder(stages, ["c", "a", "b"])) == ["c", "a", "b"]


def test_new_location_stages_get_ids_and_reject_duplicates():
    stages = validate_new_location_stages([{"name": "Wash"}, {"id": "dry", "name": "Dry", "color": "#000"}])
    assert stages[0].id
    assert stages[0].color == "#64748b"
    assert stages[1].id == "dry"
    
    with pytest.raises(ValidationError):
        validate_new_location_stages([{"id": "x", "name": "A"}, {"id": "x", "name": "B"}])


# TEST 2: Registry reads
@pytest.mark.asyncio
async def test_list_stages_in_order(db_session, seeded):
    registry = StageRegistry(db_session)
    
    stages = await registry.list_stages(seeded.id)
    
    assert [s.name for s in stages] == ["Check In", "Inspection", "Repair", "Check Out"]
    assert (await registry.next_stage(seeded.id, "s2")).id == "s3"
    assert await registry.next_stage(seeded.id, "s4") is None


@pytest.mark.asyncio
async def test_location_without_stages_is_empty(db_session):
    registry = StageRegistry(db_session)
    location = await registry.create_location(name="Empty Shop")
    
    assert await registry.list_stages(location.id) == []


@pytest.mark.asyncio
async def test_unknown_location_not_found(db_session):
    with pytest.raises(ResourceNotFoundError):
        await StageRegistry(db_session).list_stages("nope")


# TEST 3: Reorder
@pytest.mark.asyncio
async def test_reorder_applies_permutation(db_session, seeded):
    registry = StageRegistry(db_session)
    
    await registry.reorder_stages(seeded.id, ["s4", "s3", "s2", "s1"])
    
    assert ids(await registry.list_stages(seeded.id)) == ["s4", "s3", "s2", "s1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("new_order", [
    ["s1", "s2", "s3"],
    ["s1", "s2", "s3", "s3"],
    ["s1", "s2", "s3", "s4", "x1"],
])
async def test_invalid_reorder_leaves_order_unchanged(db_session, seeded, other_location, new_order):
    registry = StageRegistry(db_session)
    
    with pytest.raises(InvalidPermutation):
        await registry.reorder_stages(seeded.id, new_order)
    
    assert ids(await registry.list_stages(seeded.id)) == ["s1", "s2", "s3", "s4"]


# TEST 4: Add / update
@pytest.mark.asyncio
async def test_add_stage_appends_with_fresh_id(db_session, seeded):
    registry = StageRegistry(db_session)
    
    stage = await registry.add_stage(seeded.id, "Detailing", "#ff0000")
    
    stages = await registry.list_stages(seeded.id)
    assert stages[-1] == stage
    assert stage.id not in ["s1", "s2", "s3", "s4"]


@pytest.mark.asyncio
async def test_update_stage_keeps_rank(db_session, seeded):
    registry = StageRegistry(db_session)
    
    updated = await registry.update_stage(seeded.id, "s2", name="Diagnosis")
    
    stages = await registry.list_stages(seeded.id)
    assert stages[1] == updated
    assert updated.name == "Diagnosis"
    assert updated.color == "#06b6d4"


@pytest.mark.asyncio
async def test_update_location_rejects_unknown_fields(db_session, seeded):
    with pytest.raises(ValidationError) as exc:
        await StageRegistry(db_session).update_location(seeded.id, {"name": "New", "stages": []})
    
    assert exc.value.details == {"fields": ["stages"]}


# TEST 5: Remove
@pytest.mark.asyncio
async def test_remove_stage_in_use_is_refused(db_session, seeded):
    registry = StageRegistry(db_session)
    await VehicleWorkflow(db_session).intake(seeded.id, {"vin": "1HGCM82633A004352"})
    
    with pytest.raises(StageInUse) as exc:
        await registry.remove_stage(seeded.id, "s1")
    
    assert exc.value.details["car_count"] == 1
    assert ids(await registry.list_stages(seeded.id)) == ["s1", "s2", "s3", "s4"]


@pytest.mark.asyncio
async def test_remove_stage_clears_archived_cars(db_session, seeded):
    registry = StageRegistry(db_session)
    workflow = VehicleWorkflow(db_session)
    car = await workflow.intake(seeded.id, {"vin": "1HGCM82633A004352"})
    await workflow.archive(car.id)
    
    await registry.remove_stage(seeded.id, "s1")
    
    assert ids(await registry.list_stages(seeded.id)) == ["s2", "s3", "s4"]
    refreshed = await workflow.get_car(car.id)
    assert refreshed.current_stage_id is None
    assert refreshed.is_archived is True


@pytest.mark.asyncio
async def test_remove_unknown_stage(db_session, seeded):
    with pytest.raises(ResourceNotFoundError):
        await StageRegistry(db_session).remove_stage(seeded.id, "missing")
