"""
Parts tracking tests.
"""

import pytest
from datetime import date
from carlet.app.core.exceptions import ResourceNotFoundError, ValidationError
from carlet.app.domain.workflow.vehicle_workflow import VehicleWorkflow
from carlet.app.models.enums import PartStatus
from carlet.app.services.board import build_board
from carlet.app.services.parts import PartsService, count_pending_parts


@pytest.fixture
def parts(db_session):
    return PartsService(db_session)


@pytest.fixture
async def car(db_session, seeded):
    return await VehicleWorkflow(db_session).intake(seeded.id, {"vin": "1HGCM82633A004352"})


# TEST 1: Add
@pytest.mark.asyncio
async def test_cost_is_stored_unrounded(parts, car):
    part = await parts.add_part(car.id, "Brake pads", cost=149.999, vendor="Acme", eta=date(2026, 1, 15))
    
    reloaded = await parts.get_part(part.id)
    assert reloaded.cost == 149.999
    assert reloaded.status == PartStatus.NEEDED
    assert reloaded.quantity == 1
    assert reloaded.eta == date(2026, 1, 15)


@pytest.mark.asyncio
async def test_negative_cost_rejected(parts, car):
    with pytest.raises(ValidationError):
        await parts.add_part(car.id, "Rotor", cost=-1.0)
    
    assert await parts.list_parts(car.id) == []


@pytest.mark.asyncio
async def test_add_part_to_unknown_car(parts, seeded):
    with pytest.raises(ResourceNotFoundError):
        await parts.add_part("missing", "Rotor")


@pytest.mark.asyncio
async def test_add_part_refreshes_car_activity(parts, car, db_session):
    workflow = VehicleWorkflow(db_session)
    before = (await workflow.get_car(car.id)).last_activity
    
    await parts.add_part(car.id, "Filter")
    
    assert (await workflow.get_car(car.id)).last_activity > before


# TEST 2: Status changes in any order
@pytest.mark.asyncio
async def test_status_may_move_freely(parts, car):
    part = await parts.add_part(car.id, "Bumper")
    
    for status in [PartStatus.INSTALLED, PartStatus.NEEDED, PartStatus.RETURNED, PartStatus.SHIPPED]:
        part = await parts.set_part_status(part.id, status)
        assert part.status == status


@pytest.mark.asyncio
async def test_update_part_rejects_unknown_fields(parts, car):
    part = await parts.add_part(car.id, "Mirror")
    
    with pytest.raises(ValidationError):
        await parts.update_part(part.id, {"car_id": "other"})
    
    updated = await parts.update_part(part.id, {"quantity": 2, "notes": "left side"})
    assert updated.quantity == 2
    assert updated.car_id == car.id


# TEST 3: Pending counts and board
@pytest.mark.asyncio
async def test_pending_counts_exclude_resolved(parts, car, db_session):
    await parts.add_part(car.id, "A")
    await parts.add_part(car.id, "B", status=PartStatus.ORDERED)
    await parts.add_part(car.id, "C", status=PartStatus.INSTALLED)
    await parts.add_part(car.id, "D", status=PartStatus.RETURNED)
    
    counts = await count_pending_parts(db_session, [car.id, "no-parts"])
    
    assert counts == {car.id: 2, "no-parts": 0}


@pytest.mark.asyncio
async def test_board_groups_active_cars_by_stage(parts, car, db_session, seeded):
    workflow = VehicleWorkflow(db_session)
    second = await workflow.intake(seeded.id, {"vin": "5YJ3E1EA7MF000001"})
    archived = await workflow.intake(seeded.id, {"vin": "5YJ3E1EA7MF000002"})
    await workflow.advance(second.id)
    await workflow.archive(archived.id)
    await parts.add_part(car.id, "Hood")
    
    board = await build_board(db_session, seeded.id)
    
    columns = {column["stage"].id: column for column in board["stages"]}
    assert [column["stage"].id for column in board["stages"]] == ["s1", "s2", "s3", "s4"]
    assert columns["s1"]["car_count"] == 1
    assert columns["s1"]["cars"][0][0].id == car.id
    assert columns["s1"]["cars"][0][1] == 1
    assert columns["s2"]["car_count"] == 1
    assert columns["s3"]["car_count"] == 0
    assert board["unstaged"] == []
