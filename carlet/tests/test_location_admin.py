"""
Location and stage administration API tests.
"""

import pytest


def stage_ids(response):
    return [stage["id"] for stage in response.json()["stages"]]


# TEST 1: Locations
@pytest.mark.asyncio
async def test_admin_creates_location_with_stages(client, admin_headers):
    response = await client.post("/v1/locations", headers=admin_headers, json={
        "name": "Body Shop",
        "timezone": "Europe/Berlin",
        "stages": [{"name": "Estimate"}, {"id": "paint", "name": "Paint", "color": "#ff0000"}],
    })
    
    assert response.status_code == 201
    data = response.json()
    assert data["timezone"] == "Europe/Berlin"
    assert [s["name"] for s in data["stages"]] == ["Estimate", "Paint"]
    assert data["stages"][1] == {"id": "paint", "name": "Paint", "color": "#ff0000"}


@pytest.mark.asyncio
async def test_duplicate_stage_ids_rejected(client, admin_headers):
    response = await client.post("/v1/locations", headers=admin_headers, json={
        "name": "Dupes",
        "stages": [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}],
    })
    
    assert response.status_code == 400
    assert response.json()["details"] == {"duplicate_ids": ["a"]}


@pytest.mark.asyncio
async def test_staff_sees_only_own_location(client, staff_headers, other_location, seeded):
    response = await client.get("/v1/locations", headers=staff_headers)
    assert [loc["id"] for loc in response.json()] == [seeded.id]
    
    forbidden = await client.get(f"/v1/locations/{other_location.id}/stages", headers=staff_headers)
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_staff_cannot_edit_stages(client, staff_headers, seeded):
    response = await client.post(f"/v1/locations/{seeded.id}/stages", headers=staff_headers, json={"name": "X"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_location_rejects_stage_list(client, admin_headers, seeded):
    response = await client.patch(f"/v1/locations/{seeded.id}", headers=admin_headers, json={"stages": []})
    assert response.status_code == 422
    
    renamed = await client.patch(f"/v1/locations/{seeded.id}", headers=admin_headers, json={"name": "Main Shop"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Main Shop"
    assert len(renamed.json()["stages"]) == 4


# TEST 2: Stages
@pytest.mark.asyncio
async def test_stage_lifecycle(client, admin_headers, seeded):
    base = f"/v1/locations/{seeded.id}/stages"
    
    added = await client.post(base, headers=admin_headers, json={"name": "Detailing", "color": "#abcdef"})
    assert added.status_code == 201
    new_id = added.json()["id"]
    
    renamed = await client.patch(f"{base}/{new_id}", headers=admin_headers, json={"name": "Detail"})
    assert renamed.json() == {"id": new_id, "name": "Detail", "color": "#abcdef"}
    
    reordered = await client.put(f"{base}/order", headers=admin_headers, json={"stage_ids": [new_id, "s1", "s2", "s3", "s4"]})
    assert reordered.status_code == 200
    assert stage_ids(reordered) == [new_id, "s1", "s2", "s3", "s4"]
    
    nxt = await client.get(f"{base}/next", headers=admin_headers, params={"current_stage_id": new_id})
    assert nxt.json()["next_stage"]["id"] == "s1"
    
    removed = await client.delete(f"{base}/{new_id}", headers=admin_headers)
    assert removed.status_code == 204
    assert stage_ids(await client.get(base, headers=admin_headers)) == ["s1", "s2", "s3", "s4"]


@pytest.mark.asyncio
async def test_next_stage_of_last_is_null(client, staff_headers, seeded):
    response = await client.get(
        f"/v1/locations/{seeded.id}/stages/next", headers=staff_headers, params={"current_stage_id": "s4"}
    )
    assert response.status_code == 200
    assert response.json()["next_stage"] is None


@pytest.mark.asyncio
async def test_invalid_reorder_keeps_order(client, admin_headers, seeded):
    base = f"/v1/locations/{seeded.id}/stages"
    
    response = await client.put(f"{base}/order", headers=admin_headers, json={"stage_ids": ["s2", "s1", "s3"]})
    
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_PERMUTATION"
    assert response.json()["details"]["missing_ids"] == ["s4"]
    assert stage_ids(await client.get(base, headers=admin_headers)) == ["s1", "s2", "s3", "s4"]


@pytest.mark.asyncio
async def test_remove_stage_in_use(client, admin_headers, seeded):
    intake = await client.post("/v1/cars", headers=admin_headers, json={"location_id": seeded.id, "vin": "1HGCM82633A004352"})
    assert intake.status_code == 201
    
    response = await client.delete(f"/v1/locations/{seeded.id}/stages/s1", headers=admin_headers)
    
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STAGE_IN_USE"
    assert stage_ids(await client.get(f"/v1/locations/{seeded.id}/stages", headers=admin_headers))[0] == "s1"


@pytest.mark.asyncio
async def test_deactivated_location_refuses_intake(client, admin_headers, seeded):
    assert (await client.delete(f"/v1/locations/{seeded.id}", headers=admin_headers)).status_code == 200
    
    response = await client.post("/v1/cars", headers=admin_headers, json={"location_id": seeded.id, "vin": "1HGCM82633A004352"})
    assert response.status_code == 400


# TEST 3: Board
@pytest.mark.asyncio
async def test_board(client, staff_headers, seeded):
    car = (await client.post("/v1/cars", headers=staff_headers, json={"location_id": seeded.id, "vin": "1HGCM82633A004352"})).json()
    await client.post(f"/v1/cars/{car['id']}/parts", headers=staff_headers, json={"name": "Tire", "quantity": 4})
    
    response = await client.get(f"/v1/locations/{seeded.id}/board", headers=staff_headers)
    
    assert response.status_code == 200
    columns = response.json()["stages"]
    assert [c["stage"]["name"] for c in columns] == ["Check In", "Inspection", "Repair", "Check Out"]
    assert columns[0]["car_count"] == 1
    assert columns[0]["cars"][0]["id"] == car["id"]
    assert columns[0]["cars"][0]["pending_parts"] == 1
    assert response.json()["unstaged"] == []
