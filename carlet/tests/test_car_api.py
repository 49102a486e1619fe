"""
Vehicle API tests.

Exercises the HTTP surface of intake, transitions, notes, parts and
images, including location scoping and the error envelope.
"""

import pytest

VIN = "5YJ3E1EA7MF000001"


@pytest.fixture
async def car(client, staff_headers, seeded):
    response = await client.post("/v1/cars", headers=staff_headers, json={
        "location_id": seeded.id,
        "vin": VIN,
        "make": "Tesla",
        "model": "Model 3",
        "customer_name": "Grace",
        "customer_email": "grace@example.com",
    })
    assert response.status_code == 201
    return response.json()


# TEST 1: Intake and reads
@pytest.mark.asyncio
async def test_intake_response(car, seeded):
    assert car["current_stage_id"] == "s1"
    assert car["year"] == 2021
    assert car["location_id"] == seeded.id
    assert car["is_archived"] is False
    assert car["check_in_images"] == []


@pytest.mark.asyncio
async def test_intake_rejects_stage_field(client, staff_headers, seeded):
    response = await client.post("/v1/cars", headers=staff_headers, json={
        "location_id": seeded.id, "vin": VIN, "current_stage_id": "s3"
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_staff_cannot_intake_elsewhere(client, staff_headers, other_location):
    response = await client.post("/v1/cars", headers=staff_headers, json={"location_id": other_location.id, "vin": VIN})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_and_search(client, staff_headers, car):
    listed = await client.get("/v1/cars", headers=staff_headers, params={"q": "grace"})
    assert [c["id"] for c in listed.json()] == [car["id"]]
    
    none = await client.get("/v1/cars", headers=staff_headers, params={"q": "nobody"})
    assert none.json() == []


@pytest.mark.asyncio
async def test_staff_list_is_scoped_to_own_location(client, admin_headers, staff_headers, other_location, car):
    foreign = await client.post("/v1/cars", headers=admin_headers, json={"location_id": other_location.id, "vin": VIN})
    assert foreign.status_code == 201
    
    staff_view = await client.get("/v1/cars", headers=staff_headers)
    assert [c["id"] for c in staff_view.json()] == [car["id"]]
    
    admin_view = await client.get("/v1/cars", headers=admin_headers)
    assert len(admin_view.json()) == 2
    
    denied = await client.get(f"/v1/cars/{foreign.json()['id']}", headers=staff_headers)
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_unknown_car(client, staff_headers, seeded):
    response = await client.get("/v1/cars/missing", headers=staff_headers)
    
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_update_details(client, staff_headers, car):
    response = await client.patch(f"/v1/cars/{car['id']}", headers=staff_headers, json={"license_plate": "B-XY 42"})
    assert response.status_code == 200
    assert response.json()["license_plate"] == "B-XY 42"
    
    rejected = await client.patch(f"/v1/cars/{car['id']}", headers=staff_headers, json={"is_archived": True})
    assert rejected.status_code == 422


# TEST 2: Transitions
@pytest.mark.asyncio
async def test_transition_and_notes(client, staff_headers, car):
    response = await client.post(f"/v1/cars/{car['id']}/transition", headers=staff_headers, json={"stage_id": "s3"})
    assert response.status_code == 200
    assert response.json()["current_stage_id"] == "s3"
    
    notes = (await client.get(f"/v1/cars/{car['id']}/notes", headers=staff_headers)).json()
    assert len(notes) == 1
    assert notes[0]["stage_name"] == "Repair"
    assert notes[0]["author_name"] == "Tech"


@pytest.mark.asyncio
async def test_transition_to_foreign_stage(client, staff_headers, car, other_location):
    response = await client.post(f"/v1/cars/{car['id']}/transition", headers=staff_headers, json={"stage_id": "x1"})
    
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_STAGE"


@pytest.mark.asyncio
async def test_transition_retry_is_idempotent(client, staff_headers, car):
    body = {"stage_id": "s2", "correlation_id": "tablet-7-0001"}
    
    first = await client.post(f"/v1/cars/{car['id']}/transition", headers=staff_headers, json=body)
    second = await client.post(f"/v1/cars/{car['id']}/transition", headers=staff_headers, json=body)
    
    assert first.status_code == second.status_code == 200
    notes = (await client.get(f"/v1/cars/{car['id']}/notes", headers=staff_headers)).json()
    assert len(notes) == 1


@pytest.mark.asyncio
async def test_advance_to_end(client, staff_headers, car):
    for expected in ["s2", "s3", "s4"]:
        response = await client.post(f"/v1/cars/{car['id']}/advance", headers=staff_headers)
        assert response.json()["current_stage_id"] == expected
    
    response = await client.post(f"/v1/cars/{car['id']}/advance", headers=staff_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_NO_NEXT_STAGE"


@pytest.mark.asyncio
async def test_archive_twice(client, staff_headers, car):
    for _ in range(2):
        response = await client.post(f"/v1/cars/{car['id']}/archive", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["is_archived"] is True


# TEST 3: Notes and parts
@pytest.mark.asyncio
async def test_free_note(client, staff_headers, car):
    response = await client.post(f"/v1/cars/{car['id']}/notes", headers=staff_headers, json={"content": "Scratch on door"})
    
    assert response.status_code == 201
    assert response.json()["stage_name"] == "Check In"


@pytest.mark.asyncio
async def test_parts_flow(client, staff_headers, car):
    created = await client.post(f"/v1/cars/{car['id']}/parts", headers=staff_headers, json={
        "name": "Headlight", "cost": 149.999, "vendor": "Parts Co", "eta": "2026-11-02"
    })
    assert created.status_code == 201
    part = created.json()
    assert part["cost"] == 149.999
    assert part["status"] == "needed"
    
    installed = await client.put(f"/v1/parts/{part['id']}/status", headers=staff_headers, json={"status": "installed"})
    assert installed.json()["status"] == "installed"
    
    back = await client.put(f"/v1/parts/{part['id']}/status", headers=staff_headers, json={"status": "ordered"})
    assert back.json()["status"] == "ordered"
    
    listed = await client.get(f"/v1/cars/{car['id']}/parts", headers=staff_headers)
    assert [p["id"] for p in listed.json()] == [part["id"]]


@pytest.mark.asyncio
async def test_negative_part_cost(client, staff_headers, car):
    response = await client.post(f"/v1/cars/{car['id']}/parts", headers=staff_headers, json={"name": "Bolt", "cost": -5})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_part_status(client, staff_headers, car):
    part = (await client.post(f"/v1/cars/{car['id']}/parts", headers=staff_headers, json={"name": "Bolt"})).json()
    
    response = await client.put(f"/v1/parts/{part['id']}/status", headers=staff_headers, json={"status": "lost"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_part_update_rejects_null_required_fields(client, staff_headers, car):
    part = (await client.post(f"/v1/cars/{car['id']}/parts", headers=staff_headers, json={"name": "Bolt", "vendor": "Acme"})).json()

    for field in ("name", "quantity", "status"):
        response = await client.patch(f"/v1/parts/{part['id']}", headers=staff_headers, json={field: None})
        assert response.status_code == 422
        assert response.json()["error_code"] == "ERR_VALIDATION"

    cleared = await client.patch(f"/v1/parts/{part['id']}", headers=staff_headers, json={"vendor": None})
    assert cleared.status_code == 200
    assert cleared.json()["vendor"] is None
    assert cleared.json()["name"] == "Bolt"


# TEST 4: Images by URL
@pytest.mark.asyncio
async def test_attach_and_remove_image_urls(client, staff_headers, car):
    attached = await client.post(f"/v1/cars/{car['id']}/images", headers=staff_headers, json={
        "channel": "check_out", "urls": ["/uploads/1.jpg", "/uploads/2.jpg"]
    })
    assert attached.json()["check_out_images"] == ["/uploads/1.jpg", "/uploads/2.jpg"]
    
    removed = await client.delete(f"/v1/cars/{car['id']}/images/check_out/0", headers=staff_headers)
    assert removed.json()["check_out_images"] == ["/uploads/2.jpg"]
    
    out_of_range = await client.delete(f"/v1/cars/{car['id']}/images/check_out/5", headers=staff_headers)
    assert out_of_range.status_code == 400
    assert out_of_range.json()["error_code"] == "ERR_INDEX_OUT_OF_RANGE"


@pytest.mark.asyncio
async def test_vin_decode(client, staff_headers):
    response = await client.post("/v1/vin/decode", headers=staff_headers, json={"vin": "1hgcm82633a004352"})
    
    assert response.status_code == 200
    assert response.json() == {"year": 2003, "make": "", "model": "", "trim": ""}
