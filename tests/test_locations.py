from app.models import ConsultationLocation, TimeSlot
from conftest import add_consultation


def location_body(**overrides):
    body = {
        "locationName": "Popular Diagnostic",
        "address": "House 16, Road 2, Dhanmondi",
        "locationType": "chamber",
        "roomNumber": "504",
        "consultationFee": 800,
        "activeDays": [
            {
                "day": "monday",
                "isActive": True,
                "timeSlots": [
                    {"startTime": "09:00", "endTime": "12:00", "slotDuration": 15, "capacity": 3},
                    {"startTime": "17:00", "endTime": "20:00", "slotDuration": 15, "capacity": 5},
                ],
            }
        ],
    }
    body.update(overrides)
    return body


def create(client, **overrides):
    response = client.post("/locations", json=location_body(**overrides))
    assert response.status_code == 201
    return response.json()


def test_create_location_with_schedule(client):
    location = create(client)

    assert location["isPublished"] is False
    assert location["activeDays"][0]["day"] == "Monday"
    slots = location["activeDays"][0]["timeSlots"]
    assert [(s["startTime"], s["capacity"]) for s in slots] == [("09:00", 3), ("17:00", 5)]


def test_slot_window_is_validated(client):
    body = location_body()
    body["activeDays"][0]["timeSlots"][0]["endTime"] = "08:00"

    assert client.post("/locations", json=body).status_code == 422


def test_negative_capacity_is_rejected(client):
    body = location_body()
    body["activeDays"][0]["timeSlots"][0]["capacity"] = -1

    assert client.post("/locations", json=body).status_code == 422


def test_public_listing_shows_only_published(client):
    location = create(client)

    assert client.get("/locations/public/BMDC123456").json() == []

    published = client.patch(f"/locations/{location['id']}/publish", json={"isPublished": True})
    assert published.json()["isPublished"] is True

    listing = client.get("/locations/public/BMDC123456").json()
    assert [loc["id"] for loc in listing] == [location["id"]]


def test_public_listing_unknown_provider(client):
    assert client.get("/locations/public/NOBODY0000").status_code == 404


def test_locations_are_tenant_scoped(client, db, other_doctor):
    from conftest import make_location

    foreign, _ = make_location(db, other_doctor)

    assert client.get("/locations").json() == []
    assert client.get(f"/locations/{foreign.id}").status_code == 404


def test_update_edits_slots_in_place(client):
    location = create(client)
    day = location["activeDays"][0]
    first_slot = day["timeSlots"][0]

    body = location_body(locationName="Popular Diagnostic (Dhanmondi)")
    body["activeDays"] = [
        {
            "id": day["id"],
            "day": "Monday",
            "isActive": True,
            "timeSlots": [
                {
                    "id": first_slot["id"],
                    "startTime": "09:00",
                    "endTime": "12:00",
                    "slotDuration": 15,
                    "capacity": 6,
                }
            ],
        }
    ]
    response = client.put(f"/locations/{location['id']}", json=body)

    assert response.status_code == 200
    updated = response.json()
    assert updated["locationName"] == "Popular Diagnostic (Dhanmondi)"
    slots = updated["activeDays"][0]["timeSlots"]
    assert [(s["id"], s["capacity"]) for s in slots] == [(first_slot["id"], 6)]


def test_update_keeps_booked_slot_switched_off(client, db, tenant):
    location = create(client)
    day = location["activeDays"][0]
    booked_slot, _ = day["timeSlots"]
    add_consultation(
        db,
        tenant,
        db.get(ConsultationLocation, location["id"]),
        db.get(TimeSlot, booked_slot["id"]),
    )

    body = location_body()
    body["activeDays"] = [{"id": day["id"], "day": "Monday", "isActive": True, "timeSlots": []}]
    updated = client.put(f"/locations/{location['id']}", json=body).json()

    slots = updated["activeDays"][0]["timeSlots"]
    assert [(s["id"], s["slotActive"]) for s in slots] == [(booked_slot["id"], False)]


def test_delete_location(client):
    location = create(client)

    assert client.delete(f"/locations/{location['id']}").status_code == 200
    assert client.get(f"/locations/{location['id']}").status_code == 404


def test_delete_refused_when_booked(client, db, tenant):
    location = create(client)
    slot = location["activeDays"][0]["timeSlots"][0]
    add_consultation(
        db, tenant, db.get(ConsultationLocation, location["id"]), db.get(TimeSlot, slot["id"])
    )

    assert client.delete(f"/locations/{location['id']}").status_code == 409
    assert client.get(f"/locations/{location['id']}").status_code == 200
