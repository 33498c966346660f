import datetime as dt

from app.models import Consultation


def booking_body(location, slot, **overrides):
    body = {
        "name": "Karim Ahmed",
        "age": 42,
        "sex": "Male",
        "phone": "+880 1711-000001",
        "email": "Karim@Example.com",
        "date": "2030-03-04T09:30:00.000Z",
        "timeSlotId": slot.id,
        "consultLocationId": location.id,
        "address": "Mirpur, Dhaka",
        "verificationToken": "turnstile-token",
    }
    body.update(overrides)
    return body


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_public_booking_succeeds(client, chamber):
    location, slot = chamber

    response = client.post("/consultations/public/BMDC123456/book", json=booking_body(location, slot))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Consultation is booked successfully"
    appointment = body["appointment"]
    assert appointment["serialNo"] == 1
    assert appointment["date"] == "2030-03-04"
    assert appointment["requester"]["phone"] == "+8801711000001"
    assert appointment["requester"]["email"] == "karim@example.com"
    assert appointment["provider"] == {"name": "Rahim Uddin", "providerId": "BMDC123456"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert len(client.notifier.calls) == 1


def test_public_booking_slot_full_payload(client, db, doctor):
    from conftest import make_location

    location, slot = make_location(db, doctor, capacity=1)
    client.post("/consultations/public/BMDC123456/book", json=booking_body(location, slot))

    response = client.post(
        "/consultations/public/BMDC123456/book",
        json=booking_body(location, slot, phone="01811000002"),
    )

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["reason"] == "slot_full"
    assert body["title"] == "All Slots Are Booked"
    assert body["slotInfo"]["capacity"] == 1


def test_public_booking_duplicate_payload(client, chamber):
    location, slot = chamber
    client.post("/consultations/public/BMDC123456/book", json=booking_body(location, slot))

    response = client.post("/consultations/public/BMDC123456/book", json=booking_body(location, slot))

    assert response.status_code == 409
    assert response.json()["reason"] == "duplicate_appointment"
    assert response.json()["existingAppointment"]["serialNo"] == 1


def test_public_booking_unknown_provider(client, chamber):
    location, slot = chamber

    response = client.post("/consultations/public/ZZZZ000000/book", json=booking_body(location, slot))

    assert response.status_code == 403
    assert response.json()["reason"] == "provider_not_found"


def test_public_booking_invalid_input_never_reaches_storage(client, db, chamber):
    location, slot = chamber

    response = client.post(
        "/consultations/public/BMDC123456/book",
        json=booking_body(location, slot, phone="123", age=-1),
    )

    assert response.status_code == 422
    assert db.query(Consultation).count() == 0


def test_get_consultation(client, consultation):
    response = client.get(f"/consultations/{consultation.id}")

    assert response.status_code == 200
    assert response.json()["serialNo"] == 1


def test_get_consultation_of_other_tenant(client, db, other_tenant, chamber):
    from conftest import add_consultation

    location, slot = chamber
    foreign = add_consultation(db, other_tenant, location, slot)

    response = client.get(f"/consultations/{foreign.id}")

    assert response.status_code == 404


def test_list_consultations_in_serial_order(client, db, tenant, other_tenant, chamber):
    from conftest import add_consultation

    location, slot = chamber
    add_consultation(db, tenant, location, slot, serial=2)
    add_consultation(db, tenant, location, slot, serial=1)
    add_consultation(db, tenant, location, slot, serial=3, appointment_status="Cancelled")
    add_consultation(
        db,
        tenant,
        location,
        slot,
        serial=1,
        scheduled_at=dt.datetime(2030, 3, 11, 9, 30),
        consultation_date=dt.date(2030, 3, 11),
    )
    add_consultation(db, other_tenant, location, slot, serial=4)

    response = client.get("/consultations", params={"date": "2030-03-04", "locationId": location.id})

    assert response.status_code == 200
    rows = response.json()
    assert [row["serialNo"] for row in rows] == [1, 2, 3]
    assert {row["date"] for row in rows} == {"2030-03-04"}

    booked = client.get("/consultations", params={"status": "booked", "timeSlotId": slot.id})
    assert [(row["date"], row["serialNo"]) for row in booked.json()] == [
        ("2030-03-04", 1),
        ("2030-03-04", 2),
        ("2030-03-11", 1),
    ]


def test_patch_consultation(client, db, consultation):
    response = client.patch(
        f"/consultations/{consultation.id}",
        json={"patientAdvice": "Drink water", "followUp": "2030-03-20"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "updated"
    assert response.json()["updatedFields"] == ["followUp", "patientAdvice"]
    db.expire_all()
    assert db.get(Consultation, consultation.id).patient_advice == "Drink water"


def test_patch_without_fields(client, consultation):
    response = client.patch(f"/consultations/{consultation.id}", json={"unknown": 1})

    assert response.status_code == 400
    assert response.json()["status"] == "no_fields"


def test_cancel_consultation(client, db, consultation):
    response = client.post(f"/consultations/{consultation.id}/cancel")

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Consultation, consultation.id).appointment_status == "Cancelled"


def test_link_patient_and_read_back(client, consultation):
    response = client.post(
        f"/consultations/{consultation.id}/patient",
        json={"name": "Karim Ahmed", "age": 42, "consultType": "new"},
    )

    assert response.status_code == 200
    patient_id = response.json()["patientId"]

    patient = client.get(f"/patients/{patient_id}")
    assert patient.status_code == 200
    assert patient.json()["lastConsultationId"] == consultation.id

    history = client.get(f"/patients/{patient_id}/consultations")
    assert history.status_code == 200
    assert history.json() == []

    recent = client.put(
        f"/patients/{patient_id}/recent-appointment", json={"date": "2030-04-01T00:00:00Z"}
    )
    assert recent.status_code == 200
    assert recent.json()["recentAppointmentDate"] == "2030-04-01"


def test_unknown_patient(client):
    assert client.get("/patients/9999").status_code == 404
