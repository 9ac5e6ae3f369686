# tests/test_appointments.py
from datetime import date, timedelta

import pytest

from app.services import email

from tests._helpers import auth_headers

NEXT_WEEK = (date.today() + timedelta(days=7)).isoformat()


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_deliver(msg):
        sent.append(msg)
        return True

    monkeypatch.setattr(email, "deliver", fake_deliver)
    return sent


def booking(provider, **overrides):
    return {
        "provider_id": provider.id,
        "appointment_date": NEXT_WEEK,
        "appointment_time": "10:00",
        "type": "individual",
        "notes": "First visit",
        **overrides,
    }


async def test_providers_lists_psychiatrists_and_counselors(client, patient, psychiatrist, counselor, admin):
    resp = await client.get("/api/providers", headers=auth_headers(patient))
    assert resp.status_code == 200
    roles = {p["role"] for p in resp.json()["providers"]}
    assert roles == {"psychiatrist", "counselor"}


async def test_patient_books_pending_appointment_and_gets_email(client, patient, psychiatrist, outbox):
    resp = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    assert resp.status_code == 201
    appointment = resp.json()["appointment"]
    assert appointment["status"] == "pending"
    assert appointment["patient_id"] == patient.id
    assert appointment["duration_minutes"] == 60

    assert len(outbox) == 1
    assert outbox[0]["To"] == patient.email
    assert "Confirmation" in outbox[0]["Subject"]


async def test_double_booking_same_slot_conflicts(client, patient, psychiatrist, make_user, outbox):
    other = await make_user()
    first = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    assert first.status_code == 201
    second = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(other))
    assert second.status_code == 409


async def test_cancelled_slot_can_be_rebooked(client, patient, psychiatrist, outbox):
    headers = auth_headers(patient)
    first = await client.post("/api/appointments", json=booking(psychiatrist), headers=headers)
    appointment_id = first.json()["appointment"]["id"]
    await client.patch(f"/api/appointments/{appointment_id}", json={"status": "cancelled"}, headers=headers)

    again = await client.post("/api/appointments", json=booking(psychiatrist), headers=headers)
    assert again.status_code == 201


async def test_booking_unknown_provider(client, patient, admin):
    resp = await client.post("/api/appointments", json=booking(admin), headers=auth_headers(patient))
    assert resp.status_code == 404


async def test_only_patients_can_book(client, psychiatrist, counselor):
    resp = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(counselor))
    assert resp.status_code == 403


async def test_invalid_type_rejected(client, patient, psychiatrist):
    resp = await client.post(
        "/api/appointments", json=booking(psychiatrist, type="massage"), headers=auth_headers(patient)
    )
    assert resp.status_code == 422


async def test_listing_is_scoped_by_role(client, patient, psychiatrist, counselor, admin, make_user, outbox):
    other = await make_user()
    await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    await client.post(
        "/api/appointments", json=booking(counselor, appointment_time="11:00"), headers=auth_headers(other)
    )

    mine = (await client.get("/api/appointments", headers=auth_headers(patient))).json()["appointments"]
    assert len(mine) == 1
    assert mine[0]["provider_name"] == psychiatrist.full_name
    assert mine[0]["patient_name"] is None

    provider_view = (await client.get("/api/appointments", headers=auth_headers(psychiatrist))).json()
    assert [a["patient_email"] for a in provider_view["appointments"]] == [patient.email]

    everything = (await client.get("/api/appointments", headers=auth_headers(admin))).json()["appointments"]
    assert len(everything) == 2


async def test_provider_confirms_and_patient_is_emailed(client, patient, psychiatrist, outbox):
    created = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    appointment_id = created.json()["appointment"]["id"]
    outbox.clear()

    resp = await client.patch(
        f"/api/appointments/{appointment_id}",
        json={"status": "confirmed", "notes": "See you then"},
        headers=auth_headers(psychiatrist),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"
    assert resp.json()["notes"] == "See you then"
    assert len(outbox) == 1
    assert "Confirmed" in outbox[0]["Subject"]


async def test_cannot_update_someone_elses_appointment(client, patient, psychiatrist, counselor, outbox):
    created = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    appointment_id = created.json()["appointment"]["id"]
    resp = await client.patch(
        f"/api/appointments/{appointment_id}", json={"status": "confirmed"}, headers=auth_headers(counselor)
    )
    assert resp.status_code == 404


async def test_no_email_when_notifications_disabled(client, patient, psychiatrist, admin, outbox):
    await client.put("/api/admin/settings", json={"email_notifications": False}, headers=auth_headers(admin))
    resp = await client.post("/api/appointments", json=booking(psychiatrist), headers=auth_headers(patient))
    assert resp.status_code == 201
    assert outbox == []
