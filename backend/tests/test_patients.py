# tests/test_patients.py
from datetime import date, time, timedelta

from sqlalchemy import func, select

from app.db.models import AppointmentModel, MoodEntryModel, UserModel

from tests._helpers import auth_headers


async def add_moods(session_factory, patient, scores_by_days_ago):
    async with session_factory() as db:
        for days_ago, score in scores_by_days_ago:
            db.add(
                MoodEntryModel(
                    user_id=patient.id,
                    mood_score=score,
                    entry_date=date.today() - timedelta(days=days_ago),
                )
            )
        await db.commit()


async def add_appointment(session_factory, patient, provider, days_from_today, status, notes=None):
    async with session_factory() as db:
        db.add(
            AppointmentModel(
                patient_id=patient.id,
                provider_id=provider.id,
                appointment_date=date.today() + timedelta(days=days_from_today),
                appointment_time=time(10, 0),
                type="individual",
                status=status,
                notes=notes,
            )
        )
        await db.commit()


async def test_providers_search_patients(client, patient, make_user, psychiatrist):
    await make_user(name="Lim Mei Ling", email="mei@mindcare.my")
    resp = await client.get("/api/patients", params={"search": "mei"}, headers=auth_headers(psychiatrist))
    assert resp.status_code == 200
    assert [p["full_name"] for p in resp.json()["patients"]] == ["Lim Mei Ling"]


async def test_patients_cannot_list_patients(client, patient):
    resp = await client.get("/api/patients", headers=auth_headers(patient))
    assert resp.status_code == 403


async def test_admin_creates_patient(client, admin):
    body = {"username": "priya.d", "name": "Priya Devi", "email": "priya@mindcare.my", "password": "Priya123"}
    resp = await client.post("/api/patients", json=body, headers=auth_headers(admin))
    assert resp.status_code == 201
    assert resp.json()["username"] == "priya.d"

    duplicate = await client.post(
        "/api/patients", json={**body, "email": "other@mindcare.my"}, headers=auth_headers(admin)
    )
    assert duplicate.status_code == 409


async def test_profile_read_and_update(client, patient, psychiatrist):
    headers = auth_headers(patient)
    profile = (await client.get("/api/patients/profile", headers=headers)).json()["profile"]
    assert profile["email"] == patient.email

    resp = await client.put(
        "/api/patients/profile",
        json={"name": "Ahmad F.", "email": "ahmad.new@mindcare.my", "phone": "0123456789", "date_of_birth": "1990-01-01"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["profile"]["full_name"] == "Ahmad F."
    assert resp.json()["profile"]["date_of_birth"] == "1990-01-01"

    taken = await client.put(
        "/api/patients/profile", json={"name": "Ahmad", "email": psychiatrist.email}, headers=headers
    )
    assert taken.status_code == 409


async def test_export_data_is_an_attachment(client, patient, psychiatrist, session_factory):
    await add_moods(session_factory, patient, [(1, 6), (2, 5)])
    await add_appointment(session_factory, patient, psychiatrist, -3, "completed")

    resp = await client.get("/api/patients/export-data", headers=auth_headers(patient))
    assert resp.status_code == 200
    assert resp.headers["content-disposition"].startswith("attachment")
    data = resp.json()
    assert "password_hash" not in data["profile"]
    assert data["summary"]["total_mood_entries"] == 2
    assert data["summary"]["total_appointments"] == 1
    assert data["summary"]["has_treatment_plan"] is False


async def test_delete_account_removes_owned_rows(client, patient, psychiatrist, session_factory):
    await add_moods(session_factory, patient, [(1, 6)])
    await add_appointment(session_factory, patient, psychiatrist, 2, "pending")
    await client.post(
        "/api/messages", json={"receiver_id": psychiatrist.id, "content": "Hi"}, headers=auth_headers(patient)
    )

    resp = await client.delete("/api/patients/delete-account", headers=auth_headers(patient))
    assert resp.status_code == 200

    async with session_factory() as db:
        assert await db.get(UserModel, patient.id) is None
        assert await db.scalar(select(func.count(MoodEntryModel.id))) == 0
        assert await db.scalar(select(func.count(AppointmentModel.id))) == 0
        assert await db.get(UserModel, psychiatrist.id) is not None


async def test_clinical_notes(client, patient, psychiatrist):
    headers = auth_headers(psychiatrist)
    created = await client.post(
        "/api/patients/notes",
        json={"patient_id": patient.id, "note_content": "Discussed sleep routine"},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["provider_name"] == psychiatrist.full_name

    notes = (await client.get("/api/patients/notes", params={"patient_id": patient.id}, headers=headers)).json()
    assert [n["note_content"] for n in notes["notes"]] == ["Discussed sleep routine"]


async def test_notes_for_unknown_patient(client, psychiatrist):
    resp = await client.get("/api/patients/notes", params={"patient_id": 999}, headers=auth_headers(psychiatrist))
    assert resp.status_code == 404


async def test_treatment_plan_upsert_writes_note(client, patient, counselor):
    headers = auth_headers(counselor)
    empty = await client.get("/api/patients/treatment-plan", params={"patient_id": patient.id}, headers=headers)
    assert empty.json()["treatment_plan"] is None

    body = {"patient_id": patient.id, "treatment_goal": "Reduce panic attacks", "session_frequency": "Weekly"}
    first = await client.put("/api/patients/treatment-plan", json=body, headers=headers)
    assert first.status_code == 200
    plan = first.json()["treatment_plan"]
    assert plan["updated_by_name"] == counselor.full_name

    second = await client.put(
        "/api/patients/treatment-plan", json={**body, "session_frequency": "Fortnightly"}, headers=headers
    )
    assert second.json()["treatment_plan"]["id"] == plan["id"]
    assert second.json()["treatment_plan"]["session_frequency"] == "Fortnightly"

    notes = (await client.get("/api/patients/notes", params={"patient_id": patient.id}, headers=headers)).json()
    assert len(notes["notes"]) == 2
    assert notes["notes"][0]["note_content"].startswith("Treatment plan updated: Goal - Reduce panic attacks")


async def test_progress_summary(client, patient, psychiatrist, session_factory):
    # seven low entries followed by seven high ones
    await add_moods(session_factory, patient, [(20 - i, 3) for i in range(7)] + [(7 - i, 8) for i in range(7)])
    await add_appointment(session_factory, patient, psychiatrist, -5, "completed", "Ongoing anxiety work")
    await add_appointment(session_factory, patient, psychiatrist, 4, "confirmed")

    resp = await client.get("/api/patients/progress", headers=auth_headers(psychiatrist))
    assert resp.status_code == 200
    summary = resp.json()["patients"][0]
    assert summary["initial_avg_mood"] == 3
    assert summary["recent_avg_mood"] == 8
    assert summary["progress"] == 80
    assert summary["trend"] == "improving"
    assert summary["condition"] == "Generalized Anxiety Disorder"
    assert summary["total_sessions"] == 1
    assert summary["next_appointment"] == (date.today() + timedelta(days=4)).isoformat()


async def test_progress_detail(client, patient, psychiatrist, session_factory):
    await add_moods(session_factory, patient, [(0, 7), (1, 9)])
    await add_appointment(
        session_factory, patient, psychiatrist, -2, "completed", "Low mood. Started sertraline 50mg."
    )

    resp = await client.get(
        "/api/patients/progress", params={"patient_id": patient.id}, headers=auth_headers(psychiatrist)
    )
    assert resp.status_code == 200
    detail = resp.json()["patient"]
    assert detail["mood_scores"] == [5, 5, 5, 5, 5, 5, 8]
    assert detail["medications"] == ["Sertraline 50mg"]
    assert detail["notes"] == "Low mood. Started sertraline 50mg."
    assert len(detail["recent_mood_entries"]) == 2


async def test_progress_is_for_psychiatrists_and_admins(client, counselor):
    resp = await client.get("/api/patients/progress", headers=auth_headers(counselor))
    assert resp.status_code == 403
