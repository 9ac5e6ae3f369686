# tests/test_telepsychiatry.py
from datetime import date, time, timedelta

from app.db.models import AppointmentModel

from tests._helpers import auth_headers


async def add_sessions(session_factory, patient, psychiatrist, rows):
    async with session_factory() as db:
        appointments = [
            AppointmentModel(
                patient_id=patient.id,
                provider_id=psychiatrist.id,
                appointment_date=on_date,
                appointment_time=at,
                type=kind,
                status=state,
            )
            for on_date, at, kind, state in rows
        ]
        db.add_all(appointments)
        await db.commit()
        return [a.id for a in appointments]


async def test_todays_remote_sessions_and_queue(client, session_factory, patient, psychiatrist):
    today = date.today()
    await add_sessions(
        session_factory,
        patient,
        psychiatrist,
        [
            (today, time(9, 0), "individual", "confirmed"),
            (today, time(11, 0), "family", "pending"),
            (today, time(13, 0), "group", "confirmed"),
            (today + timedelta(days=1), time(9, 0), "individual", "confirmed"),
        ],
    )

    resp = await client.get("/api/telepsychiatry/sessions", headers=auth_headers(psychiatrist))
    assert resp.status_code == 200
    body = resp.json()
    assert [s["appointment_time"] for s in body["sessions"]] == ["09:00:00", "11:00:00"]
    assert body["sessions"][0]["status"] == "waiting"
    assert body["sessions"][0]["duration"] == "60 min"
    assert body["sessions"][0]["patient_name"] == patient.full_name
    assert body["system_status"] == {"total_today": 2, "waiting": 1, "active": 1}


async def test_sessions_for_another_day(client, session_factory, patient, psychiatrist):
    tomorrow = date.today() + timedelta(days=1)
    await add_sessions(session_factory, patient, psychiatrist, [(tomorrow, time(9, 0), "individual", "pending")])

    resp = await client.get(
        "/api/telepsychiatry/sessions", params={"date": tomorrow.isoformat()}, headers=auth_headers(psychiatrist)
    )
    assert len(resp.json()["sessions"]) == 1


async def test_start_and_end_session_are_logged(client, session_factory, patient, psychiatrist):
    [session_id] = await add_sessions(
        session_factory, patient, psychiatrist, [(date.today(), time(9, 0), "individual", "pending")]
    )
    headers = auth_headers(psychiatrist)

    started = await client.post(
        "/api/telepsychiatry/sessions", json={"session_id": session_id, "action": "start"}, headers=headers
    )
    assert started.status_code == 200
    assert started.json() == {"message": "Session started", "new_status": "confirmed"}

    ended = await client.post(
        "/api/telepsychiatry/sessions", json={"session_id": session_id, "action": "end"}, headers=headers
    )
    assert ended.json() == {"message": "Session ended", "new_status": "completed"}

    notes = await client.get("/api/patients/notes", params={"patient_id": patient.id}, headers=headers)
    logged = [n["note_content"] for n in notes.json()["notes"]]
    assert len(logged) == 2
    assert all(text.startswith("Telepsychiatry session") for text in logged)


async def test_unknown_action_rejected(client, session_factory, patient, psychiatrist):
    [session_id] = await add_sessions(
        session_factory, patient, psychiatrist, [(date.today(), time(9, 0), "individual", "pending")]
    )
    resp = await client.post(
        "/api/telepsychiatry/sessions",
        json={"session_id": session_id, "action": "pause"},
        headers=auth_headers(psychiatrist),
    )
    assert resp.status_code == 422


async def test_other_psychiatrists_session_not_found(client, session_factory, patient, psychiatrist, make_user):
    [session_id] = await add_sessions(
        session_factory, patient, psychiatrist, [(date.today(), time(9, 0), "individual", "pending")]
    )
    colleague = await make_user("psychiatrist")
    resp = await client.post(
        "/api/telepsychiatry/sessions",
        json={"session_id": session_id, "action": "start"},
        headers=auth_headers(colleague),
    )
    assert resp.status_code == 404


async def test_counselors_cannot_use_telepsychiatry(client, counselor):
    resp = await client.get("/api/telepsychiatry/sessions", headers=auth_headers(counselor))
    assert resp.status_code == 403
