# tests/test_mood.py
from datetime import date, timedelta

from tests._helpers import auth_headers


def entry(days_ago=0, **overrides):
    return {
        "mood_score": 6,
        "anxiety_level": 4,
        "stress_level": 5,
        "sleep_hours": 7.5,
        "notes": "Okay day",
        "entry_date": (date.today() - timedelta(days=days_ago)).isoformat(),
        **overrides,
    }


async def test_patient_records_mood(client, patient):
    resp = await client.post("/api/mood", json=entry(), headers=auth_headers(patient))
    assert resp.status_code == 201
    assert resp.json()["entry"]["mood_score"] == 6
    assert resp.json()["entry"]["user_id"] == patient.id


async def test_entries_listed_newest_first(client, patient):
    headers = auth_headers(patient)
    for days_ago, score in ((3, 4), (1, 7), (2, 5)):
        await client.post("/api/mood", json=entry(days_ago, mood_score=score), headers=headers)

    resp = await client.get("/api/mood", headers=headers)
    assert [e["mood_score"] for e in resp.json()["entries"]] == [7, 5, 4]


async def test_list_is_capped_at_thirty(client, patient):
    headers = auth_headers(patient)
    for days_ago in range(32):
        await client.post("/api/mood", json=entry(days_ago), headers=headers)
    resp = await client.get("/api/mood", headers=headers)
    assert len(resp.json()["entries"]) == 30


async def test_scores_must_be_on_scale(client, patient):
    headers = auth_headers(patient)
    assert (await client.post("/api/mood", json=entry(mood_score=11), headers=headers)).status_code == 422
    assert (await client.post("/api/mood", json=entry(stress_level=0), headers=headers)).status_code == 422
    assert (await client.post("/api/mood", json=entry(sleep_hours=25), headers=headers)).status_code == 422


async def test_only_patients_record_mood(client, counselor):
    resp = await client.post("/api/mood", json=entry(), headers=auth_headers(counselor))
    assert resp.status_code == 403


async def test_entries_are_private(client, patient, make_user):
    other = await make_user()
    await client.post("/api/mood", json=entry(), headers=auth_headers(patient))
    resp = await client.get("/api/mood", headers=auth_headers(other))
    assert resp.json()["entries"] == []
