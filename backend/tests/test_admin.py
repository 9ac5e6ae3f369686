# tests/test_admin.py
from datetime import date

from app.core.auth import verify_password
from app.db.crud.user import get_user
from app.db.models import MoodEntryModel

from tests._helpers import auth_headers

NEW_USER = {
    "name": "Dr. Lee Wei Ming",
    "email": "lee.weiming@mindcare.my",
    "role": "psychiatrist",
    "temp_password": "Welcome123",
}


async def test_admin_creates_user_with_credentials(client, admin, session_factory):
    resp = await client.post("/api/admin/users", json=NEW_USER, headers=auth_headers(admin))
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["role"] == "psychiatrist"
    assert body["credentials"] == {"username": "dr.lee.wei.ming", "temp_password": "Welcome123"}

    async with session_factory() as db:
        created = await get_user(db, body["user"]["id"])
    assert verify_password("Welcome123", created.password_hash)


async def test_admin_create_duplicate_email(client, admin, patient):
    resp = await client.post(
        "/api/admin/users", json={**NEW_USER, "email": patient.email}, headers=auth_headers(admin)
    )
    assert resp.status_code == 409


async def test_inactive_user_cannot_log_in(client, admin):
    await client.post("/api/admin/users", json={**NEW_USER, "status": "inactive"}, headers=auth_headers(admin))
    resp = await client.post(
        "/api/auth/login", json={"identifier": NEW_USER["email"], "password": NEW_USER["temp_password"]}
    )
    assert resp.status_code == 401


async def test_list_and_update_users(client, admin, patient):
    headers = auth_headers(admin)
    users = (await client.get("/api/admin/users", headers=headers)).json()["users"]
    assert {u["id"] for u in users} == {admin.id, patient.id}

    resp = await client.put(
        "/api/admin/users",
        json={"id": patient.id, "name": "Ahmad F.", "email": patient.email, "role": "patient", "status": "inactive"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Ahmad F."
    assert resp.json()["is_active"] is False

    # deactivated accounts are refused even with a still-valid token
    assert (await client.get("/api/auth/me", headers=auth_headers(patient))).status_code == 401


async def test_update_unknown_user(client, admin):
    resp = await client.put(
        "/api/admin/users",
        json={"id": 999, "name": "Ghost", "email": "ghost@mindcare.my", "role": "patient", "status": "active"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 404


async def test_admin_routes_are_admin_only(client, counselor):
    for path in ("/api/admin/users", "/api/admin/settings", "/api/admin/backup"):
        resp = await client.get(path, headers=auth_headers(counselor))
        assert resp.status_code == 403


async def test_settings_defaults_update_and_reset(client, admin):
    headers = auth_headers(admin)
    current = (await client.get("/api/admin/settings", headers=headers)).json()["settings"]
    assert current["site_name"] == "MindCare Hub"
    assert current["email_notifications"] is True

    updated = await client.put(
        "/api/admin/settings", json={"maintenance_mode": True, "data_retention_days": 90}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["settings"]["maintenance_mode"] is True
    assert updated.json()["settings"]["data_retention_days"] == 90

    reset = await client.post("/api/admin/settings", headers=headers)
    assert reset.json()["settings"]["maintenance_mode"] is False
    again = (await client.get("/api/admin/settings", headers=headers)).json()["settings"]
    assert again["data_retention_days"] == 365


async def test_settings_rejects_unknown_keys_and_wrong_types(client, admin):
    headers = auth_headers(admin)
    unknown = await client.put("/api/admin/settings", json={"theme": "dark"}, headers=headers)
    assert unknown.status_code == 400
    wrong_type = await client.put("/api/admin/settings", json={"maintenance_mode": "yes"}, headers=headers)
    assert wrong_type.status_code == 400
    negative = await client.put("/api/admin/settings", json={"data_retention_days": -1}, headers=headers)
    assert negative.status_code == 400


async def test_backup_create_list_download_and_delete(client, admin, patient):
    headers = auth_headers(admin)
    created = await client.post("/api/admin/backup", headers=headers)
    assert created.status_code == 201
    filename = created.json()["backup"]["filename"]
    assert created.json()["tables"]["users"] == 2

    listed = (await client.get("/api/admin/backup", headers=headers)).json()["backups"]
    assert [b["filename"] for b in listed] == [filename]

    download = await client.get("/api/admin/backup/download", params={"filename": filename}, headers=headers)
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("application/json")
    assert {u["email"] for u in download.json()["tables"]["users"]} == {admin.email, patient.email}

    deleted = await client.request("DELETE", "/api/admin/backup", json={"filename": filename}, headers=headers)
    assert deleted.status_code == 200
    assert (await client.get("/api/admin/backup", headers=headers)).json()["backups"] == []


async def test_restore_replaces_current_data(client, admin, patient, session_factory):
    headers = auth_headers(admin)
    filename = (await client.post("/api/admin/backup", headers=headers)).json()["backup"]["filename"]

    async with session_factory() as db:
        db.add(MoodEntryModel(user_id=patient.id, mood_score=4, entry_date=date.today()))
        await db.commit()

    restored = await client.put("/api/admin/backup", json={"filename": filename}, headers=headers)
    assert restored.status_code == 200
    assert restored.json()["tables"]["mood_entries"] == 0
    assert restored.json()["tables"]["users"] == 2

    moods = await client.get("/api/mood", headers=auth_headers(patient))
    assert moods.json()["entries"] == []


async def test_backup_file_names_are_confined(client, admin):
    headers = auth_headers(admin)
    traversal = await client.get(
        "/api/admin/backup/download", params={"filename": "../settings.json"}, headers=headers
    )
    assert traversal.status_code == 400
    missing = await client.put("/api/admin/backup", json={"filename": "backup-missing.json"}, headers=headers)
    assert missing.status_code == 404


async def test_restore_rejects_unreadable_file(client, admin, file_dirs):
    backups = file_dirs / "backups"
    backups.mkdir(exist_ok=True)
    (backups / "broken.json").write_text("{not json")
    resp = await client.put("/api/admin/backup", json={"filename": "broken.json"}, headers=auth_headers(admin))
    assert resp.status_code == 400
