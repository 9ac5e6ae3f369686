# tests/test_resources.py
from pathlib import Path

from app.config.settings import settings

from tests._helpers import auth_headers

ARTICLE = {
    "title": "Understanding Anxiety",
    "description": "An introduction",
    "content": "Anxiety is a normal response.\nIt becomes a problem when it persists.",
    "category": "anxiety",
    "type": "article",
}


async def publish(client, author, **overrides):
    resp = await client.post("/api/resources", json={**ARTICLE, **overrides}, headers=auth_headers(author))
    assert resp.status_code == 201
    return resp.json()["resource"]


async def test_providers_publish_and_everyone_lists(client, counselor, patient):
    resource = await publish(client, counselor)
    assert resource["is_published"] is True
    assert resource["views"] == 0

    resp = await client.get("/api/resources", headers=auth_headers(patient))
    listed = resp.json()["resources"]
    assert [r["id"] for r in listed] == [resource["id"]]
    assert listed[0]["author_name"] == counselor.full_name
    assert listed[0]["likes"] == 0


async def test_patients_cannot_publish(client, patient):
    resp = await client.post("/api/resources", json=ARTICLE, headers=auth_headers(patient))
    assert resp.status_code == 403


async def test_like_toggles(client, counselor, patient):
    resource = await publish(client, counselor)
    headers = auth_headers(patient)
    body = {"resource_id": resource["id"]}

    liked = await client.post("/api/resources/like", json=body, headers=headers)
    assert liked.json() == {"is_liked": True, "total_likes": 1}

    status = await client.get("/api/resources/like", params=body, headers=headers)
    assert status.json()["is_liked"] is True

    unliked = await client.post("/api/resources/like", json=body, headers=headers)
    assert unliked.json() == {"is_liked": False, "total_likes": 0}


async def test_like_unknown_resource(client, patient):
    resp = await client.post("/api/resources/like", json={"resource_id": 404}, headers=auth_headers(patient))
    assert resp.status_code == 404


async def test_view_and_download_counters(client, counselor, patient):
    resource = await publish(client, counselor, url="https://example.org/anxiety")
    headers = auth_headers(patient)
    await client.post("/api/resources/view", json={"resource_id": resource["id"]}, headers=headers)
    download = await client.post("/api/resources/download", json={"resource_id": resource["id"]}, headers=headers)
    assert download.status_code == 200
    assert download.json()["download_url"] == "https://example.org/anxiety"

    listed = (await client.get("/api/resources", headers=headers)).json()["resources"][0]
    assert listed["views"] == 1
    assert listed["downloads"] == 1


async def test_serve_renders_text_content(client, counselor, patient):
    resource = await publish(client, counselor)
    resp = await client.get("/api/resources/serve", params={"id": resource["id"]}, headers=auth_headers(patient))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "<h1>Understanding Anxiety</h1>" in resp.text


async def test_uploaded_file_is_served(client, counselor, patient):
    upload = await client.post(
        "/api/counselor/resources",
        data={"title": "Thought Record", "description": "CBT worksheet", "type": "worksheet", "category": "cbt"},
        files={"file": ("thought record.txt", b"Situation | Thought | Feeling", "text/plain")},
        headers=auth_headers(counselor),
    )
    assert upload.status_code == 201
    resource = upload.json()["resource"]
    assert resource["file_path"].endswith("-thought_record.txt")
    assert (Path(settings.upload_dir) / resource["file_path"]).is_file()

    download = await client.post(
        "/api/resources/download", json={"resource_id": resource["id"]}, headers=auth_headers(patient)
    )
    assert download.json()["download_url"] == f"/api/resources/serve?id={resource['id']}"

    served = await client.get(
        "/api/resources/serve", params={"id": resource["id"]}, headers=auth_headers(patient)
    )
    assert served.status_code == 200
    assert served.content == b"Situation | Thought | Feeling"
    assert served.headers["content-disposition"].startswith("inline")


async def test_oversized_upload_rejected(client, counselor, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    resp = await client.post(
        "/api/counselor/resources",
        data={"title": "Big", "description": "Too big", "type": "audio", "category": "sleep"},
        files={"file": ("big.mp3", b"x" * 10, "audio/mpeg")},
        headers=auth_headers(counselor),
    )
    assert resp.status_code == 413
    assert list(Path(settings.upload_dir).iterdir()) == []


async def test_missing_file_is_not_counted_as_a_view(client, counselor, patient):
    upload = await client.post(
        "/api/counselor/resources",
        data={"title": "Sleep Diary", "description": "Weekly diary", "type": "worksheet", "category": "sleep"},
        files={"file": ("diary.txt", b"Mon | Tue | Wed", "text/plain")},
        headers=auth_headers(counselor),
    )
    resource = upload.json()["resource"]
    (Path(settings.upload_dir) / resource["file_path"]).unlink()

    headers = auth_headers(patient)
    served = await client.get("/api/resources/serve", params={"id": resource["id"]}, headers=headers)
    assert served.status_code == 404
    assert served.json()["detail"] == "File not found"

    listed = (await client.get("/api/resources", headers=headers)).json()["resources"][0]
    assert listed["views"] == 0


async def test_serve_counts_a_view(client, counselor, patient):
    resource = await publish(client, counselor)
    headers = auth_headers(patient)
    await client.get("/api/resources/serve", params={"id": resource["id"]}, headers=headers)

    listed = (await client.get("/api/resources", headers=headers)).json()["resources"][0]
    assert listed["views"] == 1
