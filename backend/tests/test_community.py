# tests/test_community.py
from tests._helpers import auth_headers

POST = {"title": "Finding calm", "content": "Breathing exercises helped me.", "category": "anxiety"}


async def submit(client, user, **overrides):
    resp = await client.post("/api/community/posts", json={**POST, **overrides}, headers=auth_headers(user))
    assert resp.status_code == 201
    return resp.json()["post"]


async def test_new_posts_wait_for_moderation(client, patient):
    post = await submit(client, patient)
    assert post["status"] == "pending"

    feed = await client.get("/api/community/posts", headers=auth_headers(patient))
    assert feed.json()["posts"] == []


async def test_approved_post_appears_in_feed(client, patient, counselor):
    post = await submit(client, patient)
    resp = await client.post(
        "/api/counselor/moderation",
        json={"post_id": post["id"], "action": "approve"},
        headers=auth_headers(counselor),
    )
    assert resp.status_code == 200
    assert resp.json()["post"]["status"] == "approved"
    assert resp.json()["post"]["moderated_by"] == counselor.id

    feed = (await client.get("/api/community/posts", headers=auth_headers(patient))).json()["posts"]
    assert [p["id"] for p in feed] == [post["id"]]
    assert feed[0]["author_name"] == patient.full_name


async def test_anonymous_author_hidden_in_feed_but_not_from_moderators(client, patient, counselor):
    post = await submit(client, patient, is_anonymous=True)

    pending = (await client.get("/api/counselor/moderation", headers=auth_headers(counselor))).json()["posts"]
    assert pending[0]["author_name"] == patient.full_name

    await client.post(
        "/api/counselor/moderation",
        json={"post_id": post["id"], "action": "approve"},
        headers=auth_headers(counselor),
    )
    feed = (await client.get("/api/community/posts", headers=auth_headers(patient))).json()["posts"]
    assert feed[0]["author_name"] == "Anonymous"
    assert feed[0]["author_username"] is None


async def test_rejected_posts_stay_hidden_and_cannot_be_remoderated(client, patient, counselor):
    post = await submit(client, patient)
    body = {"post_id": post["id"], "action": "reject", "reason": "Off topic"}
    first = await client.post("/api/counselor/moderation", json=body, headers=auth_headers(counselor))
    assert first.json()["post"]["status"] == "rejected"

    second = await client.post("/api/counselor/moderation", json=body, headers=auth_headers(counselor))
    assert second.status_code == 404
    feed = (await client.get("/api/community/posts", headers=auth_headers(patient))).json()["posts"]
    assert feed == []


async def test_moderator_edits_and_deletes(client, patient, counselor):
    post = await submit(client, patient)
    headers = auth_headers(counselor)
    edited = await client.put(
        "/api/counselor/moderation",
        json={"post_id": post["id"], "title": "Edited", "content": "Cleaned up"},
        headers=headers,
    )
    assert edited.json()["post"]["title"] == "Edited"

    deleted = await client.delete("/api/counselor/moderation", params={"post_id": post["id"]}, headers=headers)
    assert deleted.status_code == 200
    pending = (await client.get("/api/counselor/moderation", headers=headers)).json()["posts"]
    assert pending == []


async def test_patients_cannot_moderate(client, patient):
    post = await submit(client, patient)
    resp = await client.post(
        "/api/counselor/moderation",
        json={"post_id": post["id"], "action": "approve"},
        headers=auth_headers(patient),
    )
    assert resp.status_code == 403
