"""
Comment endpoint tests: moderation flow, threading and subtree deletion.
"""
import pytest
from httpx import AsyncClient


async def _create_article(client: AsyncClient, headers: dict, **fields) -> dict:
    payload = {"title": "Commented", "content": "Body", "status": "published"}
    payload.update(fields)
    resp = await client.post("/api/v1/articles", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _comment(client: AsyncClient, headers: dict, article_id: int, content: str, parent_id=None):
    body = {"content": content}
    if parent_id is not None:
        body["parent_id"] = parent_id
    return await client.post(f"/api/v1/articles/{article_id}/comments", json=body, headers=headers)


# ---------------------------------------------------------------------------
# Creation and moderation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_reader_comment_waits_for_moderation(
    async_client: AsyncClient, admin_headers: dict, user_headers: dict, regular_user
):
    article = await _create_article(async_client, admin_headers)

    resp = await _comment(async_client, user_headers, article["id"], "Great post!")
    assert resp.status_code == 201
    comment = resp.json()
    assert comment["status"] == "pending"
    assert comment["author"] == {"id": regular_user.id, "name": "Regular Reader"}

    public = await async_client.get(f"/api/v1/articles/{article['id']}/comments")
    assert public.json() == []


@pytest.mark.asyncio
async def test_admin_comment_is_approved_immediately(async_client: AsyncClient, admin_headers: dict):
    article = await _create_article(async_client, admin_headers)
    resp = await _comment(async_client, admin_headers, article["id"], "Thanks for reading")
    assert resp.json()["status"] == "approved"

    public = await async_client.get(f"/api/v1/articles/{article['id']}/comments")
    assert [c["content"] for c in public.json()] == ["Thanks for reading"]


@pytest.mark.asyncio
async def test_approve_and_reject(async_client: AsyncClient, admin_headers: dict, user_headers: dict):
    article = await _create_article(async_client, admin_headers)
    good = (await _comment(async_client, user_headers, article["id"], "Useful")).json()
    bad = (await _comment(async_client, user_headers, article["id"], "Spam")).json()

    assert (await async_client.post(f"/api/v1/comments/{good['id']}/approve", headers=admin_headers)).json() == {
        "success": True
    }
    assert (await async_client.post(f"/api/v1/comments/{bad['id']}/reject", headers=admin_headers)).json() == {
        "success": True
    }

    public = await async_client.get(f"/api/v1/articles/{article['id']}/comments")
    assert [c["content"] for c in public.json()] == ["Useful"]

    everything = await async_client.get(
        f"/api/v1/articles/{article['id']}/comments/all", headers=admin_headers
    )
    statuses = {c["content"]: c["status"] for c in everything.json()}
    assert statuses == {"Useful": "approved", "Spam": "rejected"}


@pytest.mark.asyncio
async def test_moderating_missing_comment(async_client: AsyncClient, admin_headers: dict):
    resp = await async_client.post("/api/v1/comments/99999/approve", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_pending_queue(async_client: AsyncClient, admin_headers: dict, user_headers: dict):
    article = await _create_article(async_client, admin_headers, title="Queue Test")
    await _comment(async_client, user_headers, article["id"], "First")
    await _comment(async_client, user_headers, article["id"], "Second")
    await _comment(async_client, admin_headers, article["id"], "Admin note")

    resp = await async_client.get("/api/v1/comments/pending", headers=admin_headers)
    assert resp.status_code == 200
    pending = resp.json()
    assert [c["content"] for c in pending] == ["Second", "First"]
    assert pending[0]["article"] == {"id": article["id"], "title": "Queue Test", "slug": "queue-test"}


@pytest.mark.asyncio
async def test_moderation_requires_admin(async_client: AsyncClient, user_headers: dict):
    assert (await async_client.get("/api/v1/comments/pending")).status_code == 401
    assert (await async_client.get("/api/v1/comments/pending", headers=user_headers)).status_code == 403


@pytest.mark.asyncio
async def test_commenting_requires_login(async_client: AsyncClient, admin_headers: dict):
    article = await _create_article(async_client, admin_headers)
    resp = await async_client.post(
        f"/api/v1/articles/{article['id']}/comments", json={"content": "anon"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_comment_content_bounds(async_client: AsyncClient, admin_headers: dict, user_headers: dict):
    article = await _create_article(async_client, admin_headers)
    assert (await _comment(async_client, user_headers, article["id"], "")).status_code == 422
    assert (await _comment(async_client, user_headers, article["id"], "x" * 5001)).status_code == 422


@pytest.mark.asyncio
async def test_comment_on_missing_or_draft_article(
    async_client: AsyncClient, admin_headers: dict, user_headers: dict
):
    assert (await _comment(async_client, user_headers, 99999, "Hello?")).status_code == 404

    draft = await _create_article(async_client, admin_headers, status="draft")
    assert (await _comment(async_client, user_headers, draft["id"], "Early!")).status_code == 404
    assert (await _comment(async_client, admin_headers, draft["id"], "Note to self")).status_code == 201


@pytest.mark.asyncio
async def test_hidden_article_comments_are_not_listed(
    async_client: AsyncClient, admin_headers: dict, user_headers: dict
):
    draft = await _create_article(async_client, admin_headers, status="draft")
    assert (await _comment(async_client, admin_headers, draft["id"], "Note to self")).status_code == 201
    archived = await _create_article(async_client, admin_headers, title="Retired")
    assert (await _comment(async_client, admin_headers, archived["id"], "Old news")).status_code == 201
    resp = await async_client.patch(
        f"/api/v1/articles/{archived['id']}", json={"status": "archived"}, headers=admin_headers
    )
    assert resp.status_code == 200

    for article_id in (draft["id"], archived["id"], 99999):
        for headers in ({}, user_headers):
            listed = await async_client.get(f"/api/v1/articles/{article_id}/comments", headers=headers)
            assert listed.json() == []
            tree = await async_client.get(f"/api/v1/articles/{article_id}/comments/tree", headers=headers)
            assert tree.json() == []

    as_admin = await async_client.get(f"/api/v1/articles/{draft['id']}/comments", headers=admin_headers)
    assert [c["content"] for c in as_admin.json()] == ["Note to self"]
    moderation = await async_client.get(f"/api/v1/articles/{archived['id']}/comments/all", headers=admin_headers)
    assert [c["content"] for c in moderation.json()] == ["Old news"]


# ---------------------------------------------------------------------------
# Threading
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_tree(async_client: AsyncClient, admin_headers: dict, user_headers: dict):
    article = await _create_article(async_client, admin_headers)
    root = (await _comment(async_client, admin_headers, article["id"], "Root")).json()
    reply = (await _comment(async_client, admin_headers, article["id"], "Reply", root["id"])).json()
    await _comment(async_client, admin_headers, article["id"], "Nested", reply["id"])
    await _comment(async_client, admin_headers, article["id"], "Second root")
    # Pending replies stay out of the public tree.
    await _comment(async_client, user_headers, article["id"], "Unmoderated", root["id"])

    resp = await async_client.get(f"/api/v1/articles/{article['id']}/comments/tree")
    assert resp.status_code == 200
    tree = resp.json()
    assert [n["content"] for n in tree] == ["Root", "Second root"]
    assert [n["content"] for n in tree[0]["replies"]] == ["Reply"]
    assert [n["content"] for n in tree[0]["replies"][0]["replies"]] == ["Nested"]
    assert tree[1]["replies"] == []


@pytest.mark.asyncio
async def test_reply_parent_must_be_on_same_article(async_client: AsyncClient, admin_headers: dict):
    first = await _create_article(async_client, admin_headers, title="First")
    second = await _create_article(async_client, admin_headers, title="Second")
    root = (await _comment(async_client, admin_headers, first["id"], "On first")).json()

    resp = await _comment(async_client, admin_headers, second["id"], "Cross post", root["id"])
    assert resp.status_code == 400

    resp = await _comment(async_client, admin_headers, first["id"], "Dangling", 99999)
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_comment_removes_subtree(async_client: AsyncClient, admin_headers: dict):
    article = await _create_article(async_client, admin_headers)
    root = (await _comment(async_client, admin_headers, article["id"], "Root")).json()
    child = (await _comment(async_client, admin_headers, article["id"], "Child", root["id"])).json()
    await _comment(async_client, admin_headers, article["id"], "Grandchild", child["id"])
    await _comment(async_client, admin_headers, article["id"], "Bystander")

    resp = await async_client.delete(f"/api/v1/comments/{root['id']}", headers=admin_headers)
    assert resp.status_code == 204

    remaining = await async_client.get(
        f"/api/v1/articles/{article['id']}/comments/all", headers=admin_headers
    )
    assert [c["content"] for c in remaining.json()] == ["Bystander"]

    again = await async_client.delete(f"/api/v1/comments/{root['id']}", headers=admin_headers)
    assert again.status_code == 404
