"""
Tag endpoint tests: catalog CRUD, slug lookup and published-article counts.
"""
import pytest
from httpx import AsyncClient


async def _create_tag(client: AsyncClient, headers: dict, **fields) -> dict:
    resp = await client.post("/api/v1/tags", json=fields, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_tag_derives_slug_and_color(async_client: AsyncClient, admin_headers: dict):
    tag = await _create_tag(async_client, admin_headers, name="Machine Learning")
    assert tag["slug"] == "machine-learning"
    assert tag["color"] == "#6b7280"

    custom = await _create_tag(async_client, admin_headers, name="Go", slug="golang", color="#00add8")
    assert custom["slug"] == "golang"
    assert custom["color"] == "#00add8"


@pytest.mark.asyncio
async def test_explicit_duplicate_slug_conflicts(async_client: AsyncClient, admin_headers: dict):
    await _create_tag(async_client, admin_headers, name="Python")
    resp = await async_client.post(
        "/api/v1/tags", json={"name": "Python 3", "slug": "python"}, headers=admin_headers
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_derived_slug_gets_suffix_or_fallback(async_client: AsyncClient, admin_headers: dict):
    c = await _create_tag(async_client, admin_headers, name="C")
    cpp = await _create_tag(async_client, admin_headers, name="C++")
    assert (c["slug"], cpp["slug"]) == ("c", "c-2")

    bang = await _create_tag(async_client, admin_headers, name="!!!")
    assert bang["slug"] == "tag"
    assert (await async_client.get("/api/v1/tags/slug/tag")).json()["id"] == bang["id"]


@pytest.mark.asyncio
async def test_list_tags_by_name(async_client: AsyncClient, admin_headers: dict):
    for name in ("Zig", "Ada", "Lisp"):
        await _create_tag(async_client, admin_headers, name=name)
    resp = await async_client.get("/api/v1/tags")
    assert [t["name"] for t in resp.json()] == ["Ada", "Lisp", "Zig"]


@pytest.mark.asyncio
async def test_get_tag_by_id_and_slug(async_client: AsyncClient, admin_headers: dict):
    tag = await _create_tag(async_client, admin_headers, name="Testing")
    assert (await async_client.get(f"/api/v1/tags/{tag['id']}")).json()["name"] == "Testing"
    assert (await async_client.get("/api/v1/tags/slug/testing")).json()["id"] == tag["id"]
    assert (await async_client.get("/api/v1/tags/slug/nope")).json() is None
    assert (await async_client.get("/api/v1/tags/99999")).json() is None


@pytest.mark.asyncio
async def test_tags_with_count_only_counts_published(async_client: AsyncClient, admin_headers: dict):
    busy = await _create_tag(async_client, admin_headers, name="Busy")
    quiet = await _create_tag(async_client, admin_headers, name="Quiet")
    for status in ("published", "published", "published", "draft", "draft"):
        await async_client.post(
            "/api/v1/articles",
            json={"title": f"{status} post", "content": "c", "status": status, "tag_ids": [busy["id"]]},
            headers=admin_headers,
        )
    await async_client.post(
        "/api/v1/articles",
        json={"title": "Quiet draft", "content": "c", "status": "draft", "tag_ids": [quiet["id"]]},
        headers=admin_headers,
    )

    resp = await async_client.get("/api/v1/tags/with-count")
    counts = [(row["tag"]["name"], row["count"]) for row in resp.json()]
    assert counts == [("Busy", 3), ("Quiet", 0)]


@pytest.mark.asyncio
async def test_update_tag(async_client: AsyncClient, admin_headers: dict):
    tag = await _create_tag(async_client, admin_headers, name="Old Name")
    resp = await async_client.patch(
        f"/api/v1/tags/{tag['id']}", json={"name": "New Name", "color": "#ff0000"}, headers=admin_headers
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["name"] == "New Name"
    assert updated["slug"] == "old-name"
    assert updated["color"] == "#ff0000"

    # An explicit null cannot clear a required column.
    resp = await async_client.patch(
        f"/api/v1/tags/{tag['id']}", json={"name": None}, headers=admin_headers
    )
    assert resp.json()["name"] == "New Name"

    missing = await async_client.patch("/api/v1/tags/99999", json={"name": "x"}, headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_tag_unlinks_articles(async_client: AsyncClient, admin_headers: dict):
    tag = await _create_tag(async_client, admin_headers, name="Doomed")
    keep = await _create_tag(async_client, admin_headers, name="Kept")
    article = (
        await async_client.post(
            "/api/v1/articles",
            json={"title": "Linked", "content": "c", "status": "published", "tag_ids": [tag["id"], keep["id"]]},
            headers=admin_headers,
        )
    ).json()

    resp = await async_client.delete(f"/api/v1/tags/{tag['id']}", headers=admin_headers)
    assert resp.status_code == 204

    detail = (await async_client.get(f"/api/v1/articles/{article['id']}")).json()
    assert [t["name"] for t in detail["tags"]] == ["Kept"]
    assert (await async_client.delete(f"/api/v1/tags/{tag['id']}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_tag_writes_require_admin(async_client: AsyncClient, user_headers: dict):
    assert (await async_client.post("/api/v1/tags", json={"name": "x"})).status_code == 401
    assert (
        await async_client.post("/api/v1/tags", json={"name": "x"}, headers=user_headers)
    ).status_code == 403
