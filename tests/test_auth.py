"""
Auth tests: token handling, the user upsert, owner promotion, and the
two distinct rejections (401 anonymous, 403 wrong role).
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.models import UserRole
from blog.security import create_access_token, decode_access_token
from blog.services import user_service


def _bearer(open_id: str, **claims) -> dict:
    return {"Authorization": f"Bearer {create_access_token(open_id, claims)}"}


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def test_token_roundtrip_carries_profile_claims():
    token = create_access_token("abc", {"name": "Ann"})
    payload = decode_access_token(token)
    assert payload["sub"] == "abc"
    assert payload["name"] == "Ann"


def test_expired_token_is_rejected():
    token = create_access_token("abc", expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("garbage") is None


# ---------------------------------------------------------------------------
# /auth/me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_anonymous(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_me_creates_user_on_first_sight(async_client: AsyncClient):
    headers = _bearer("new-open-id", name="Newcomer", email="new@example.com", login_method="github")
    resp = await async_client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 200
    me = resp.json()
    assert me["open_id"] == "new-open-id"
    assert me["name"] == "Newcomer"
    assert me["email"] == "new@example.com"
    assert me["login_method"] == "github"
    assert me["role"] == "user"

    again = await async_client.get("/api/v1/auth/me", headers=headers)
    assert again.json()["id"] == me["id"]


@pytest.mark.asyncio
async def test_me_refreshes_profile(async_client: AsyncClient, regular_user):
    resp = await async_client.get(
        "/api/v1/auth/me", headers=_bearer(regular_user.open_id, name="Renamed")
    )
    assert resp.json()["name"] == "Renamed"
    assert resp.json()["id"] == regular_user.id


@pytest.mark.asyncio
async def test_owner_is_promoted_to_admin(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "OWNER_OPEN_ID", "site-owner")

    resp = await async_client.get("/api/v1/auth/me", headers=_bearer("site-owner"))
    assert resp.json()["role"] == "admin"

    created = await async_client.post(
        "/api/v1/tags", json={"name": "Owner Tag"}, headers=_bearer("site-owner")
    )
    assert created.status_code == 201


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unauthenticated_and_forbidden_are_distinct(async_client: AsyncClient, user_headers: dict):
    anonymous = await async_client.get("/api/v1/comments/pending")
    forbidden = await async_client.get("/api/v1/comments/pending", headers=user_headers)

    assert anonymous.status_code == 401
    assert anonymous.json()["detail"] == "Please login (10001)"
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "You do not have required permission (10002)"


# ---------------------------------------------------------------------------
# Service layer
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upsert_user_requires_open_id(db_session: AsyncSession):
    with pytest.raises(ValueError):
        await user_service.upsert_user(db_session, "")


@pytest.mark.asyncio
async def test_upsert_user_without_database():
    assert await user_service.upsert_user(None, "someone") is None


@pytest.mark.asyncio
async def test_upsert_user_keeps_fields_not_supplied(db_session: AsyncSession):
    user = await user_service.upsert_user(db_session, "keeper", name="Keeper", email="k@example.com")

    again = await user_service.upsert_user(db_session, "keeper", login_method="email")
    assert again.id == user.id
    assert again.name == "Keeper"
    assert again.email == "k@example.com"
    assert again.login_method == "email"
    assert again.last_signed_in is not None


@pytest.mark.asyncio
async def test_upsert_user_explicit_role(db_session: AsyncSession):
    user = await user_service.upsert_user(db_session, "promoted", role=UserRole.admin)
    assert user.is_admin
    fetched = await user_service.get_user_by_open_id(db_session, "promoted")
    assert fetched.role == UserRole.admin
