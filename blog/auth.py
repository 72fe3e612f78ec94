"""
Authentication and authorization dependencies.

``get_current_user`` never fails: a missing or bad token means an anonymous
caller.  ``require_user`` and ``require_role`` turn that into the two
distinct rejections callers can tell apart:

- 401 ``UNAUTHED_ERR_MSG`` when nobody is signed in;
- 403 ``NOT_ADMIN_ERR_MSG`` when the signed-in user lacks the role.

Every admin-only route depends on ``require_role(UserRole.admin)`` (via the
``AdminUser`` alias) so the gate lives in one place.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.errors import NOT_ADMIN_ERR_MSG, UNAUTHED_ERR_MSG
from blog.models import User, UserRole
from blog.security import decode_access_token
from blog.services import user_service

http_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
    db: AsyncSession | None = Depends(get_db),
) -> User | None:
    """Resolve the bearer token to a user, syncing the profile on the way."""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None
    return await user_service.upsert_user(
        db,
        payload["sub"],
        name=payload.get("name"),
        email=payload.get("email"),
        login_method=payload.get("login_method"),
    )


async def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHED_ERR_MSG,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(role: UserRole):
    """Build a dependency that admits only authenticated users with *role*."""

    async def role_checker(user: User = Depends(require_user)) -> User:
        if user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=NOT_ADMIN_ERR_MSG,
            )
        return user

    return role_checker


OptionalUser = Annotated[User | None, Depends(get_current_user)]
CurrentUser = Annotated[User, Depends(require_user)]
AdminUser = Annotated[User, Depends(require_role(UserRole.admin))]


def is_admin(user: User | None) -> bool:
    return user is not None and user.is_admin
