"""
User service: identity upsert and lookups.

Users are created the first time a token carrying their open id is seen
and refreshed on every later sign-in.  They are never deleted here.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.models import User, UserRole

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def author_to_dict(user: User | None) -> dict | None:
    """Public projection of a user, safe to embed in articles and comments."""
    if user is None:
        return None
    return {"id": user.id, "name": user.name}


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "open_id": user.open_id,
        "name": user.name,
        "email": user.email,
        "login_method": user.login_method,
        "role": user.role.value,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_signed_in": user.last_signed_in.isoformat() if user.last_signed_in else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_user_by_open_id(db: AsyncSession | None, open_id: str) -> User | None:
    if db is None:
        logger.warning("Cannot get user: database not available")
        return None
    result = await db.execute(select(User).where(User.open_id == open_id))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession | None, user_id: int) -> User | None:
    if db is None:
        return None
    return await db.get(User, user_id)


async def upsert_user(
    db: AsyncSession | None,
    open_id: str,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
    role: UserRole | None = None,
) -> User | None:
    """
    Create the user keyed by *open_id*, or refresh the existing row.

    Profile fields are only overwritten when supplied.  ``last_signed_in``
    is always bumped.  The configured owner is promoted to admin unless an
    explicit *role* is given.  Returns None when no database is configured.
    """
    if not open_id:
        raise ValueError("User open_id is required for upsert")
    if db is None:
        logger.warning("Cannot upsert user: database not available")
        return None

    if role is None and settings.OWNER_OPEN_ID and open_id == settings.OWNER_OPEN_ID:
        role = UserRole.admin

    now = datetime.now(timezone.utc)
    user = await get_user_by_open_id(db, open_id)
    if user is None:
        user = User(
            open_id=open_id,
            name=name,
            email=email,
            login_method=login_method,
            role=role or UserRole.user,
            last_signed_in=now,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info("User %d created for open_id=%s (role=%s)", user.id, open_id, user.role.value)
        return user

    for field, value in (("name", name), ("email", email), ("login_method", login_method)):
        if value is not None:
            setattr(user, field, value)
    if role is not None:
        user.role = role
    user.last_signed_in = now
    await db.flush()
    return user
