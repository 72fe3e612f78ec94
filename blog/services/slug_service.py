"""
Slug allocation shared by articles, tags and series.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.text import slugify


async def _slug_taken(db: AsyncSession, model, slug: str) -> bool:
    result = await db.execute(select(model.id).where(model.slug == slug).limit(1))
    return result.scalar_one_or_none() is not None


async def unique_slug(db: AsyncSession, model, text: str, fallback: str) -> str:
    """Derive a free slug for *model* from *text*.

    Text that slugifies to nothing uses *fallback*.  A taken slug gets the
    first free numeric suffix: ``name``, ``name-2``, ``name-3``...
    """
    base = slugify(text) or fallback
    slug = base
    suffix = 2
    while await _slug_taken(db, model, slug):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug
