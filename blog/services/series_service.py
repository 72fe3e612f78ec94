"""
Series service: ordered article collections.

Deleting a series detaches its articles (``series_id = NULL``) before the
series row goes, so no article is ever left pointing at a missing series.
"""
import logging

from sqlalchemy import and_, delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import require_db
from blog.models import Article, ArticleStatus, Series
from blog.schemas import SeriesCreate, SeriesUpdate
from blog.services.slug_service import unique_slug

logger = logging.getLogger(__name__)


def series_to_dict(series: Series | None) -> dict | None:
    if series is None:
        return None
    return {
        "id": series.id,
        "slug": series.slug,
        "title": series.title,
        "description": series.description,
        "cover_image": series.cover_image,
        "created_at": series.created_at.isoformat() if series.created_at else None,
    }


async def get_all_series(db: AsyncSession | None) -> list[dict]:
    """Return every series, newest first."""
    if db is None:
        return []
    result = await db.execute(select(Series).order_by(Series.created_at.desc(), Series.id.desc()))
    return [series_to_dict(s) for s in result.scalars().all()]


async def get_series(db: AsyncSession | None, series_id: int) -> dict | None:
    if db is None:
        return None
    return series_to_dict(await db.get(Series, series_id))


async def get_series_by_slug(db: AsyncSession | None, slug: str) -> dict | None:
    if db is None:
        return None
    result = await db.execute(select(Series).where(Series.slug == slug))
    return series_to_dict(result.scalar_one_or_none())


async def get_series_with_count(db: AsyncSession | None) -> list[dict]:
    """Return ``{"series": ..., "count": n}`` with *n* = published members."""
    if db is None:
        return []
    article_count = func.count(Article.id)
    q = (
        select(Series, article_count.label("count"))
        .outerjoin(
            Article,
            and_(
                Article.series_id == Series.id,
                Article.status == ArticleStatus.published,
            ),
        )
        .group_by(Series.id)
        .order_by(desc(article_count), Series.id.asc())
    )
    result = await db.execute(q)
    return [{"series": series_to_dict(s), "count": count} for s, count in result.all()]


async def create_series(db: AsyncSession | None, data: SeriesCreate) -> dict:
    db = require_db(db)
    series = Series(
        slug=data.slug or await unique_slug(db, Series, data.title, "series"),
        title=data.title,
        description=data.description,
        cover_image=data.cover_image,
    )
    db.add(series)
    await db.flush()
    await db.refresh(series)
    logger.info("Series %d created (slug=%s)", series.id, series.slug)
    return series_to_dict(series)


async def update_series(
    db: AsyncSession | None, series_id: int, data: SeriesUpdate
) -> dict | None:
    db = require_db(db)
    series = await db.get(Series, series_id)
    if series is None:
        return None
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("slug", "title"):
            continue
        setattr(series, field, value)
    await db.flush()
    await db.refresh(series)
    return series_to_dict(series)


async def delete_series(db: AsyncSession | None, series_id: int) -> bool:
    """Detach member articles, then delete the series row."""
    db = require_db(db)
    series = await db.get(Series, series_id)
    if series is None:
        return False
    await db.execute(
        update(Article)
        .where(Article.series_id == series_id)
        .values(series_id=None)
    )
    await db.execute(delete(Series).where(Series.id == series_id))
    logger.info("Series %d deleted; member articles detached", series_id)
    return True
