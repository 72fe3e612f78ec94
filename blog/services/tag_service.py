"""
Tag service: tag catalog, per-tag published-article counts, and the
tag side of the article/tag link table.
"""
import logging

from sqlalchemy import and_, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import require_db
from blog.models import Article, ArticleStatus, Tag, article_tags
from blog.schemas import TagCreate, TagUpdate
from blog.services.slug_service import unique_slug

logger = logging.getLogger(__name__)


def tag_to_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "slug": tag.slug,
        "name": tag.name,
        "color": tag.color,
        "created_at": tag.created_at.isoformat() if tag.created_at else None,
    }


async def get_tags(db: AsyncSession | None) -> list[dict]:
    """Return every tag ordered by name."""
    if db is None:
        return []
    result = await db.execute(select(Tag).order_by(Tag.name.asc(), Tag.id.asc()))
    return [tag_to_dict(t) for t in result.scalars().all()]


async def get_tag(db: AsyncSession | None, tag_id: int) -> dict | None:
    if db is None:
        return None
    tag = await db.get(Tag, tag_id)
    return tag_to_dict(tag) if tag else None


async def get_tag_by_slug(db: AsyncSession | None, slug: str) -> dict | None:
    if db is None:
        return None
    result = await db.execute(select(Tag).where(Tag.slug == slug))
    tag = result.scalar_one_or_none()
    return tag_to_dict(tag) if tag else None


async def get_tags_with_count(db: AsyncSession | None) -> list[dict]:
    """
    Return ``{"tag": ..., "count": n}`` for every tag, where *n* counts only
    published articles.  The status condition lives in the outer join so
    tags without published articles still appear with a count of 0.
    """
    if db is None:
        return []
    article_count = func.count(Article.id)
    q = (
        select(Tag, article_count.label("count"))
        .outerjoin(article_tags, article_tags.c.tag_id == Tag.id)
        .outerjoin(
            Article,
            and_(
                Article.id == article_tags.c.article_id,
                Article.status == ArticleStatus.published,
            ),
        )
        .group_by(Tag.id)
        .order_by(desc(article_count), Tag.name.asc())
    )
    result = await db.execute(q)
    return [{"tag": tag_to_dict(tag), "count": count} for tag, count in result.all()]


async def create_tag(db: AsyncSession | None, data: TagCreate) -> dict:
    db = require_db(db)
    tag = Tag(
        slug=data.slug or await unique_slug(db, Tag, data.name, "tag"),
        name=data.name,
        color=data.color or "#6b7280",
    )
    db.add(tag)
    await db.flush()
    await db.refresh(tag)
    logger.info("Tag %d created (slug=%s)", tag.id, tag.slug)
    return tag_to_dict(tag)


async def update_tag(db: AsyncSession | None, tag_id: int, data: TagUpdate) -> dict | None:
    db = require_db(db)
    tag = await db.get(Tag, tag_id)
    if tag is None:
        return None
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("slug", "name"):
            continue
        setattr(tag, field, value)
    await db.flush()
    return tag_to_dict(tag)


async def delete_tag(db: AsyncSession | None, tag_id: int) -> bool:
    """Remove every link to the tag, then the tag row itself."""
    db = require_db(db)
    tag = await db.get(Tag, tag_id)
    if tag is None:
        return False
    await db.execute(delete(article_tags).where(article_tags.c.tag_id == tag_id))
    await db.execute(delete(Tag).where(Tag.id == tag_id))
    logger.info("Tag %d deleted", tag_id)
    return True
