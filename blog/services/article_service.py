"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Every read path accepts ``db=None`` (no database configured) and degrades
  to an empty result; every write path goes through ``require_db`` and
  raises ``DatabaseUnavailableError`` instead.
- Listings build one predicate list and use it for both the page query and
  the COUNT, so ``total`` never depends on limit/offset.
- Relations are loaded with ``joinedload`` (many-to-one: author, series)
  and ``selectinload`` (many-to-many: tags).  ``populate_existing`` makes
  reads after a write in the same session see the fresh link table.
- Visibility is enforced here, not in the router: a non-published article
  is indistinguishable from a missing one unless the caller is an admin.
- Reads never touch ``view_count``; ``increment_view_count`` is its own
  write and only counts published articles.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, extract, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blog.config import settings
from blog.database import require_db
from blog.errors import InvalidReferenceError
from blog.models import Article, ArticleStatus, Comment, Series, Tag, article_tags
from blog.schemas import ArticleCreate, ArticleFilter, ArticleUpdate
from blog.services.series_service import series_to_dict
from blog.services.slug_service import unique_slug
from blog.services.tag_service import tag_to_dict
from blog.services.user_service import author_to_dict
from blog.text import LIKE_ESCAPE_CHAR, contains_pattern

logger = logging.getLogger(__name__)

# Columns an update may not clear.
_NON_NULLABLE_FIELDS: frozenset[str] = frozenset({"slug", "title", "content", "weight", "status"})


def _empty_page() -> dict:
    return {"articles": [], "total": 0}


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _article_to_dict(article: Article) -> dict:
    """Serialise an Article to a plain dict (list view, no content)."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "excerpt": article.excerpt,
        "cover_image": article.cover_image,
        "author_id": article.author_id,
        "series_id": article.series_id,
        "series_order": article.series_order,
        "weight": article.weight,
        "status": article.status.value,
        "published_at": article.published_at.isoformat() if article.published_at else None,
        "view_count": article.view_count,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "author": author_to_dict(article.author),
        "tags": [tag_to_dict(t) for t in article.tags],
    }


def _article_detail_to_dict(article: Article) -> dict:
    """Serialise an Article to a plain dict (detail view)."""
    data = _article_to_dict(article)
    data["content"] = article.content
    data["gallery"] = list(article.gallery or [])
    data["footnotes"] = list(article.footnotes or [])
    data["series"] = series_to_dict(article.series)
    return data


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _filter_conditions(filters: ArticleFilter) -> list:
    """Translate *filters* into WHERE clauses (tag membership excluded)."""
    conditions = []
    if filters.status is not None:
        conditions.append(Article.status == filters.status)
    if filters.series_id is not None:
        conditions.append(Article.series_id == filters.series_id)
    if filters.year is not None:
        conditions.append(extract("year", Article.published_at) == filters.year)
    if filters.search:
        pattern = contains_pattern(filters.search)
        conditions.append(
            or_(
                Article.title.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Article.content.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Article.excerpt.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
            )
        )
    return conditions


def _order_clauses(order_by: str) -> tuple:
    if order_by == "oldest":
        return (Article.published_at.asc().nulls_last(), Article.id.asc())
    if order_by == "weight":
        return (
            Article.weight.desc(),
            Article.published_at.desc().nulls_last(),
            Article.id.desc(),
        )
    return (Article.published_at.desc().nulls_last(), Article.id.desc())


def _with_relations(q):
    return q.options(
        joinedload(Article.author),
        joinedload(Article.series),
        selectinload(Article.tags),
    ).execution_options(populate_existing=True)


async def _load_article(db: AsyncSession, **criteria) -> Article | None:
    q = _with_relations(select(Article).filter_by(**criteria))
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


def _is_visible(article: Article, is_admin: bool) -> bool:
    return is_admin or article.status == ArticleStatus.published


async def _check_series(db: AsyncSession, series_id: int | None) -> None:
    if series_id is not None and await db.get(Series, series_id) is None:
        raise InvalidReferenceError(f"Series {series_id} does not exist")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession | None,
    filters: ArticleFilter | None = None,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    offset: int = 0,
    order_by: str = "newest",
) -> dict:
    """
    Return ``{"articles": [...], "total": n}`` for the filtered listing.

    The tag filter is resolved to a set of article ids first; an empty set
    short-circuits to the empty page.  Callers decide the status filter:
    the public route forces ``published``, the admin route passes it through.
    """
    if db is None:
        logger.warning("Cannot list articles: database not available")
        return _empty_page()

    filters = filters or ArticleFilter()
    conditions = _filter_conditions(filters)

    if filters.tag_id is not None:
        tagged = await db.execute(
            select(article_tags.c.article_id).where(article_tags.c.tag_id == filters.tag_id)
        )
        article_ids = list(tagged.scalars().all())
        if not article_ids:
            return _empty_page()
        conditions.append(Article.id.in_(article_ids))

    count_q = select(func.count()).select_from(Article).where(*conditions)
    total: int = (await db.execute(count_q)).scalar_one()

    articles_q = (
        select(Article)
        .where(*conditions)
        .options(joinedload(Article.author), selectinload(Article.tags))
        .execution_options(populate_existing=True)
        .order_by(*_order_clauses(order_by))
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(articles_q)
    articles = result.unique().scalars().all()
    return {"articles": [_article_to_dict(a) for a in articles], "total": total}


async def get_featured_articles(
    db: AsyncSession | None, limit: int = settings.FEATURED_LIMIT
) -> list[dict]:
    """Published articles with ``weight > 0``, heaviest first."""
    if db is None:
        return []
    q = (
        select(Article)
        .where(Article.status == ArticleStatus.published, Article.weight > 0)
        .options(joinedload(Article.author), selectinload(Article.tags))
        .execution_options(populate_existing=True)
        .order_by(*_order_clauses("weight"))
        .limit(limit)
    )
    result = await db.execute(q)
    return [_article_to_dict(a) for a in result.unique().scalars().all()]


async def get_article(
    db: AsyncSession | None, article_id: int, is_admin: bool = False
) -> dict | None:
    """
    Return the detail dict (with tags, author and series) for *article_id*.

    Returns None when the article does not exist, or when it is not
    published and the caller is not an admin.
    """
    if db is None:
        return None
    article = await _load_article(db, id=article_id)
    if article is None or not _is_visible(article, is_admin):
        return None
    return _article_detail_to_dict(article)


async def get_article_by_slug(
    db: AsyncSession | None, slug: str, is_admin: bool = False
) -> dict | None:
    """Slug variant of ``get_article``; same visibility rule."""
    if db is None:
        return None
    article = await _load_article(db, slug=slug)
    if article is None or not _is_visible(article, is_admin):
        return None
    return _article_detail_to_dict(article)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def increment_view_count(db: AsyncSession | None, article_id: int) -> bool:
    """
    Add exactly one view to a published article.

    The increment is a single ``UPDATE ... SET view_count = view_count + 1``
    so concurrent calls never lose updates.  Returns False when the article
    is missing or not published, and when no database is configured.
    """
    if db is None:
        return False
    result = await db.execute(
        update(Article)
        .where(Article.id == article_id, Article.status == ArticleStatus.published)
        .values(view_count=Article.view_count + 1)
    )
    return result.rowcount > 0


async def set_article_tags(
    db: AsyncSession | None, article_id: int, tag_ids: list[int]
) -> list[int]:
    """
    Replace the article's tag links with *tag_ids*.

    Delete-all-then-insert: duplicate ids collapse to a single link and ids
    of tags that do not exist are dropped.  Returns the linked tag ids.
    """
    db = require_db(db)
    wanted = list(dict.fromkeys(tag_ids))
    await db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
    if not wanted:
        return []
    known = set((await db.execute(select(Tag.id).where(Tag.id.in_(wanted)))).scalars().all())
    linked = [tag_id for tag_id in wanted if tag_id in known]
    if linked:
        await db.execute(
            insert(article_tags),
            [{"article_id": article_id, "tag_id": tag_id} for tag_id in linked],
        )
    return linked


async def create_article(db: AsyncSession | None, data: ArticleCreate, author_id: int) -> dict:
    """
    Create an article owned by *author_id* and return its detail dict.

    ``published_at`` is stamped when the article is created as published.
    An explicit slug must be unique (IntegrityError otherwise); a derived
    slug takes the first free numeric suffix on collision.
    """
    db = require_db(db)
    await _check_series(db, data.series_id)

    payload = data.model_dump(exclude={"tag_ids", "slug"})
    slug = data.slug or await unique_slug(db, Article, data.title, "article")
    article = Article(**payload, slug=slug, author_id=author_id)
    if data.status == ArticleStatus.published:
        article.published_at = datetime.now(timezone.utc)

    db.add(article)
    await db.flush()

    if data.tag_ids:
        await set_article_tags(db, article.id, data.tag_ids)

    logger.info("Article %d created by user %d (status=%s)", article.id, author_id, data.status.value)
    return _article_detail_to_dict(await _load_article(db, id=article.id))


async def update_article(
    db: AsyncSession | None, article_id: int, data: ArticleUpdate
) -> dict | None:
    """
    Partially update an article and return its detail dict, or None when
    it does not exist.

    ``published_at`` is stamped on a transition into ``published`` only if
    it has never been set; re-publishing an archived article keeps the
    original date.  ``tag_ids``, when present, replaces all links.
    """
    db = require_db(db)
    article = await db.get(Article, article_id)
    if article is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    tag_ids: list[int] | None = update_data.pop("tag_ids", None)
    update_data = {
        field: value
        for field, value in update_data.items()
        if value is not None or field not in _NON_NULLABLE_FIELDS
    }
    if "series_id" in update_data:
        await _check_series(db, update_data["series_id"])

    previous_status = article.status
    for field, value in update_data.items():
        setattr(article, field, value)

    if (
        article.status == ArticleStatus.published
        and previous_status != ArticleStatus.published
        and article.published_at is None
    ):
        article.published_at = datetime.now(timezone.utc)

    await db.flush()

    if tag_ids is not None:
        await set_article_tags(db, article_id, tag_ids)

    if previous_status != article.status:
        logger.info(
            "Article %d status %s -> %s", article_id, previous_status.value, article.status.value
        )
    return _article_detail_to_dict(await _load_article(db, id=article_id))


async def delete_article(db: AsyncSession | None, article_id: int) -> bool:
    """
    Delete the article and everything that references it: tag links, then
    comments (replies included), then the article row.

    Returns False when the article does not exist.
    """
    db = require_db(db)
    if await db.get(Article, article_id) is None:
        return False

    await db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
    await db.execute(delete(Comment).where(Comment.article_id == article_id))
    await db.execute(delete(Article).where(Article.id == article_id))
    logger.info("Article %d deleted with its tag links and comments", article_id)
    return True
