from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Article, ArticleStatus


async def get_archive_years(db: AsyncSession | None) -> list[dict]:
    """
    Return ``[{"year": y, "count": n}, ...]`` for published articles,
    newest year first.  Articles without ``published_at`` are not counted.
    """
    if db is None:
        return []
    year = extract("year", Article.published_at)
    q = (
        select(year.label("year"), func.count(Article.id).label("count"))
        .where(
            Article.status == ArticleStatus.published,
            Article.published_at.is_not(None),
        )
        .group_by(year)
        .order_by(year.desc())
    )
    result = await db.execute(q)
    # EXTRACT returns a numeric on PostgreSQL.
    return [{"year": int(y), "count": count} for y, count in result.all() if y is not None]
