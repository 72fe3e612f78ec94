from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import AdminUser, OptionalUser, is_admin
from blog.config import settings
from blog.database import get_db
from blog.dependencies import AdminPaginationParams, PaginationParams
from blog.models import ArticleStatus
from blog.schemas import (
    ArticleCreate,
    ArticleDetail,
    ArticleFilter,
    ArticleListResponse,
    ArticleOrder,
    ArticleResponse,
    ArticleUpdate,
    SuccessResponse,
)
from blog.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

# Static paths are declared before "/{article_id}" so they are matched first.


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    tag_id: int | None = Query(None),
    series_id: int | None = Query(None),
    year: int | None = Query(None, ge=1, le=9999),
    search: str | None = Query(None, max_length=200),
    order_by: ArticleOrder = Query("newest"),
    db: AsyncSession = Depends(get_db),
):
    filters = ArticleFilter(
        status=ArticleStatus.published,
        tag_id=tag_id,
        series_id=series_id,
        year=year,
        search=search,
    )
    return await article_service.get_articles(
        db, filters, pagination.limit, pagination.offset, order_by
    )


@router.get("/admin", response_model=ArticleListResponse)
async def list_all_articles(
    user: AdminUser,
    pagination: AdminPaginationParams = Depends(),
    status: ArticleStatus | None = Query(None),
    tag_id: int | None = Query(None),
    series_id: int | None = Query(None),
    search: str | None = Query(None, max_length=200),
    order_by: ArticleOrder = Query("newest"),
    db: AsyncSession = Depends(get_db),
):
    filters = ArticleFilter(status=status, tag_id=tag_id, series_id=series_id, search=search)
    return await article_service.get_articles(
        db, filters, pagination.limit, pagination.offset, order_by
    )


@router.get("/featured", response_model=list[ArticleResponse])
async def featured_articles(
    limit: int = Query(settings.FEATURED_LIMIT, ge=1, le=settings.MAX_FEATURED_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_featured_articles(db, limit)


@router.get("/slug/{slug}", response_model=ArticleDetail | None)
async def get_article_by_slug(slug: str, user: OptionalUser, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article_by_slug(db, slug, is_admin=is_admin(user))


@router.get("/{article_id}", response_model=ArticleDetail | None)
async def get_article(article_id: int, user: OptionalUser, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id, is_admin=is_admin(user))


@router.post("/{article_id}/view", response_model=SuccessResponse)
async def increment_view(article_id: int, db: AsyncSession = Depends(get_db)):
    counted = await article_service.increment_view_count(db, article_id)
    return SuccessResponse(success=counted)


@router.post("", status_code=201, response_model=ArticleDetail)
async def create_article(data: ArticleCreate, user: AdminUser, db: AsyncSession = Depends(get_db)):
    return await article_service.create_article(db, data, author_id=user.id)


@router.patch("/{article_id}", response_model=ArticleDetail)
async def update_article(
    article_id: int, data: ArticleUpdate, user: AdminUser, db: AsyncSession = Depends(get_db)
):
    article = await article_service.update_article(db, article_id, data)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    deleted = await article_service.delete_article(db, article_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")
