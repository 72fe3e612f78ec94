from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import AdminUser
from blog.database import get_db
from blog.schemas import SeriesCreate, SeriesResponse, SeriesUpdate, SeriesWithCount
from blog.services import series_service

router = APIRouter(prefix="/api/v1/series", tags=["series"])


@router.get("", response_model=list[SeriesResponse])
async def list_series(db: AsyncSession = Depends(get_db)):
    return await series_service.get_all_series(db)


@router.get("/with-count", response_model=list[SeriesWithCount])
async def list_series_with_count(db: AsyncSession = Depends(get_db)):
    return await series_service.get_series_with_count(db)


@router.get("/slug/{slug}", response_model=SeriesResponse | None)
async def get_series_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await series_service.get_series_by_slug(db, slug)


@router.get("/{series_id}", response_model=SeriesResponse | None)
async def get_series(series_id: int, db: AsyncSession = Depends(get_db)):
    return await series_service.get_series(db, series_id)


@router.post("", status_code=201, response_model=SeriesResponse)
async def create_series(data: SeriesCreate, user: AdminUser, db: AsyncSession = Depends(get_db)):
    return await series_service.create_series(db, data)


@router.patch("/{series_id}", response_model=SeriesResponse)
async def update_series(
    series_id: int, data: SeriesUpdate, user: AdminUser, db: AsyncSession = Depends(get_db)
):
    series = await series_service.update_series(db, series_id, data)
    if not series:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@router.delete("/{series_id}", status_code=204)
async def delete_series(series_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    deleted = await series_service.delete_series(db, series_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Series not found")
