from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import AdminUser
from blog.database import get_db
from blog.schemas import TagCreate, TagResponse, TagUpdate, TagWithCount
from blog.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags(db)


@router.get("/with-count", response_model=list[TagWithCount])
async def list_tags_with_count(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags_with_count(db)


@router.get("/slug/{slug}", response_model=TagResponse | None)
async def get_tag_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag_by_slug(db, slug)


@router.get("/{tag_id}", response_model=TagResponse | None)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag(db, tag_id)


@router.post("", status_code=201, response_model=TagResponse)
async def create_tag(data: TagCreate, user: AdminUser, db: AsyncSession = Depends(get_db)):
    return await tag_service.create_tag(db, data)


@router.patch("/{tag_id}", response_model=TagResponse)
async def update_tag(tag_id: int, data: TagUpdate, user: AdminUser, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.update_tag(db, tag_id, data)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(tag_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    deleted = await tag_service.delete_tag(db, tag_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Tag not found")
