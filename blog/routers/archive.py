from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.schemas import ArchiveYear
from blog.services import archive_service

router = APIRouter(prefix="/api/v1/archive", tags=["archive"])


@router.get("/years", response_model=list[ArchiveYear])
async def archive_years(db: AsyncSession = Depends(get_db)):
    return await archive_service.get_archive_years(db)
