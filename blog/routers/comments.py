from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import AdminUser, CurrentUser, OptionalUser, is_admin
from blog.database import get_db
from blog.schemas import (
    CommentCreate,
    CommentResponse,
    CommentTreeNode,
    PendingCommentResponse,
    SuccessResponse,
)
from blog.services import comment_service

router = APIRouter(prefix="/api/v1", tags=["comments"])


@router.get("/articles/{article_id}/comments", response_model=list[CommentResponse])
async def list_comments(article_id: int, user: OptionalUser, db: AsyncSession = Depends(get_db)):
    return await comment_service.get_comments_by_article(db, article_id, is_admin=is_admin(user))


@router.get("/articles/{article_id}/comments/tree", response_model=list[CommentTreeNode])
async def list_comment_tree(article_id: int, user: OptionalUser, db: AsyncSession = Depends(get_db)):
    comments = await comment_service.get_comments_by_article(db, article_id, is_admin=is_admin(user))
    return comment_service.build_comment_tree(comments)


@router.get("/articles/{article_id}/comments/all", response_model=list[CommentResponse])
async def list_comments_admin(article_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    return await comment_service.get_comments_by_article(
        db, article_id, include_all=True, is_admin=True
    )


@router.post("/articles/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def create_comment(
    article_id: int, data: CommentCreate, user: CurrentUser, db: AsyncSession = Depends(get_db)
):
    comment = await comment_service.create_comment(db, article_id, data, author=user)
    if not comment:
        raise HTTPException(status_code=404, detail="Article not found")
    return comment


@router.get("/comments/pending", response_model=list[PendingCommentResponse])
async def list_pending_comments(user: AdminUser, db: AsyncSession = Depends(get_db)):
    return await comment_service.get_pending_comments(db)


@router.post("/comments/{comment_id}/approve", response_model=SuccessResponse)
async def approve_comment(comment_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    if not await comment_service.approve_comment(db, comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    return SuccessResponse()


@router.post("/comments/{comment_id}/reject", response_model=SuccessResponse)
async def reject_comment(comment_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    if not await comment_service.reject_comment(db, comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    return SuccessResponse()


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, user: AdminUser, db: AsyncSession = Depends(get_db)):
    if not await comment_service.delete_comment(db, comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
