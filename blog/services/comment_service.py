"""
Comment service: threaded comments with moderation.

Comments are stored flat with a nullable ``parent_id``.  The tree is rebuilt
in memory when a threaded view is requested, and deletion walks it depth
first so a reply never outlives its parent.
"""
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from blog.database import require_db
from blog.errors import InvalidReferenceError
from blog.models import Article, ArticleStatus, Comment, CommentStatus, User
from blog.schemas import CommentCreate
from blog.services.user_service import author_to_dict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "article_id": comment.article_id,
        "author_id": comment.author_id,
        "parent_id": comment.parent_id,
        "content": comment.content,
        "status": comment.status.value,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "author": author_to_dict(comment.author),
    }


def _pending_comment_to_dict(comment: Comment) -> dict:
    data = _comment_to_dict(comment)
    article = comment.article
    data["article"] = (
        {"id": article.id, "title": article.title, "slug": article.slug} if article else None
    )
    return data


def build_comment_tree(comments: list[dict]) -> list[dict]:
    """
    Nest flat comment dicts under their parents via ``replies``.

    Input order is preserved at every level.  A comment whose parent is not
    in *comments* (e.g. the parent is still pending) becomes a root.
    """
    nodes = {c["id"]: {**c, "replies": []} for c in comments}
    roots: list[dict] = []
    for comment in comments:
        node = nodes[comment["id"]]
        parent = nodes.get(comment["parent_id"]) if comment["parent_id"] is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent["replies"].append(node)
    return roots


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_comments_by_article(
    db: AsyncSession | None,
    article_id: int,
    include_all: bool = False,
    is_admin: bool = False,
) -> list[dict]:
    """
    Return the article's comments oldest first, each with its author.

    Only approved comments are returned unless *include_all* is set.  A
    non-admin asking about an unpublished or missing article gets an empty
    list, the same as for an article with no comments.
    """
    if db is None:
        return []
    if not is_admin:
        article = await db.get(Article, article_id)
        if article is None or article.status != ArticleStatus.published:
            return []
    q = (
        select(Comment)
        .where(Comment.article_id == article_id)
        .options(joinedload(Comment.author))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    if not include_all:
        q = q.where(Comment.status == CommentStatus.approved)
    result = await db.execute(q)
    return [_comment_to_dict(c) for c in result.unique().scalars().all()]


async def get_pending_comments(db: AsyncSession | None) -> list[dict]:
    """Moderation queue: pending comments newest first, with author and article."""
    if db is None:
        return []
    q = (
        select(Comment)
        .where(Comment.status == CommentStatus.pending)
        .options(joinedload(Comment.author), joinedload(Comment.article))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    result = await db.execute(q)
    return [_pending_comment_to_dict(c) for c in result.unique().scalars().all()]


async def get_comment(db: AsyncSession | None, comment_id: int) -> dict | None:
    if db is None:
        return None
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(joinedload(Comment.author))
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(q)).unique().scalar_one_or_none()
    return _comment_to_dict(comment) if comment else None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_comment(
    db: AsyncSession | None, article_id: int, data: CommentCreate, author: User
) -> dict | None:
    """
    Add a comment by *author* to the article and return it.

    Returns None when the article does not exist or is hidden from the
    author.  A ``parent_id`` must name a comment on the same article.
    Admin comments are approved immediately; everyone else's wait in the
    moderation queue.
    """
    db = require_db(db)
    article = await db.get(Article, article_id)
    if article is None:
        return None
    if article.status != ArticleStatus.published and not author.is_admin:
        return None

    if data.parent_id is not None:
        parent = await db.get(Comment, data.parent_id)
        if parent is None or parent.article_id != article_id:
            raise InvalidReferenceError(
                f"Parent comment {data.parent_id} does not belong to article {article_id}"
            )

    comment = Comment(
        article_id=article_id,
        author_id=author.id,
        parent_id=data.parent_id,
        content=data.content,
        status=CommentStatus.approved if author.is_admin else CommentStatus.pending,
    )
    db.add(comment)
    await db.flush()
    logger.info(
        "Comment %d on article %d by user %d (%s)",
        comment.id, article_id, author.id, comment.status.value,
    )
    return await get_comment(db, comment.id)


async def set_comment_status(
    db: AsyncSession | None, comment_id: int, status: CommentStatus
) -> bool:
    """
    Move a comment to *status*.  Replies are left untouched.

    Returns False when the comment does not exist.
    """
    db = require_db(db)
    result = await db.execute(
        update(Comment).where(Comment.id == comment_id).values(status=status)
    )
    if result.rowcount == 0:
        return False
    logger.info("Comment %d marked %s", comment_id, status.value)
    return True


async def approve_comment(db: AsyncSession | None, comment_id: int) -> bool:
    return await set_comment_status(db, comment_id, CommentStatus.approved)


async def reject_comment(db: AsyncSession | None, comment_id: int) -> bool:
    return await set_comment_status(db, comment_id, CommentStatus.rejected)


async def _delete_subtree(db: AsyncSession, comment_id: int) -> int:
    children = await db.execute(select(Comment.id).where(Comment.parent_id == comment_id))
    removed = 0
    for child_id in children.scalars().all():
        removed += await _delete_subtree(db, child_id)
    await db.execute(delete(Comment).where(Comment.id == comment_id))
    return removed + 1


async def delete_comment(db: AsyncSession | None, comment_id: int) -> bool:
    """
    Delete a comment and its entire reply subtree, deepest replies first.

    Returns False when the comment does not exist.
    """
    db = require_db(db)
    if await db.get(Comment, comment_id) is None:
        return False
    removed = await _delete_subtree(db, comment_id)
    logger.info("Comment %d deleted (%d rows including replies)", comment_id, removed)
    return True
