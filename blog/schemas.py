from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from blog.config import settings
from blog.models import ArticleStatus, CommentStatus, UserRole

ArticleOrder = Literal["newest", "oldest", "weight"]


class SuccessResponse(BaseModel):
    success: bool = True


# --- User ---

class AuthorResponse(BaseModel):
    id: int
    name: str | None = None
    model_config = ConfigDict(from_attributes=True)


class UserResponse(AuthorResponse):
    open_id: str
    email: str | None = None
    login_method: str | None = None
    role: UserRole
    created_at: datetime | None = None
    last_signed_in: datetime | None = None


# --- Tag ---

class TagBase(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    color: str | None = Field(None, max_length=32)


class TagCreate(TagBase):
    # Derived from the name when omitted.
    slug: str | None = Field(None, min_length=1, max_length=128)


class TagUpdate(BaseModel):
    slug: str | None = Field(None, min_length=1, max_length=128)
    name: str | None = Field(None, min_length=1, max_length=128)
    color: str | None = Field(None, max_length=32)


class TagResponse(TagBase):
    id: int
    slug: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class TagWithCount(BaseModel):
    tag: TagResponse
    count: int


# --- Series ---

class SeriesBase(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    description: str | None = None
    cover_image: str | None = None


class SeriesCreate(SeriesBase):
    slug: str | None = Field(None, min_length=1, max_length=128)


class SeriesUpdate(BaseModel):
    slug: str | None = Field(None, min_length=1, max_length=128)
    title: str | None = Field(None, min_length=1, max_length=256)
    description: str | None = None
    cover_image: str | None = None


class SeriesResponse(SeriesBase):
    id: int
    slug: str
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class SeriesWithCount(BaseModel):
    series: SeriesResponse
    count: int


# --- Article ---

class Footnote(BaseModel):
    id: str
    content: str


class ArticleFilter(BaseModel):
    """Listing predicates; every field is optional and they AND together."""

    status: ArticleStatus | None = None
    tag_id: int | None = None
    series_id: int | None = None
    year: int | None = None
    search: str | None = Field(None, max_length=200)


class ArticleCreate(BaseModel):
    slug: str | None = Field(None, min_length=1, max_length=256)
    title: str = Field(min_length=1, max_length=512)
    excerpt: str | None = None
    content: str = Field(min_length=1)
    cover_image: str | None = None
    series_id: int | None = None
    series_order: int | None = None
    weight: int = Field(0, ge=0)
    status: ArticleStatus = ArticleStatus.draft
    gallery: list[str] | None = None
    footnotes: list[Footnote] | None = None
    tag_ids: list[int] | None = None


class ArticleUpdate(BaseModel):
    slug: str | None = Field(None, min_length=1, max_length=256)
    title: str | None = Field(None, min_length=1, max_length=512)
    excerpt: str | None = None
    content: str | None = Field(None, min_length=1)
    cover_image: str | None = None
    series_id: int | None = None
    series_order: int | None = None
    weight: int | None = Field(None, ge=0)
    status: ArticleStatus | None = None
    gallery: list[str] | None = None
    footnotes: list[Footnote] | None = None
    tag_ids: list[int] | None = None


class ArticleResponse(BaseModel):
    id: int
    slug: str
    title: str
    excerpt: str | None
    cover_image: str | None
    author_id: int
    series_id: int | None
    series_order: int | None
    weight: int
    status: ArticleStatus
    published_at: datetime | None
    view_count: int
    created_at: datetime | None
    author: AuthorResponse | None = None
    tags: list[TagResponse] = []
    model_config = ConfigDict(from_attributes=True)


class ArticleDetail(ArticleResponse):
    content: str
    gallery: list[str] = []
    footnotes: list[Footnote] = []
    series: SeriesResponse | None = None


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=settings.MAX_COMMENT_LENGTH)
    parent_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    article_id: int
    author_id: int
    parent_id: int | None
    content: str
    status: CommentStatus
    created_at: datetime | None
    author: AuthorResponse | None = None
    model_config = ConfigDict(from_attributes=True)


class CommentArticleSummary(BaseModel):
    id: int
    title: str
    slug: str


class PendingCommentResponse(CommentResponse):
    article: CommentArticleSummary | None = None


class CommentTreeNode(CommentResponse):
    replies: list["CommentTreeNode"] = []


# --- Archive ---

class ArchiveYear(BaseModel):
    year: int
    count: int


CommentTreeNode.model_rebuild()
