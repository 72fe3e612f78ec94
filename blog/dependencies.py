from fastapi import Query

from blog.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates limit/offset
    pagination.

    Usage in a router::

        @router.get("/articles")
        async def list_articles(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Page size, 1-100, clamped to ``settings.MAX_PAGE_SIZE``.
    offset:
        Number of rows to skip (minimum 0).  An offset past the end yields
        an empty page, never an error.
    """

    default_limit = settings.DEFAULT_PAGE_SIZE

    def __init__(
        self,
        limit: int | None = Query(
            None,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
        offset: int = Query(
            0,
            ge=0,
            description="Number of items to skip.",
        ),
    ) -> None:
        if limit is None:
            limit = self.default_limit
        # Respect the application-level hard ceiling even if the schema
        # already validates le=100, so a settings change is sufficient.
        self.limit = min(limit, settings.MAX_PAGE_SIZE)
        self.offset = offset


class AdminPaginationParams(PaginationParams):
    """Same bounds, larger default page for the back office."""

    default_limit = settings.ADMIN_PAGE_SIZE
