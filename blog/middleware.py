import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Receive, Scope, Send

from blog.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-request context variable
# ---------------------------------------------------------------------------

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Register a ``before_cursor_execute`` listener on *engine* that bumps
    the per-request ``query_count_var`` for every SQL statement, including
    the extra SELECTs issued by ``selectinload``.

    Call once per engine (``blog.database`` for the app, ``conftest`` for tests).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, so ContextVar writes made by handlers stay visible)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Adds ``X-Response-Time-Ms`` and ``X-Query-Count`` to every HTTP
    response and logs one line per request.  Requests slower than
    ``settings.SLOW_REQUEST_MS`` are logged at WARNING.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: int | None = None) -> None:
        self.app = app
        self.slow_request_ms = (
            slow_request_ms if slow_request_ms is not None else settings.SLOW_REQUEST_MS
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_count_var.set(0)
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(query_count_var.get()).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            level = logging.WARNING if duration_ms >= self.slow_request_ms else logging.DEBUG
            logger.log(
                level,
                "%s %s -> %d in %.2fms (%d queries)",
                scope["method"],
                scope["path"],
                status_code,
                duration_ms,
                query_count_var.get(),
            )
