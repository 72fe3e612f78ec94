import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog import database
from blog.config import settings
from blog.database import get_db
from blog.errors import DatabaseUnavailableError, InvalidReferenceError
from blog.logging_config import setup_logging
from blog.middleware import TimingMiddleware
from blog.routers import archive, articles, auth, comments, series, tags

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level)
    logger.info("Blog API %s starting (env=%s)", VERSION, settings.APP_ENV)
    yield
    # Shutdown
    if database.engine is not None:
        await database.engine.dispose()


app = FastAPI(
    title="Blog API",
    description="Articles, series, tags and moderated threaded comments",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(articles.router)
app.include_router(comments.router)
app.include_router(tags.router)
app.include_router(series.router)
app.include_router(archive.router)
app.include_router(auth.router)


# Error mapping
@app.exception_handler(DatabaseUnavailableError)
async def database_unavailable_handler(request: Request, exc: DatabaseUnavailableError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(InvalidReferenceError)
async def invalid_reference_handler(request: Request, exc: InvalidReferenceError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.info("%s %s conflict: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=409,
        content={"detail": "Resource conflicts with existing data"},
    )


@app.get("/health")
async def health(db: AsyncSession | None = Depends(get_db)):
    if db is None:
        return {"status": "degraded", "db": False, "version": VERSION}
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check database ping failed: %s", exc)
        return {"status": "degraded", "db": False, "version": VERSION}
    return {"status": "healthy", "db": True, "version": VERSION}
