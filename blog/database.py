import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from blog.config import settings
from blog.errors import DatabaseUnavailableError
from blog.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Both stay None when DATABASE_URL is empty; tests override get_db instead.
engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None

if settings.DATABASE_URL:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
    )
    install_query_counter(engine)
    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    logger.warning("DATABASE_URL is not set; running without a database")


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Yield a request-scoped session, or None when no database is configured.

    Services treat a None session as "unavailable": reads return empty
    results and writes raise ``DatabaseUnavailableError``.
    """
    if async_session is None:
        yield None
        return
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def require_db(db: AsyncSession | None) -> AsyncSession:
    """Return *db* or raise when the write path has no session."""
    if db is None:
        raise DatabaseUnavailableError()
    return db
