# rentals/db/session.py
from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from rentals.core.config import settings


def engine_options(database_url: str) -> dict:
    """Driver-specific create_async_engine kwargs."""
    options = {"echo": settings.SQL_ECHO}
    backend = make_url(database_url).get_backend_name()
    if backend == "mysql":
        # MySQL drops idle connections after wait_timeout
        options.update(pool_pre_ping=True, pool_recycle=3600)
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; closed when the response is sent."""
    async with AsyncSessionLocal() as session:
        yield session
