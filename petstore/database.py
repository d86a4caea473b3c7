import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from petstore.config import Settings
from petstore.models import Base
from petstore.sql.datastore import DataStore

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine (and its connection pool) for PostgreSQL."""
    url = make_url(settings.sqlalchemy_url)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url, echo=settings.debug)

    connect_args = {}
    if url.drivername == "postgresql+asyncpg":
        connect_args["ssl"] = settings.ssl_mode
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_pre_ping=settings.pool_pre_ping,
        connect_args=connect_args,
    )


class Database:
    """Pooled database handle.

    Built once by the application lifespan and handed to every data-access
    component; nothing else creates engines.
    """

    def __init__(self, engine: AsyncEngine, statement_timeout: Optional[float] = None):
        self.engine = engine
        self.statement_timeout = statement_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = create_engine_from_settings(settings)
        logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
        return cls(engine, statement_timeout=settings.statement_timeout_seconds)

    def store(self) -> DataStore:
        """Get a DataStore running each call in its own transaction."""
        return DataStore(self.engine, statement_timeout=self.statement_timeout)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def create_all(self) -> None:
        """Create tables (development only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
