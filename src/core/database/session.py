import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Handle to the relational store.

    Owned by the application entry point: created in ``create_app`` and
    opened/closed by the lifespan handler. Services never reach for a global
    engine; they receive an ``AsyncSession`` produced by this handle.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.url = url
        self.echo = echo
        self.engine_kwargs = engine_kwargs
        self.engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> None:
        if self.engine is not None:
            return
        # Hide credentials in logs
        url_for_log = self.url.split("@")[1] if "@" in self.url else self.url
        logger.info("Opening database: %s", url_for_log)

        self.engine = create_async_engine(
            self.url,
            echo=self.echo,
            **self.engine_kwargs,
        )
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        if self.engine is None:
            return
        logger.info("Closing database")
        await self.engine.dispose()
        self.engine = None
        self._sessionmaker = None

    def session(self) -> AsyncSession:
        """New session; fails fast when the store was never opened."""
        if self._sessionmaker is None:
            raise StoreUnavailableError("Database connection is not established")
        return self._sessionmaker()

    async def create_all(self) -> None:
        """Create missing tables (first run of a fresh local database file)."""
        from src.core.database.base import Base
        from src.core.database import models  # noqa: F401

        if self.engine is None:
            raise StoreUnavailableError("Database connection is not established")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        raise StoreUnavailableError("Database connection is not established")
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
