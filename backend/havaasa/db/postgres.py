"""PostgreSQL engine and per-request sessions for the article store."""

from collections.abc import AsyncGenerator

import structlog
from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from havaasa.config import Settings

logger = structlog.get_logger(__name__)


class Database:
    """
    Async engine and session factory for one application instance.

    Built from the settings handed to ``create_app`` so each app (and each
    test app) talks to the database it was configured with.
    """

    def __init__(self, settings: Settings):
        self.engine: AsyncEngine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
        )
        self.sessions = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self) -> None:
        """Create the articles and categories tables if missing."""
        # Register tables on the metadata before create_all
        import havaasa.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("database_initialized", tables=sorted(SQLModel.metadata.tables))

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency yielding a session; an error inside the request rolls it back."""
    database: Database = request.app.state.database
    async with database.sessions() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
