# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Database engine management.

Supports:
- PostgreSQL via asyncpg (production)
- SQLite via aiosqlite (development / tests)

The application owns exactly one `Database`. It is built in
`create_app()`, stored on ``app.state.database`` and disposed by the
lifespan shutdown hook; nothing here is a module-level singleton.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..core.settings import DatabaseSettings
from .models import Base

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return _is_sqlite(url) and (":memory:" in url or url.rstrip("/").endswith(":"))


class Database:
    """
    Async engine plus session factory.

    Usage:
        database = Database(settings.database)
        await database.create_all()

        async with database.session() as session:
            ...

        await database.close()
    """

    def __init__(self, settings: DatabaseSettings):
        self.url = settings.url
        engine_kwargs: dict = {}

        if _is_sqlite(self.url):
            engine_kwargs.update(connect_args={"check_same_thread": False})
            if _is_memory_sqlite(self.url):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs.update(poolclass=StaticPool)
            logger.info("Initializing SQLite database: %s", self.url)
        else:
            engine_kwargs.update(
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_pre_ping=True,
            )
            logger.info("Initializing PostgreSQL database")

        self._engine: AsyncEngine | None = create_async_engine(
            self.url,
            echo=settings.echo,
            **engine_kwargs,
        )
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        """Return the active engine.

        Raises RuntimeError once the database has been closed.
        """
        if self._engine is None:
            raise RuntimeError("Database has been closed")
        return self._engine

    def session(self) -> AsyncSession:
        """Open a new session. Use as ``async with database.session() as s``."""
        if self._engine is None:
            raise RuntimeError("Database has been closed")
        return self._session_factory()

    async def create_all(self) -> None:
        """Create tables from ORM metadata.

        Used for SQLite and tests; PostgreSQL deployments run Alembic instead.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created from ORM metadata")

    async def health_check(self) -> dict:
        """Round-trip a trivial query."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "backend": "sqlite" if _is_sqlite(self.url) else "postgresql"}

    async def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database connections closed")
        self._engine = None


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's database handle."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async session.

    Usage in route handlers::

        @router.get("/posts")
        async def list_posts(session: AsyncSession = Depends(get_db_session)):
            repo = PostRepository(session)
            ...

    The session is committed on success and rolled back on exception.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ============================================================
# EXPORTS
# ============================================================

__all__ = ["Database", "get_database", "get_db_session"]
