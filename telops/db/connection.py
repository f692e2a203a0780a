"""Database connection and session management for telops.

A ``Database`` owns one async engine and its session factory. It is built
once by the application (or a test) and passed to every service, so there is
no module-level pool.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from telops.config import AppConfig, DBConfig
from telops.db.models import Base
from telops.db.unit_of_work import UnitOfWork


class Database:
    """Async engine plus session factory."""

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Don't expire objects after commit
        )

    @classmethod
    def from_db_config(cls, db_config: DBConfig) -> Database:
        engine_kwargs: dict[str, Any] = {"echo": db_config.echo}

        # SQLite doesn't support connection pooling parameters
        if "sqlite" not in db_config.url.lower():
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.pool_max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_pre_ping": True,  # Verify connections before using
                    "pool_recycle": 3600,  # Recycle connections after 1 hour
                }
            )

        return cls(db_config.url, **engine_kwargs)

    @classmethod
    def from_config(cls, config: AppConfig) -> Database:
        return cls.from_db_config(config.db)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Plain session for read paths.

        Usage:
            async with database.session() as session:
                result = await session.execute(query)
        """
        session = self.session_factory()
        try:
            yield session
        finally:
            await session.close()

    def unit_of_work(self) -> UnitOfWork:
        """Fresh transaction scope with every repository bound to one session."""
        return UnitOfWork(self.session_factory)

    async def create_all(self, drop: bool = False) -> None:
        """Create all tables.

        Note: For production, manage the schema with migrations instead.
        """
        async with self.engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close the engine and its pooled connections.

        Call this on application shutdown.
        """
        await self.engine.dispose()
