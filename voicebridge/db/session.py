"""Async SQLAlchemy engine and session management."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.base import Base
from voicebridge.db.models import core as _models  # noqa: F401  registers tables on Base.metadata
from voicebridge.logging import logger


class Database:
    """Lazily builds the engine on first use and hands out request-scoped sessions."""

    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            db_cfg = self.settings.database
            self._engine = create_async_engine(
                db_cfg.dsn,
                echo=db_cfg.echo,
                pool_size=db_cfg.pool_size,
                max_overflow=db_cfg.max_overflow,
                pool_recycle=db_cfg.pool_recycle,
                pool_pre_ping=db_cfg.pool_pre_ping,
            )
            logger.info(
                "db_engine_initialized",
                dsn=make_url(db_cfg.dsn).render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def create_schema(self) -> None:
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
        logger.info("db_schema_ready", tables=sorted(Base.metadata.tables))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


__all__ = ["Database"]
