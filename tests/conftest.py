"""Shared pytest fixtures for database-backed service tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from voicebridge.config import BotSettings
from voicebridge.db.base import Base
from voicebridge.db.models.core import User


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def settings() -> BotSettings:
    return BotSettings(telegram_token="123:test", _env_file=None)


@pytest.fixture
def make_user(session):
    async def _make_user(telegram_id: int = 1000, **overrides) -> User:
        values = {
            "telegram_id": telegram_id,
            "username": f"user{telegram_id}",
            "language_code": "en",
            "primary_language": "uk",
            "secondary_language": "en",
            "tier": "free",
        }
        values.update(overrides)
        user = User(**values)
        session.add(user)
        await session.flush()
        return user

    return _make_user
