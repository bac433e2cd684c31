"""User lookup, registration and row locking."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.languages import parse_language
from voicebridge.domain.models import LanguagePair
from voicebridge.logging import logger


class UserService:
    def __init__(self, session: AsyncSession, settings: BotSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    async def find_by_telegram_id(self, telegram_id: int) -> User | None:
        stmt = select(User).where(User.telegram_id == telegram_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, from_user: Any) -> User:
        """Return the stored user for a Telegram account, registering it on first contact."""

        user = await self.find_by_telegram_id(from_user.id)
        if user is None:
            user = User(
                telegram_id=from_user.id,
                username=from_user.username,
                first_name=from_user.first_name,
                last_name=from_user.last_name,
                language_code=from_user.language_code or self.settings.default_language,
                primary_language=self.settings.default_primary_language,
                secondary_language=self.settings.default_secondary_language,
                tier="free",
                daily_used=0,
                monthly_used=0,
                total_used=0,
                total_translations=0,
                voice_awaiting_audio=False,
            )
            self.session.add(user)
            await self.session.flush()
            logger.info("user_registered", user_id=user.id, telegram_id=user.telegram_id)
            return user

        user.username = from_user.username
        user.first_name = from_user.first_name
        user.last_name = from_user.last_name
        return user

    async def lock(self, user: User) -> User:
        """Take a row lock on the user for the rest of the transaction.

        ``populate_existing`` refreshes the identity-mapped instance so counters read
        after the lock reflect any concurrent commit that happened before it. Pending
        changes are flushed first so the refresh does not discard them.
        """

        await self.session.flush()
        stmt = (
            select(User)
            .where(User.id == user.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()


def language_pair_of(user: User) -> LanguagePair:
    return LanguagePair(
        primary=parse_language(user.primary_language),
        secondary=parse_language(user.secondary_language),
    )


__all__ = ["UserService", "language_pair_of"]
