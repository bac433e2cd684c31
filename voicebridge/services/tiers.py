"""Tier resolution, feature flags and premium grants."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.models import TierFlags
from voicebridge.logging import logger
from voicebridge.utils.datetime import ensure_utc, utc_now


class TierService:
    def __init__(self, session: AsyncSession, settings: BotSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    @staticmethod
    def is_premium(user: User, *, now: datetime | None = None) -> bool:
        if user.tier != "premium":
            return False
        expires_at = ensure_utc(user.tier_expires_at)
        return expires_at is None or expires_at > (ensure_utc(now) or utc_now())

    def flags_for(self, user: User, *, now: datetime | None = None) -> TierFlags:
        if not self.is_premium(user, now=now):
            return TierFlags()
        features = self.settings.premium_features
        return TierFlags(
            premium=True,
            auto_language_detection=features.auto_language_detection,
            back_translation=features.back_translation,
        )

    def expire_outdated(self, user: User, *, now: datetime | None = None) -> bool:
        """Demote a premium user whose grant has lapsed. Returns True when demoted."""

        if user.tier != "premium" or self.is_premium(user, now=now):
            return False
        logger.info("premium_expired", user_id=user.id, expired_at=user.tier_expires_at)
        user.tier = "free"
        user.tier_expires_at = None
        return True

    async def grant_premium(
        self, user: User, *, days: int | None = None, now: datetime | None = None
    ) -> User:
        """Grant premium for ``days`` days, or indefinitely when ``days`` is None.

        An active time-limited grant is extended from its current expiry.
        """

        now = ensure_utc(now) or utc_now()
        if days is None:
            user.tier_expires_at = None
        else:
            if days <= 0:
                raise ValueError("days must be positive")
            current = ensure_utc(user.tier_expires_at)
            base = current if self.is_premium(user, now=now) and current is not None else now
            user.tier_expires_at = base + timedelta(days=days)
        user.tier = "premium"
        await self.session.flush()
        logger.info(
            "premium_granted",
            user_id=user.id,
            days=days,
            expires_at=user.tier_expires_at,
        )
        return user

    async def revoke_premium(self, user: User) -> User:
        user.tier = "free"
        user.tier_expires_at = None
        await self.session.flush()
        logger.info("premium_revoked", user_id=user.id)
        return user


__all__ = ["TierService"]
