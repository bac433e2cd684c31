"""Per-user token quota with calendar-based daily and monthly resets."""

from __future__ import annotations

from datetime import datetime

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.models import UsageSnapshot
from voicebridge.logging import logger
from voicebridge.services.exceptions import QuotaExceeded
from voicebridge.utils.datetime import ensure_utc, same_day, same_month, utc_now


class QuotaTracker:
    """Evaluates and records token usage on the user row.

    The tracker never touches the database session itself: the caller holds the
    row lock and commits the surrounding transaction. Calendar boundaries are UTC.
    """

    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or get_settings()

    def limits_for(self, user: User) -> tuple[int, int]:
        quota = self.settings.quota
        if user.tier == "premium":
            return quota.premium_daily_tokens, quota.premium_monthly_tokens
        return quota.free_daily_tokens, quota.free_monthly_tokens

    def normalize(self, user: User, *, now: datetime | None = None) -> None:
        """Reset counters whose calendar period has rolled over since the last reset."""

        now = ensure_utc(now) or utc_now()
        last_daily = ensure_utc(user.last_daily_reset)
        last_monthly = ensure_utc(user.last_monthly_reset)

        if last_daily is None or not same_day(last_daily, now):
            if user.daily_used:
                logger.info("quota_daily_reset", user_id=user.id, previous=user.daily_used)
            user.daily_used = 0
            user.last_daily_reset = now

        if last_monthly is None or not same_month(last_monthly, now):
            if user.monthly_used:
                logger.info("quota_monthly_reset", user_id=user.id, previous=user.monthly_used)
            user.monthly_used = 0
            user.last_monthly_reset = now

    def can_consume(self, user: User, estimated_tokens: int, *, now: datetime | None = None) -> bool:
        if estimated_tokens < 0:
            raise ValueError("estimated_tokens must not be negative")
        self.normalize(user, now=now)
        daily_limit, monthly_limit = self.limits_for(user)
        return (
            (user.daily_used or 0) + estimated_tokens <= daily_limit
            and (user.monthly_used or 0) + estimated_tokens <= monthly_limit
        )

    def ensure_can_consume(
        self, user: User, estimated_tokens: int, *, now: datetime | None = None
    ) -> None:
        if self.can_consume(user, estimated_tokens, now=now):
            return
        daily_limit, monthly_limit = self.limits_for(user)
        daily_remaining = max(0, daily_limit - (user.daily_used or 0))
        monthly_remaining = max(0, monthly_limit - (user.monthly_used or 0))
        logger.info(
            "quota_rejected",
            user_id=user.id,
            tier=user.tier,
            requested=estimated_tokens,
            daily_remaining=daily_remaining,
            monthly_remaining=monthly_remaining,
        )
        raise QuotaExceeded(
            daily_remaining=daily_remaining,
            monthly_remaining=monthly_remaining,
            requested=estimated_tokens,
        )

    def commit(self, user: User, actual_tokens: int, *, now: datetime | None = None) -> None:
        """Record spent tokens. Never rejects, even when the result overshoots a limit."""

        actual_tokens = max(0, actual_tokens)
        self.normalize(user, now=now)
        user.daily_used = (user.daily_used or 0) + actual_tokens
        user.monthly_used = (user.monthly_used or 0) + actual_tokens
        user.total_used = (user.total_used or 0) + actual_tokens
        logger.info(
            "quota_committed",
            user_id=user.id,
            tokens=actual_tokens,
            daily_used=user.daily_used,
            monthly_used=user.monthly_used,
        )

    def snapshot(self, user: User, *, now: datetime | None = None) -> UsageSnapshot:
        self.normalize(user, now=now)
        daily_limit, monthly_limit = self.limits_for(user)
        return UsageSnapshot(
            tier="premium" if user.tier == "premium" else "free",
            daily_used=user.daily_used or 0,
            daily_limit=daily_limit,
            monthly_used=user.monthly_used or 0,
            monthly_limit=monthly_limit,
            total_used=user.total_used or 0,
        )


__all__ = ["QuotaTracker"]
