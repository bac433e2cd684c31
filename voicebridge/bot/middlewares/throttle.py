"""Per-user sliding-window throttle for messages and button presses."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from voicebridge.config import BotSettings, get_settings
from voicebridge.i18n import I18nService
from voicebridge.logging import logger


class ThrottleMiddleware(BaseMiddleware):
    """In-process only; each worker keeps its own window."""

    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self.window_seconds = self.settings.request_limit.interval_seconds
        self.max_requests = self.settings.request_limit.max_requests
        self._events: Dict[int, Deque[float]] = defaultdict(deque)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = getattr(event, "from_user", None)
        if from_user is None:
            return await handler(event, data)

        now = time.monotonic()
        bucket = self._events[from_user.id]
        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()

        if len(bucket) >= self.max_requests:
            logger.info("request_throttled", telegram_id=from_user.id, window=self.window_seconds)
            await self._notify_limit(event, from_user.language_code)
            return None

        bucket.append(now)
        return await handler(event, data)

    async def _notify_limit(self, event: TelegramObject, language_code: str | None) -> None:
        i18n = I18nService(default_locale=self.settings.default_language)
        text = i18n.gettext("throttle.too_many", locale=language_code)
        if isinstance(event, CallbackQuery):
            await event.answer(text, show_alert=True)
        elif isinstance(event, Message):
            await event.answer(text, parse_mode=None)


__all__ = ["ThrottleMiddleware"]
