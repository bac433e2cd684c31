"""Load (or register) the Telegram user and attach it to the handler context."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.bot.utils.telegram import answer_with_retry
from voicebridge.config import BotSettings, get_settings
from voicebridge.i18n import I18nService
from voicebridge.services.tiers import TierService
from voicebridge.services.users import UserService
from voicebridge.utils.datetime import utc_now


class UserContextMiddleware(BaseMiddleware):
    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = getattr(event, "from_user", None)
        if from_user is None:
            return await handler(event, data)

        settings = self.settings or get_settings()
        chat = self._extract_chat(event)
        if chat is not None and chat.type != "private":
            i18n = I18nService(default_locale=settings.default_language)
            text = i18n.gettext("group.not_supported", locale=from_user.language_code)
            await self._send_not_supported(event, text)
            return None

        session: AsyncSession = data["session"]
        user = await UserService(session, settings).get_or_create(from_user)
        TierService(session, settings).expire_outdated(user)
        user.last_seen_at = utc_now()
        data["db_user"] = user
        return await handler(event, data)

    @staticmethod
    def _extract_chat(event: TelegramObject):
        if isinstance(event, CallbackQuery):
            message = event.message
            return getattr(message, "chat", None) if message is not None else None
        return getattr(event, "chat", None)

    @staticmethod
    async def _send_not_supported(event: TelegramObject, text: str) -> None:
        if isinstance(event, CallbackQuery):
            await event.answer(text, show_alert=True)
        elif isinstance(event, Message):
            await answer_with_retry(event, text, parse_mode=None)


__all__ = ["UserContextMiddleware"]
