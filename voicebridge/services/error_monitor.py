"""Report unhandled bot errors to the administrator chat."""

from __future__ import annotations

import traceback
from typing import Any

from aiogram import Bot
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import ErrorEvent, Update

from voicebridge.bot.utils.telegram import bot_send_with_retry
from voicebridge.config import BotSettings
from voicebridge.logging import logger
from voicebridge.services.exceptions import ExternalComputeError

TELEGRAM_MESSAGE_LIMIT = 3900
TRACEBACK_CHAR_LIMIT = 2000

_ACTOR_FIELDS = ("message", "edited_message", "callback_query")


class ErrorMonitor:
    """aiogram error observer; always returns ``UNHANDLED`` so other observers still run."""

    def __init__(self, settings: BotSettings) -> None:
        self._settings = settings

    async def __call__(self, event: ErrorEvent, bot: Bot) -> Any:
        return await self.handle_error(event, bot)

    async def handle_error(self, event: ErrorEvent, bot: Bot) -> Any:
        update_id = getattr(event.update, "update_id", None)
        logger.error(
            "bot_error_captured",
            exception_type=event.exception.__class__.__name__,
            exception=str(event.exception),
            update_id=update_id,
        )
        admin_id = self._settings.admin_telegram_id
        if admin_id is None:
            return UNHANDLED

        try:
            await bot_send_with_retry(bot, chat_id=admin_id, text=self.build_report(event), parse_mode=None)
        except Exception:
            logger.exception("error_monitor_notification_failed", update_id=update_id)
        return UNHANDLED

    def build_report(self, event: ErrorEvent) -> str:
        exception = event.exception
        update = event.update
        lines = [
            "VOICEBRIDGE ERROR",
            f"Environment: {self._settings.environment}",
            f"Exception: {exception.__class__.__name__}: {exception}",
        ]
        if isinstance(exception, ExternalComputeError):
            lines.append(f"Failed step: {exception.step}")
        lines.extend(
            [
                f"Update ID: {getattr(update, 'update_id', 'unknown')}",
                f"Update: {self._describe_update(update)}",
                f"User: {self._describe_user(update)}",
            ]
        )
        trace = self._format_traceback(exception)
        if trace:
            lines.extend(["", "Traceback:", trace])

        text = "\n".join(lines)
        if len(text) > TELEGRAM_MESSAGE_LIMIT:
            text = f"{text[:TELEGRAM_MESSAGE_LIMIT - 15].rstrip()}\n...[truncated]"
        return text

    @staticmethod
    def _actor(update: Update | None) -> Any | None:
        if update is None:
            return None
        for field in _ACTOR_FIELDS:
            value = getattr(update, field, None)
            if value is not None:
                return value
        return None

    def _describe_update(self, update: Update | None) -> str:
        actor = self._actor(update)
        if actor is None:
            return "unknown"
        data = getattr(actor, "data", None)
        if data is not None:
            return f"callback {data}"
        voice = getattr(actor, "voice", None)
        if voice is not None:
            return f"voice {voice.duration}s, {voice.file_size or 0} bytes"
        text = getattr(actor, "text", None)
        if text:
            return f"text {text[:200]!r}"
        return "message"

    def _describe_user(self, update: Update | None) -> str:
        actor = self._actor(update)
        user = getattr(actor, "from_user", None) if actor is not None else None
        if user is None:
            return "unknown"
        parts = [str(user.id), user.full_name]
        if user.username:
            parts.append(f"@{user.username}")
        return " | ".join(part for part in parts if part)

    @staticmethod
    def _format_traceback(exception: BaseException) -> str:
        trace = "".join(
            traceback.format_exception(exception.__class__, exception, exception.__traceback__)
        ).strip()
        if len(trace) <= TRACEBACK_CHAR_LIMIT:
            return trace
        # Innermost frames are at the end.
        return f"...[truncated]\n{trace[-(TRACEBACK_CHAR_LIMIT - 15):].lstrip()}"


__all__ = ["ErrorMonitor"]
