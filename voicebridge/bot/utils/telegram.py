"""Telegram transport helpers with retry support."""

from __future__ import annotations

from typing import Any

from aiogram import Bot
from aiogram.exceptions import TelegramNetworkError, TelegramRetryAfter, TelegramServerError
from aiogram.types import InputFile, Message

from voicebridge.logging import logger
from voicebridge.services.exceptions import ExternalComputeError
from voicebridge.utils.retry import retry_async

TELEGRAM_SEND_MAX_ATTEMPTS = 3
TELEGRAM_SEND_BASE_DELAY = 0.3
TRANSIENT_ERRORS = (TelegramNetworkError, TelegramRetryAfter, TelegramServerError)


async def answer_with_retry(message: Message, text: str, **kwargs: Any) -> Any:
    """Reply in the message's chat, retrying transient Telegram failures."""

    async def _send():
        return await message.answer(text, **kwargs)

    return await retry_async(
        _send,
        max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
        base_delay=TELEGRAM_SEND_BASE_DELAY,
        retry_on=TRANSIENT_ERRORS,
        logger=logger,
        operation_name="telegram_answer",
    )


async def answer_voice_with_retry(message: Message, voice: InputFile, **kwargs: Any) -> Any:
    async def _send():
        return await message.answer_voice(voice, **kwargs)

    return await retry_async(
        _send,
        max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
        base_delay=TELEGRAM_SEND_BASE_DELAY,
        retry_on=TRANSIENT_ERRORS,
        logger=logger,
        operation_name="telegram_answer_voice",
    )


async def bot_send_with_retry(bot: Bot, *, chat_id: int, text: str, **kwargs: Any) -> Any:
    async def _send():
        return await bot.send_message(chat_id=chat_id, text=text, **kwargs)

    return await retry_async(
        _send,
        max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
        base_delay=TELEGRAM_SEND_BASE_DELAY,
        retry_on=TRANSIENT_ERRORS,
        logger=logger,
        operation_name="telegram_send_message",
    )


async def download_file(bot: Bot, file_id: str) -> bytes:
    """Fetch a voice clip from Telegram; failures surface as the ``download`` step."""

    async def _download():
        buffer = await bot.download(file_id)
        return buffer.getvalue()

    try:
        return await retry_async(
            _download,
            max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
            base_delay=TELEGRAM_SEND_BASE_DELAY,
            retry_on=TRANSIENT_ERRORS,
            logger=logger,
            operation_name="telegram_download",
        )
    except Exception as exc:
        logger.error("telegram_download_failed", file_id=file_id, error=str(exc))
        raise ExternalComputeError("download", str(exc)) from exc


__all__ = ["answer_voice_with_retry", "answer_with_retry", "bot_send_with_retry", "download_file"]
