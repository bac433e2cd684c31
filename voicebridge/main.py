"""Application entrypoint."""

from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.types import BotCommand

from voicebridge.agents.translator import TranslationAgent
from voicebridge.bot.middlewares import (
    DbSessionMiddleware,
    ThrottleMiddleware,
    UserContextMiddleware,
)
from voicebridge.bot.routers import setup_routers
from voicebridge.config import get_settings
from voicebridge.db.session import Database
from voicebridge.logging import configure_logging, logger
from voicebridge.services.error_monitor import ErrorMonitor
from voicebridge.services.orchestrator import TranslationOrchestrator
from voicebridge.services.speech import OpenAISpeechClient

BOT_COMMANDS = [
    BotCommand(command="start", description="Start"),
    BotCommand(command="dictate", description="Choose the language you will speak"),
    BotCommand(command="settings", description="Language pair"),
    BotCommand(command="limits", description="Token limits"),
    BotCommand(command="stats", description="Usage statistics"),
    BotCommand(command="history", description="Recent translations"),
    BotCommand(command="cancel", description="Cancel dictation"),
    BotCommand(command="help", description="Help"),
]


async def main() -> None:
    configure_logging()
    settings = get_settings()
    settings.llm.apply_environment()

    session = AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    bot = Bot(token=settings.telegram_token.get_secret_value(), session=session)
    dp = Dispatcher()
    dp.include_router(setup_routers())
    dp.errors.register(ErrorMonitor(settings=settings))

    database = Database(settings=settings)
    await database.create_schema()

    dp.update.outer_middleware(DbSessionMiddleware(database))
    throttle_middleware = ThrottleMiddleware(settings)
    user_context_middleware = UserContextMiddleware(settings)
    for observer in (dp.message, dp.callback_query):
        observer.middleware(throttle_middleware)
        observer.middleware(user_context_middleware)

    speech_client = OpenAISpeechClient(settings)
    orchestrator = TranslationOrchestrator(
        speech_client,
        TranslationAgent.build(settings),
        settings=settings,
    )

    await bot.set_my_commands(BOT_COMMANDS)
    logger.info("bot_starting", environment=settings.environment)
    try:
        await dp.start_polling(bot, orchestrator=orchestrator, speech_client=speech_client)
    finally:
        await speech_client.close()
        await database.dispose()
        await bot.session.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
