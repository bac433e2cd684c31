from aiogram import Router

from voicebridge.bot.routers import commands, settings, voice


def setup_routers() -> Router:
    router = Router()
    router.include_router(commands.router)
    router.include_router(settings.router)
    # Registered last: its text handler catches anything the others ignore.
    router.include_router(voice.router)
    return router


__all__ = ["setup_routers"]
