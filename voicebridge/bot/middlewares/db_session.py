"""Middleware that runs each update inside one database transaction."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from voicebridge.db.session import Database
from voicebridge.logging import logger


class DbSessionMiddleware(BaseMiddleware):
    """Commit when the handler returns; roll back when it raises."""

    def __init__(self, database: Database) -> None:
        super().__init__()
        self.database = database

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.database.session() as session:
            data["session"] = session
            try:
                result = await handler(event, data)
            except Exception:
                await session.rollback()
                logger.warning("update_rolled_back", update_id=getattr(event, "update_id", None))
                raise
            await session.commit()
            return result


__all__ = ["DbSessionMiddleware"]
