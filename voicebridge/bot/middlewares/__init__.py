from voicebridge.bot.middlewares.db_session import DbSessionMiddleware
from voicebridge.bot.middlewares.throttle import ThrottleMiddleware
from voicebridge.bot.middlewares.user_context import UserContextMiddleware

__all__ = [
    "DbSessionMiddleware",
    "ThrottleMiddleware",
    "UserContextMiddleware",
]
