"""Async retry helpers for transport calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]


async def retry_async(
    operation: AsyncFactory[T],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    logger=None,
    operation_name: str = "operation",
) -> T:
    """Retry an async operation with linear backoff.

    Only exceptions listed in ``retry_on`` are retried; anything else is raised
    on the first attempt.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as exc:
            if attempt >= max_attempts:
                raise
            delay = base_delay * attempt
            if logger is not None:
                logger.warning(
                    "retrying_operation",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(exc),
                )
            await asyncio.sleep(delay)
            attempt += 1


__all__ = ["retry_async"]
