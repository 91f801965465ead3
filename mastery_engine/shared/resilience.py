"""Retry helpers for calls that cross the persistence boundary."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from mastery_engine.shared.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    async_func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay_seconds: float = 0.5,
    retryable_errors: tuple[type[Exception], ...] = (StoreUnavailableError,),
    operation: str = "store call",
) -> T:
    """Await ``async_func`` until it succeeds or the retries are exhausted.

    Delays double after each failed attempt. The last error is re-raised.
    """
    max_retries = max(1, max_retries)
    last_exception: Exception | None = None
    for attempt in range(max_retries):
        try:
            return await async_func()
        except retryable_errors as exc:
            last_exception = exc
            logger.warning(f"{operation} failed (attempt {attempt + 1}/{max_retries}): {exc}")
            if attempt == max_retries - 1:
                break
            await asyncio.sleep(base_delay_seconds * (2 ** attempt))
    if last_exception:
        raise last_exception
