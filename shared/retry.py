"""
Retry mechanism for resilient operations.
"""

import asyncio
import functools
import random
import time
from typing import Any, Optional, Callable, Awaitable

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior.

    ``max_retries`` counts retries after the first attempt, so a call is
    attempted at most ``max_retries + 1`` times.
    """

    def __init__(self,
                 max_retries: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = False):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter


# on_retry(retry_number, delay, exception, result)
RetryCallback = Callable[[int, float, Optional[BaseException], Any], None]


def calculate_delay(retry_number: int, config: RetryConfig) -> float:
    """Calculate exponential delay before the given retry (1-based)."""
    delay = config.base_delay * (config.exponential_base ** retry_number)
    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)


def with_retry(func: Callable[..., Awaitable[Any]],
               config: Optional[RetryConfig] = None,
               exceptions: tuple = (Exception,),
               retry_on_result: Optional[Callable[[Any], bool]] = None,
               on_retry: Optional[RetryCallback] = None,
               sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> Callable[..., Awaitable[Any]]:
    """Wrap an async callable so transient outcomes are retried with backoff.

    An outcome is transient when the call raises one of ``exceptions`` or
    returns a value for which ``retry_on_result`` is true. Once retries are
    exhausted the last outcome is surfaced as-is: the last result is
    returned, or the last exception is re-raised.
    """
    if config is None:
        config = RetryConfig()

    logger = get_logger(f"retry.{getattr(func, '__name__', 'call')}")

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Any:
        started = time.monotonic()
        retry_number = 0

        while True:
            error: Optional[BaseException] = None
            result: Any = None
            try:
                result = await func(*args, **kwargs)
            except exceptions as e:
                error = e

            transient = error is not None or (
                retry_on_result is not None and retry_on_result(result)
            )
            if not transient:
                if retry_number > 0:
                    logger.info(
                        "Retry succeeded",
                        retries=retry_number,
                        elapsed=round(time.monotonic() - started, 3)
                    )
                return result

            if retry_number >= config.max_retries:
                if config.max_retries > 0:
                    logger.error(
                        "All retry attempts exhausted",
                        retries=retry_number,
                        max_retries=config.max_retries,
                        error=str(error) if error is not None else None
                    )
                if error is not None:
                    raise error
                return result

            retry_number += 1
            delay = calculate_delay(retry_number, config)

            logger.warning(
                "Attempt failed, waiting before next attempt",
                retry=retry_number,
                max_retries=config.max_retries,
                delay=delay,
                elapsed=round(time.monotonic() - started, 3),
                error=str(error) if error is not None else None
            )
            if on_retry is not None:
                on_retry(retry_number, delay, error, result)

            await sleep(delay)

    return wrapper
