"""Bounded exponential-backoff retry for a single async attempt."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    type RetryHook = Callable[[int, BaseException, float], None]
    type Sleep = Callable[[float], Awaitable[None]]

log = getLogger(__name__)


class RetryExhaustedError(RuntimeError):
    """Raised after the last allowed attempt failed; the final error is chained."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def backoff_delay(attempt: int, *, base_delay: float, max_delay: float) -> float:
    """Delay before the attempt following failed attempt number ``attempt`` (1-based)."""

    return min(base_delay * 2 ** (attempt - 1), max_delay)


async def retry_async[T](
    func: Callable[[], Awaitable[T]],
    *,
    retries: int,
    base_delay: float,
    max_delay: float,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    on_retry: RetryHook | None = None,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``func`` up to ``retries + 1`` times.

    Only exceptions matching ``exceptions`` are retried; anything else propagates
    from the attempt that raised it.
    """

    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")

    attempts = retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except exceptions as exc:
            if attempt == attempts:
                raise RetryExhaustedError(
                    f"Gave up after {attempts} attempts: {exc}",
                    attempts=attempts,
                    last_error=exc,
                ) from exc
            delay = backoff_delay(attempt, base_delay=base_delay, max_delay=max_delay)
            log.info("Attempt %s/%s failed (%s); retrying in %.1fs", attempt, attempts, exc, delay)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            await sleep(delay)
    # unreachable: the loop returns or raises on the final attempt
    raise AssertionError("retry loop exited without a result")
