"""Exponential-backoff retry for model calls."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import openai

from journeyqa.src.utils.console import RunLogger


T = TypeVar("T")

MAX_DELAY_MS = 60_000

# Errors a retry cannot fix.
NON_TRANSIENT_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
    openai.BadRequestError,
    openai.NotFoundError,
)


def is_rate_limited(exc: BaseException) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    message = str(exc).lower()
    return "429" in message or "rate_limit" in message or "rate limit" in message


def is_transient(exc: BaseException) -> bool:
    return not isinstance(exc, NON_TRANSIENT_ERRORS)


def backoff_delay_ms(attempt: int, base_delay_ms: int, rate_limited: bool) -> int:
    """Delay before retrying after the zero-based ``attempt``."""
    exponent = attempt + 1 if rate_limited else attempt
    return min(MAX_DELAY_MS, base_delay_ms * (2 ** exponent))


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    base_delay_ms: int = 2000,
    *,
    should_retry: Callable[[BaseException], bool] = is_transient,
    logger: Optional[RunLogger] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``fn`` up to ``max_retries`` times and return its first success.

    Rate-limited failures back off one doubling longer than other failures.
    The last error is re-raised once attempts run out; errors rejected by
    ``should_retry`` are re-raised immediately.
    """
    logger = logger or RunLogger()
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as exc:
            if attempt == attempts - 1 or not should_retry(exc):
                raise
            rate_limited = is_rate_limited(exc)
            delay = backoff_delay_ms(attempt, base_delay_ms, rate_limited)
            suffix = " (rate limited)" if rate_limited else ""
            logger.debug(
                f"Retry {attempt + 1}/{attempts - 1} after {delay}ms{suffix}: {str(exc)[:80]}"
            )
            await sleep(delay / 1000)
    raise RuntimeError("unreachable")
