"""Bounded retry with exponential backoff for transient store failures.

Only StoreUnavailableError is retried. Business-rule errors (AppError
subclasses) propagate on the first attempt.
"""

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable
from typing import TypeVar

from config.settings import settings
from src.bourse_common.errors import StoreUnavailableError, UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay_ms(attempt: int, base_ms: int, max_ms: int) -> float:
    """Delay before retry number `attempt` (1-based): base * 2^(attempt-1), capped, plus jitter."""
    delay = min(base_ms * (2 ** (attempt - 1)), max_ms)
    jitter = secrets.SystemRandom().uniform(0, delay * 0.1)
    return delay + jitter


async def with_store_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    attempts: int | None = None,
    base_delay_ms: int | None = None,
    max_delay_ms: int | None = None,
) -> T:
    """Run `operation`, retrying StoreUnavailableError up to `attempts` times in total.

    Raises UnavailableError once attempts are exhausted.
    """
    total = attempts if attempts is not None else settings.STORE_RETRY_ATTEMPTS
    base_ms = base_delay_ms if base_delay_ms is not None else settings.STORE_RETRY_BASE_DELAY_MS
    max_ms = max_delay_ms if max_delay_ms is not None else settings.STORE_RETRY_MAX_DELAY_MS

    for attempt in range(1, total + 1):
        try:
            return await operation()
        except StoreUnavailableError as exc:
            if attempt == total:
                logger.error("%s: store unavailable after %d attempts: %s", name, total, exc)
                raise UnavailableError(f"{name}: backing store unavailable") from exc
            delay = backoff_delay_ms(attempt, base_ms, max_ms)
            logger.warning(
                "%s: transient store failure (attempt %d/%d), retrying in %.0fms: %s",
                name, attempt, total, delay, exc,
            )
            await asyncio.sleep(delay / 1000)
    raise UnavailableError(f"{name}: no attempts configured")
