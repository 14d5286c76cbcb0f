"""Bounded retry with exponential backoff.

This module provides:
- retry_with_backoff: call a function up to a fixed number of attempts
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INITIAL_BACKOFF = 0.5  # seconds
DEFAULT_MAX_BACKOFF = 8.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0


def retry_with_backoff(
    func: Callable[[], Any],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
) -> Any:
    """Execute a function with exponential backoff retry.

    The function is called at most `max_attempts` times in total.

    Args:
        func: Function to execute.
        max_attempts: Total number of attempts, including the first one.
        initial_backoff: Sleep before the second attempt, in seconds.
        max_backoff: Upper bound for a single sleep.
        backoff_multiplier: Multiplier applied after each failed attempt.
        retryable_exceptions: Tuple of exception types to retry on.
        on_retry: Optional callback(attempt, error) before each retry.

    Returns:
        Result of the function.

    Raises:
        The last exception if all attempts fail.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    backoff = initial_backoff

    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except retryable_exceptions as e:
            if attempt == max_attempts:
                logger.error(f"All {max_attempts} attempts failed: {e}")
                raise

            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )
            if on_retry:
                on_retry(attempt, e)
            if backoff > 0:
                time.sleep(backoff)
            backoff = min(backoff * backoff_multiplier, max_backoff)

    raise RuntimeError("Unexpected retry loop exit")
