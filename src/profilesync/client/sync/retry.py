"""Retry logic with linear backoff and cooperative cancellation.

This module provides:
- backoff_delay: Delay to wait before a given attempt
- retry_with_backoff: Bounded retry with linear backoff
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from profilesync.client.sync.types import SyncCancelled

if TYPE_CHECKING:
    from profilesync.client.sync.types import CancelToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_STEP = 0.3  # seconds


def backoff_delay(attempt: int, backoff_step: float = DEFAULT_BACKOFF_STEP) -> float:
    """Get the delay before a given attempt.

    Args:
        attempt: 1-based attempt number.
        backoff_step: Linear backoff unit in seconds.

    Returns:
        0 for the first attempt, backoff_step * (attempt - 1) afterwards.
    """
    if attempt <= 1:
        return 0.0
    return backoff_step * (attempt - 1)


def retry_with_backoff(
    func: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_step: float = DEFAULT_BACKOFF_STEP,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    token: CancelToken | None = None,
) -> T:
    """Execute a function with linear backoff retry.

    Args:
        func: Function to execute.
        max_attempts: Total number of attempts, first one included.
        backoff_step: Delay unit; attempt n waits backoff_step * (n - 1).
        retryable_exceptions: Tuple of exception types to retry on.
        token: Optional cancellation token. Checked before every attempt;
            backoff waits return early when it is cancelled.

    Returns:
        Result of the function.

    Raises:
        SyncCancelled: If the token was cancelled.
        The last exception if all attempts fail.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        delay = backoff_delay(attempt, backoff_step)
        if delay > 0:
            if token is None:
                time.sleep(delay)
            elif token.wait(delay):
                raise SyncCancelled()

        if token is not None:
            token.raise_if_cancelled()

        try:
            return func()
        except retryable_exceptions as e:
            if attempt == max_attempts:
                logger.error(f"All {max_attempts} attempts failed: {e}")
                raise

            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e}. "
                f"Retrying in {backoff_delay(attempt + 1, backoff_step):.1f}s..."
            )

    # Should not reach here, but satisfy type checker
    raise RuntimeError("Unexpected retry loop exit")
