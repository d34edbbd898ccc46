"""
GitlessSync Client - Retry Module

Generic retry with exponential backoff over a fallible operation.

Author: GitlessSync Project
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from gitless_sync.exceptions import (
    GitlessSyncAuthError,
    GitlessSyncValidationError
)

# Configure logging
logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings for a single remote operation.

    max_attempts counts the first attempt, so max_attempts=3 means at
    most two retries. A disabled policy makes exactly one attempt.
    """
    enabled: bool = True
    max_attempts: int = 5
    initial_delay: float = 1.0
    backoff_factor: float = 2.0

    @property
    def attempts(self) -> int:
        if not self.enabled:
            return 1
        return max(1, self.max_attempts)


NO_RETRY = RetryPolicy(enabled=False)


def is_retryable(error: Exception) -> bool:
    """
    Decide whether a failed remote call may succeed if repeated.

    Validation (422) and authentication (401/403) failures are final.
    Everything else, including network errors, is retried.
    """
    return not isinstance(error, (GitlessSyncValidationError, GitlessSyncAuthError))


def retry_until(fn: Callable[[], T],
                should_retry: Callable[[Exception], bool],
                max_attempts: int = 5,
                initial_delay: float = 1.0,
                backoff_factor: float = 2.0,
                sleep: Callable[[float], None] = time.sleep) -> T:
    """
    Call fn until it succeeds, the error is final, or attempts run out.

    Args:
        fn: Operation to run
        should_retry: Predicate deciding if an exception is worth retrying
        max_attempts: Total attempts including the first one
        initial_delay: Seconds to wait before the first retry
        backoff_factor: Multiplier applied to the delay after each retry
        sleep: Sleep function, replaceable in tests

    Returns:
        Whatever fn returns

    Raises:
        The last exception raised by fn, unchanged
    """
    attempt = 1
    delay = initial_delay

    while True:
        try:
            return fn()
        except Exception as e:
            if attempt >= max_attempts or not should_retry(e):
                raise
            logger.warning(f"Attempt {attempt}/{max_attempts} failed ({e}), retrying in {delay:.1f}s")
            sleep(delay)
            delay *= backoff_factor
            attempt += 1
