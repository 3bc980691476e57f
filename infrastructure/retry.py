# ============================================================================
# RETRY POLICY
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Infrastructure - Bounded retry without backoff
# PURPOSE: Pure retry loop, kept apart from the network call it wraps
# CREATED: 19 OCT 2026
# ============================================================================
"""
Retry Policy

retry_call runs an operation up to `attempts` times, back to back, and
returns the first successful result. It retries on any Exception whatever
the cause; BaseException subclasses (KeyboardInterrupt, SystemExit) are not
caught and stop the loop immediately.

Usage:
    from infrastructure.retry import retry_call

    token = retry_call(lambda: signer(endpoint, region, user, creds), attempts=2)
"""

import logging
from typing import Callable, Optional, TypeVar

from core.errors import RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_call(
    operation: Callable[[], T],
    attempts: int,
    on_failure: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """
    Call `operation` until it succeeds or `attempts` calls have failed.

    Args:
        operation: Zero-argument callable to run.
        attempts: Total number of calls allowed (>= 1).
        on_failure: Optional hook called with (attempt_number, error) after
            each failed call.

    Returns:
        The first successful result.

    Raises:
        ValueError: If attempts < 1.
        RetryExhausted: If every call raised; `last_error` holds the final
            exception.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as e:
            last_error = e
            logger.debug(f"Attempt {attempt}/{attempts} failed: {type(e).__name__}")
            if on_failure is not None:
                on_failure(attempt, e)

    raise RetryExhausted(attempts, last_error) from last_error


__all__ = ["retry_call"]
