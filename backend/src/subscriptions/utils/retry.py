"""Bounded retry for units of work that hit serialization conflicts."""
from typing import Awaitable, Callable, TypeVar

import structlog
from sqlalchemy.exc import DBAPIError, OperationalError

from subscriptions.errors import Conflict

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# SQLSTATE codes PostgreSQL uses for serialization failures and deadlocks
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_serialization_failure(exc: DBAPIError) -> bool:
    """
    Whether a driver error means the transaction lost a race and may be retried.

    Args:
        exc: Wrapped driver error

    Returns:
        True for PostgreSQL serialization failures/deadlocks and SQLite lock errors
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return isinstance(exc, OperationalError) and "database is locked" in str(orig)


async def retry_on_conflict(operation: Callable[[], Awaitable[T]], max_attempts: int) -> T:
    """
    Run ``operation`` until it succeeds or raises something other than Conflict.

    ``operation`` must open and finish its own transaction on every call, so
    that a failed attempt leaves nothing behind.

    Args:
        operation: Zero-argument coroutine function performing one unit of work
        max_attempts: Upper bound on the number of calls

    Returns:
        Result of the first successful attempt

    Raises:
        Conflict: If every attempt conflicted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Conflict as exc:
            if attempt >= max_attempts:
                logger.warning("conflict_retries_exhausted", attempts=attempt, error=str(exc))
                raise
            logger.info("conflict_retrying", attempt=attempt, max_attempts=max_attempts)
            attempt += 1
