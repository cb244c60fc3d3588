"""Transaction helpers for read-modify-write updates of single documents."""
from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from loguru import logger
from sqlalchemy.exc import IntegrityError, OperationalError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from vocab_stats.config import settings

F = TypeVar("F", bound=Callable[..., Any])

# unique_violation, serialization_failure, deadlock_detected, lock_not_available
CONFLICT_SQLSTATES = frozenset({"23505", "40001", "40P01", "55P03"})
CONFLICT_MESSAGES = (
    "UNIQUE constraint failed",
    "database is locked",
    "duplicate key value",
    "could not serialize access",
    "deadlock detected",
)


def is_conflict(exc: BaseException) -> bool:
    """Return True for errors that a fresh attempt of the transaction can clear.

    Racing inserts on a primary or unique key, serialization failures, deadlocks
    and lock timeouts qualify. Foreign key, NOT NULL and check violations do not.
    """

    if not isinstance(exc, (OperationalError, IntegrityError)):
        return False
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    if pgcode:
        return pgcode in CONFLICT_SQLSTATES
    message = str(orig if orig is not None else exc)
    return any(marker in message for marker in CONFLICT_MESSAGES)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying conflicting transaction",
        function=getattr(retry_state.fn, "__qualname__", "unknown"),
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


def transactional(func: F) -> F:
    """Run a service method as one committed transaction on ``self.db``.

    The wrapped method must read everything it writes inside its own body so
    that a retry after a conflict starts again from a fresh read. Conflicts
    (lock timeouts, serialization failures, racing inserts) are retried with
    backoff; any other error rolls back and propagates immediately.
    """

    @retry(
        stop=stop_after_attempt(settings.TRANSACTION_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception(is_conflict),
        before_sleep=_log_retry,
        reraise=True,
    )
    @functools.wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        try:
            result = func(self, *args, **kwargs)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result

    return wrapper  # type: ignore[return-value]
