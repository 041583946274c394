"""
Atomic units of work.

``run_atomic`` wraps one business operation: every write it makes commits
together or not at all. Transient conflicts (lock waits, serialization
failures, races on unique keys) are retried with exponential backoff before
they reach the caller; constraint failures caused by bad input surface at once
as ``ValidationError``.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlmodel import Session

from app.config import settings
from app.database import new_session
from app.exceptions import ConcurrencyConflict, ValidationError
from app.services.locks import release_locks

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for ``ConcurrencyConflict``."""
    attempts: int = 3
    backoff_initial: float = 0.05
    backoff_factor: float = 2.0
    backoff_max: float = 1.0
    jitter: bool = True

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            attempts=max(1, settings.tx_retry_attempts),
            backoff_initial=settings.tx_retry_backoff_initial,
            backoff_factor=settings.tx_retry_backoff_factor,
            backoff_max=settings.tx_retry_backoff_max,
        )

    def delay(self, attempt: int) -> float:
        delay = min(
            self.backoff_initial * (self.backoff_factor ** (attempt - 1)),
            self.backoff_max,
        )
        if self.jitter:
            delay = random.uniform(delay / 2, delay)
        return delay


# serialization_failure, deadlock_detected, lock_not_available, unique_violation
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "23505"}
TRANSIENT_MESSAGES = (
    "database is locked",
    "unique constraint failed",
    "could not serialize",
    "deadlock detected",
    "lock timeout",
)


def is_transient(exc: DBAPIError) -> bool:
    """Conflicts a re-run can resolve; foreign key and check failures are not."""
    sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if sqlstate:
        return sqlstate in TRANSIENT_SQLSTATES
    message = str(exc.orig).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGES)


def _apply_lock_timeout(session: Session) -> None:
    if session.get_bind().dialect.name == "postgresql":
        ms = int(settings.lock_timeout_seconds * 1000)
        session.execute(text(f"SET LOCAL lock_timeout = {ms}"))


def run_atomic(
    work: Callable[[Session], T],
    *,
    label: str = "unit",
    policy: Optional[RetryPolicy] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> T:
    policy = policy or RetryPolicy.from_settings()
    factory = session_factory or new_session
    attempt = 0

    while True:
        attempt += 1
        session = factory()
        try:
            _apply_lock_timeout(session)
            result = work(session)
            session.commit()
            return result
        except ConcurrencyConflict as exc:
            session.rollback()
            error = exc
        except (OperationalError, IntegrityError) as exc:
            session.rollback()
            if not is_transient(exc):
                if isinstance(exc, IntegrityError):
                    raise ValidationError(f"{label}: {exc.orig}") from exc
                raise
            error = ConcurrencyConflict(f"{label}: conflicting concurrent update")
            error.__cause__ = exc
        except Exception:
            session.rollback()
            raise
        finally:
            release_locks(session)
            session.close()

        if attempt >= policy.attempts:
            logger.warning(f"{label} gave up after {attempt} attempts: {error.message}")
            raise error

        delay = policy.delay(attempt)
        logger.info(f"{label} conflicted (attempt {attempt}), retrying in {delay:.3f}s")
        time.sleep(delay)
