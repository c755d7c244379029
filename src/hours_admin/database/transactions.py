"""Serializable transactions with retry.

Concurrent writers touching the same rows at SERIALIZABLE isolation can be
aborted by the database (serialization failure, deadlock). The work is
then re-run from scratch in a fresh transaction after a short backoff.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_TX_MAX_RETRIES, DEFAULT_TX_RETRY_BASE_DELAY, DEFAULT_TX_RETRY_MAX_DELAY
from ..core.exceptions import TransactionConflictError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERIALIZATION_SQLSTATES = frozenset({"40001", "40P01"})
# ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT
MYSQL_RETRYABLE_ERRNOS = frozenset({1213, 1205})


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_TX_MAX_RETRIES
    base_delay: float = DEFAULT_TX_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_TX_RETRY_MAX_DELAY

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)


def is_serialization_failure(exc: DBAPIError) -> bool:
    """True when the database aborted the transaction and a re-run may succeed."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return False

    # psycopg2 exposes pgcode, psycopg 3 and mysql-connector expose sqlstate
    for attr in ("pgcode", "sqlstate"):
        if getattr(orig, attr, None) in SERIALIZATION_SQLSTATES:
            return True

    if getattr(orig, "errno", None) in MYSQL_RETRYABLE_ERRNOS:
        return True

    return "database is locked" in str(orig).lower()


def serializable_transaction_with_retry(
    conn_factory: DatabaseConnection,
    work: Callable[[Session], T],
    *,
    session: Optional[Session] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run `work(session)` in a SERIALIZABLE transaction, retrying on conflicts.

    When the caller passes its own `session`, the work joins that session's
    transaction instead: isolation and retries are then the caller's job.
    """

    if session is not None:
        return work(session)

    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        db_session = conn_factory.new_session()
        try:
            db_session.connection(execution_options={"isolation_level": "SERIALIZABLE"})
            result = work(db_session)
            db_session.commit()
            return result
        except DBAPIError as exc:
            db_session.rollback()
            if not is_serialization_failure(exc):
                raise
            if attempt >= policy.max_retries:
                logger.error("Serializable transaction failed after %s retries", attempt)
                raise TransactionConflictError(
                    f"Transaction aborted by concurrent writes after {attempt} retries"
                ) from exc
            delay = policy.delay_for(attempt)
            attempt += 1
            logger.warning("Serialization failure, retry %s/%s in %.3fs", attempt, policy.max_retries, delay)
        except Exception:
            db_session.rollback()
            raise
        finally:
            db_session.close()

        sleep(delay)
