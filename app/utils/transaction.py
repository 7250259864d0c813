# ledger_service/app/utils/transaction.py
"""
One database transaction per logical ledger operation.

``run_atomic`` calls ``operation`` and commits once at the end. Any exception
rolls back everything the operation flushed, so a failure between two wallet
updates, or between a wallet update and the trade/transaction insert, leaves
no trace. Concurrency conflicts restart the whole operation from a fresh
read, a bounded number of times.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import ConflictError, LedgerError, PersistenceFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure / deadlock_detected
_CONFLICT_SQLSTATES = {"40001", "40P01"}


def is_conflict(exc: BaseException) -> bool:
    """True for errors that mean another writer won the race."""
    if isinstance(exc, (ConflictError, StaleDataError)):
        return True
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        if getattr(exc.orig, "pgcode", None) in _CONFLICT_SQLSTATES:
            return True
        if "database is locked" in str(exc.orig):
            return True
    return False


def run_atomic(
    db: Session,
    operation: Callable[[], T],
    operation_name: str = "ledger operation",
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
) -> T:
    attempts = max_retries if max_retries is not None else settings.conflict_max_retries
    attempts = max(attempts, 1)
    delay = retry_delay if retry_delay is not None else settings.conflict_retry_delay

    for attempt in range(attempts):
        try:
            result = operation()
            db.commit()
            return result
        except LedgerError as e:
            db.rollback()
            if not e.retryable:
                raise
            last_error: Exception = e
        except SQLAlchemyError as e:
            db.rollback()
            if not is_conflict(e):
                logger.error(f"{operation_name} failed in storage, rolled back: {e}")
                raise PersistenceFailure(f"{operation_name} could not be persisted") from e
            last_error = e
        except Exception:
            db.rollback()
            logger.exception(f"{operation_name} failed, rolled back")
            raise

        if attempt < attempts - 1:
            logger.warning(f"{operation_name} conflicted (attempt {attempt + 1}/{attempts}), retrying")
            time.sleep(delay * (attempt + 1))

    logger.error(f"{operation_name} still conflicting after {attempts} attempts")
    raise ConflictError(
        f"{operation_name} conflicted with a concurrent update, please retry",
        {"attempts": attempts},
    ) from last_error
