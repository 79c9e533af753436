"""
Transaction scope for state-changing operations.

Every multi-step operation (a movement plus its stock adjustment, a whole
transfer receipt) runs inside ``atomic()``. It is ``transaction.atomic``
with one addition: serialization failures reported by the database are
raised as ConcurrencyConflictError so callers can retry the operation.
"""

import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from depotman.exceptions import ConcurrencyConflictError

logger = logging.getLogger('depotman')

# serialization_failure, deadlock_detected
SERIALIZATION_SQLSTATES = frozenset({'40001', '40P01'})


def is_serialization_failure(exc: BaseException) -> bool:
    """Whether a database error means "concurrent transaction won, retry"."""
    cause = exc.__cause__
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(cause, 'pgcode', None) or getattr(cause, 'sqlstate', None)
    if code in SERIALIZATION_SQLSTATES:
        return True
    return 'database is locked' in str(exc).lower()


@contextmanager
def atomic(using: str = DEFAULT_DB_ALIAS):
    """
    Scoped transaction: commit on normal exit, roll back on any exception.

    Nested use becomes a savepoint, so a failing inner step rolls back
    only what the outer operation chooses to let fail.

    Raises:
        ConcurrencyConflictError: The store aborted the transaction because
            of a serialization conflict or deadlock.
    """
    try:
        with transaction.atomic(using=using):
            yield
    except OperationalError as exc:
        if not is_serialization_failure(exc):
            raise
        logger.warning(
            "db.concurrency_conflict",
            extra={"using": using, "error": str(exc)},
        )
        raise ConcurrencyConflictError(error=str(exc)) from exc
