"""Backing-store failure translation."""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from condo_access.errors import StoreUnavailableError

logger = structlog.get_logger()

# Connectivity only. Integrity and programming errors are not outages and
# propagate unchanged.
OUTAGE_ERRORS: tuple[type[Exception], ...] = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    TimeoutError,
)


@contextmanager
def store_errors(store: str) -> Iterator[None]:
    """Re-raise an unreachable database as :class:`StoreUnavailableError`.

    Callers must never read an outage as allow or deny.
    """
    try:
        yield
    except OUTAGE_ERRORS as e:
        logger.error("store_unavailable", store=store, error=type(e).__name__)
        raise StoreUnavailableError(f"{store} unavailable") from e
