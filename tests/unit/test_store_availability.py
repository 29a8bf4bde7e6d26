"""Only connectivity failures count as a store outage."""

import pytest
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from condo_access.errors import StoreUnavailableError
from condo_access.storage.availability import store_errors


@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT 1", {}, Exception("connection refused")),
        InterfaceError("SELECT 1", {}, Exception("connection closed")),
        PoolTimeoutError("QueuePool limit reached"),
        TimeoutError(),
    ],
)
def test_outage_becomes_store_unavailable(error: Exception) -> None:
    with pytest.raises(StoreUnavailableError) as exc_info:
        with store_errors("role_store"):
            raise error
    assert exc_info.value.message == "role_store unavailable"
    assert exc_info.value.__cause__ is error


@pytest.mark.parametrize(
    "error",
    [
        IntegrityError("INSERT", {}, Exception("violates foreign key constraint")),
        ProgrammingError("SELECT", {}, Exception("column does not exist")),
    ],
)
def test_other_database_errors_propagate(error: Exception) -> None:
    with pytest.raises(type(error)):
        with store_errors("module_permissions"):
            raise error
