"""Session-wide pytest hooks.

Tests marked ``requires_db`` talk to the PostgreSQL named by
``DATABASE_URL``; they are collected but skipped unless ``--run-db`` is
given, so the unit suite stays runnable on a laptop without services.
"""

import pytest

DB_MARKER = "requires_db"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("condo-access")
    group.addoption(
        "--run-db",
        action="store_true",
        dest="run_db",
        help="include tests that need a migrated PostgreSQL database",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if config.getoption("run_db"):
        return
    skip_db = pytest.mark.skip(reason="live database tests need --run-db")
    for item in items:
        if item.get_closest_marker(DB_MARKER) is not None:
            item.add_marker(skip_db)
