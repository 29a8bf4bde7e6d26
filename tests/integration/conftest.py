"""Live-database fixtures: a pool-less engine, one rolled-back transaction
per test, and a small seeded tenant world.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import NamedTuple

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from condo_access.auth.roles import Role
from condo_access.config import get_settings
from condo_access.storage.orm import Condominium, Membership, User


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Stores only ``flush()``; the outer transaction is always rolled back."""
    async with async_engine.connect() as conn:
        outer = await conn.begin()
        async with AsyncSession(bind=conn, expire_on_commit=False) as session:
            yield session
        await outer.rollback()


class Seeds(NamedTuple):
    t1: Condominium
    t2: Condominium
    closed: Condominium
    manager: User
    admin: User


@pytest.fixture()
async def seeds(db_session: AsyncSession) -> Seeds:
    """Two open condominiums, one closed, a manager and a global admin.

    The manager manages T1, owns in T2 and still holds a membership
    in the closed condominium.
    """
    suffix = uuid.uuid4().hex[:8]
    t1 = Condominium(name=f"Aurora {suffix}", is_active=True)
    t2 = Condominium(name=f"Boa Vista {suffix}", is_active=True)
    closed = Condominium(name=f"Antigo {suffix}", is_active=False)
    manager = User(email=f"marco-{suffix}@example.com", name="Marco", is_active=True)
    admin = User(
        email=f"ada-{suffix}@example.com",
        name="Ada",
        role=Role.GLOBAL_ADMIN.value,
        is_active=True,
    )
    db_session.add_all([t1, t2, closed, manager, admin])
    await db_session.flush()

    db_session.add_all(
        [
            Membership(
                user_id=manager.id,
                condominium_id=t1.id,
                role=Role.MANAGER.value,
                is_active=True,
            ),
            Membership(
                user_id=manager.id,
                condominium_id=t2.id,
                role=Role.OWNER.value,
                unit="7B",
                is_active=True,
            ),
            Membership(
                user_id=manager.id,
                condominium_id=closed.id,
                role=Role.MANAGER.value,
                is_active=True,
            ),
        ]
    )
    await db_session.flush()
    return Seeds(t1, t2, closed, manager, admin)
