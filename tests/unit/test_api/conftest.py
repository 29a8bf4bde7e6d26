"""Fixtures for API tests: a small condominium world behind the real deps."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from condo_access.api.app import app
from condo_access.api.deps import (
    get_identity_resolver,
    get_module_permissions,
    get_role_store,
)
from condo_access.auth.identity import Identity, IdentityResolver
from condo_access.auth.roles import Role
from condo_access.storage.database import get_session
from condo_access.storage.orm import Condominium
from tests.unit.fakes import (
    FakeModuleFlags,
    FakeRoleStore,
    World,
    make_condominium,
)

SECRET = "api-test-secret"


@pytest.fixture()
def world() -> World:
    t1 = make_condominium("Residencial Aurora")
    t2 = make_condominium("Edificio Boa Vista")
    resident = Identity(uuid.uuid4(), Role.RESIDENT, "rita@example.com")
    manager = Identity(uuid.uuid4(), Role.RESIDENT, "marco@example.com")
    admin = Identity(uuid.uuid4(), Role.GLOBAL_ADMIN, "ada@example.com")
    outsider = Identity(uuid.uuid4(), Role.RESIDENT, "otto@example.com")
    roles = FakeRoleStore(
        users=[resident, manager, admin, outsider],
        condominiums=[t1, t2],
        memberships={
            (resident.id, t1.id): Role.RESIDENT,
            (manager.id, t1.id): Role.MANAGER,
            (manager.id, t2.id): Role.OWNER,
            (admin.id, t2.id): Role.OWNER,
        },
    )
    flags = FakeModuleFlags({("financeiro", t1.id): False, ("agua", None): True})
    session = AsyncMock()
    session.add = MagicMock()
    return World(t1, t2, resident, manager, admin, outsider, roles, flags, session)


@pytest.fixture()
async def client(world: World) -> AsyncGenerator[AsyncClient]:
    """AsyncClient running the real dependency chain over fake stores."""
    app.dependency_overrides[get_session] = lambda: world.session
    app.dependency_overrides[get_role_store] = lambda: world.roles
    app.dependency_overrides[get_module_permissions] = lambda: world.flags
    app.dependency_overrides[get_identity_resolver] = lambda: IdentityResolver(
        SECRET, allow_dev_header=True
    )
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


HeadersFactory = Callable[..., dict[str, str]]


@pytest.fixture()
def auth_headers() -> HeadersFactory:
    """Build request headers for an identity and an optional claim."""

    def _headers(
        identity: Identity | None = None,
        tenant: Condominium | uuid.UUID | str | None = None,
    ) -> dict[str, str]:
        headers: dict[str, str] = {}
        if identity is not None:
            token = jwt.encode(
                {"sub": str(identity.id), "email": identity.email},
                SECRET,
                algorithm="HS256",
            )
            headers["Authorization"] = f"Bearer {token}"
        if isinstance(tenant, Condominium):
            headers["X-Condominium-Id"] = str(tenant.id)
        elif tenant is not None:
            headers["X-Condominium-Id"] = str(tenant)
        return headers

    return _headers
