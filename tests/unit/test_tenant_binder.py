"""Tests for claimed condominium validation."""

import uuid

import pytest

from condo_access.auth.binder import (
    UNBOUND,
    TenantBinding,
    bind_tenant,
    parse_tenant_claim,
)
from condo_access.auth.identity import Identity
from condo_access.auth.roles import Role
from condo_access.errors import StoreUnavailableError
from tests.unit.fakes import FakeRoleStore, make_condominium

T1 = make_condominium("Residencial Aurora")
T2 = make_condominium("Edificio Boa Vista")
INACTIVE = make_condominium("Condominio Antigo", is_active=False)

RESIDENT = Identity(id=uuid.uuid4(), global_role=Role.RESIDENT)
ADMIN = Identity(id=uuid.uuid4(), global_role=Role.GLOBAL_ADMIN)


@pytest.fixture()
def roles() -> FakeRoleStore:
    return FakeRoleStore(
        users=[RESIDENT, ADMIN],
        condominiums=[T1, T2, INACTIVE],
        memberships={
            (RESIDENT.id, T1.id): Role.MANAGER,
            (RESIDENT.id, INACTIVE.id): Role.MANAGER,
        },
    )


class TestParseTenantClaim:
    def test_valid_uuid(self) -> None:
        assert parse_tenant_claim(f" {T1.id} ") == T1.id

    @pytest.mark.parametrize("raw", [None, "", "   ", "not-a-uuid", "42"])
    def test_unparsable_is_no_claim(self, raw: str | None) -> None:
        assert parse_tenant_claim(raw) is None


class TestBindTenant:
    @pytest.mark.asyncio
    async def test_member_bound_with_membership_role(
        self, roles: FakeRoleStore
    ) -> None:
        binding = await bind_tenant(RESIDENT, T1.id, roles)
        assert binding == TenantBinding(tenant_id=T1.id, membership_role=Role.MANAGER)

    @pytest.mark.asyncio
    async def test_claim_without_membership_is_dropped(
        self, roles: FakeRoleStore
    ) -> None:
        """Manager of T1 claiming T2 ends up unbound, not rejected."""
        binding = await bind_tenant(RESIDENT, T2.id, roles)
        assert binding is UNBOUND

    @pytest.mark.asyncio
    async def test_inactive_condominium_is_dropped(self, roles: FakeRoleStore) -> None:
        binding = await bind_tenant(RESIDENT, INACTIVE.id, roles)
        assert binding.tenant_id is None

    @pytest.mark.asyncio
    async def test_no_claim_is_unbound(self, roles: FakeRoleStore) -> None:
        assert await bind_tenant(RESIDENT, None, roles) is UNBOUND
        assert roles.tenant_role_calls == 0

    @pytest.mark.asyncio
    async def test_anonymous_never_bound(self, roles: FakeRoleStore) -> None:
        assert await bind_tenant(None, T1.id, roles) is UNBOUND
        assert roles.tenant_role_calls == 0

    @pytest.mark.asyncio
    async def test_admin_bound_verbatim_without_lookup(
        self, roles: FakeRoleStore
    ) -> None:
        unknown = uuid.uuid4()
        binding = await bind_tenant(ADMIN, unknown, roles)
        assert binding.tenant_id == unknown
        assert binding.membership_role is None
        assert roles.tenant_role_calls == 0

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self) -> None:
        roles = FakeRoleStore(fail=True)
        with pytest.raises(StoreUnavailableError):
            await bind_tenant(RESIDENT, T1.id, roles)
