"""Per-request authorization context."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from condo_access.auth.binder import TenantRoleLookup, bind_tenant
from condo_access.auth.identity import Identity
from condo_access.auth.roles import Role


@dataclass(frozen=True)
class AuthorizationContext:
    """Who is acting, in which condominium, with which role.

    Built once per request at the boundary and passed explicitly to
    every guard and handler. Never persisted, never shared between
    requests.
    """

    effective_tenant_id: uuid.UUID | None
    user_id: uuid.UUID | None
    role: Role | None
    is_global_admin: bool

    @classmethod
    def anonymous(cls) -> AuthorizationContext:
        return cls(
            effective_tenant_id=None,
            user_id=None,
            role=None,
            is_global_admin=False,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


async def build_context(
    identity: Identity | None,
    claimed_tenant_id: uuid.UUID | None,
    roles: TenantRoleLookup,
) -> AuthorizationContext:
    """Compose identity, tenant binding and role into one context.

    Deterministic for the same inputs and backing data. The role is
    ``GLOBAL_ADMIN`` for administrators, the membership role of the
    bound condominium otherwise, and ``None`` when nothing is bound.

    Raises:
        StoreUnavailableError: the role store could not be read.
    """
    if identity is None:
        return AuthorizationContext.anonymous()

    binding = await bind_tenant(identity, claimed_tenant_id, roles)
    if identity.is_global_admin:
        role: Role | None = Role.GLOBAL_ADMIN
    else:
        role = binding.membership_role

    return AuthorizationContext(
        effective_tenant_id=binding.tenant_id,
        user_id=identity.id,
        role=role,
        is_global_admin=identity.is_global_admin,
    )
