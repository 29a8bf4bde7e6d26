"""Decide which condominium a request may act within."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Protocol

import structlog

from condo_access.auth.identity import Identity
from condo_access.auth.roles import Role

logger = structlog.get_logger()


class TenantRoleLookup(Protocol):
    async def tenant_role(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> Role | None: ...


@dataclass(frozen=True)
class TenantBinding:
    """Effective condominium plus the membership role that granted it."""

    tenant_id: uuid.UUID | None
    membership_role: Role | None = None


UNBOUND = TenantBinding(tenant_id=None)


def parse_tenant_claim(raw: str | None) -> uuid.UUID | None:
    """Parse a claimed condominium header; anything unparsable is no claim."""
    if raw is None or not raw.strip():
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        logger.debug("tenant_claim_unparsable")
        return None


async def bind_tenant(
    identity: Identity | None,
    claimed_tenant_id: uuid.UUID | None,
    roles: TenantRoleLookup,
) -> TenantBinding:
    """Validate a claimed condominium against the identity.

    - anonymous callers are never bound, whatever they claim;
    - global admins are bound to the claim verbatim, even if it does
      not exist, so cross-tenant management screens work;
    - everyone else is bound only with a membership. A claim without
      one is dropped silently, since many endpoints work unbound.

    Raises:
        StoreUnavailableError: membership lookup failed.
    """
    if identity is None or claimed_tenant_id is None:
        return UNBOUND

    if identity.is_global_admin:
        return TenantBinding(tenant_id=claimed_tenant_id)

    membership_role = await roles.tenant_role(identity.id, claimed_tenant_id)
    if membership_role is None:
        logger.debug(
            "tenant_claim_dropped",
            user_id=str(identity.id),
            claimed_tenant_id=str(claimed_tenant_id),
        )
        return UNBOUND
    return TenantBinding(tenant_id=claimed_tenant_id, membership_role=membership_role)
