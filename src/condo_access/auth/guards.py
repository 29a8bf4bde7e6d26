"""Access guards over an :class:`AuthorizationContext`.

Each guard returns nothing on success and raises the most specific
:class:`~condo_access.errors.AccessError` on failure. ``enforce``
runs them in the fixed order identity, tenant, role, module so the
first unmet condition is the one reported.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from condo_access.auth.context import AuthorizationContext
from condo_access.auth.roles import MODULE_ADMIN_ROLES, Role, role_satisfies
from condo_access.errors import (
    ForbiddenError,
    ModuleDisabledError,
    NoTenantSelectedError,
    UnauthenticatedError,
)


class ModuleFlags(Protocol):
    async def is_module_enabled(
        self, module_key: str, tenant_id: uuid.UUID | None
    ) -> bool: ...


def require_identity(ctx: AuthorizationContext) -> None:
    if ctx.user_id is None:
        raise UnauthenticatedError()


def require_tenant(ctx: AuthorizationContext) -> None:
    if ctx.effective_tenant_id is None:
        raise NoTenantSelectedError()


def require_role(ctx: AuthorizationContext, min_role: Role) -> None:
    if not role_satisfies(ctx.role, min_role):
        raise ForbiddenError(f"Requires role: {min_role.value}")


async def require_module(
    ctx: AuthorizationContext,
    module_key: str,
    flags: ModuleFlags,
) -> None:
    """Reject ordinary members when the module is switched off.

    Managers and global admins always pass without a lookup: module
    toggles never lock out the people who administer them.

    Raises:
        ModuleDisabledError: module disabled for the bound condominium.
        StoreUnavailableError: flag lookup failed.
    """
    if ctx.is_global_admin or ctx.role in MODULE_ADMIN_ROLES:
        return
    if not await flags.is_module_enabled(module_key, ctx.effective_tenant_id):
        raise ModuleDisabledError(module_key)


async def enforce(
    ctx: AuthorizationContext,
    *,
    tenant: bool = True,
    min_role: Role | None = None,
    module: str | None = None,
    flags: ModuleFlags | None = None,
) -> None:
    """Run the applicable guards in order, stopping at the first failure."""
    require_identity(ctx)
    if tenant:
        require_tenant(ctx)
    if min_role is not None:
        require_role(ctx, min_role)
    if module is not None:
        if flags is None:
            raise ValueError("module guard needs a ModuleFlags source")
        await require_module(ctx, module, flags)
