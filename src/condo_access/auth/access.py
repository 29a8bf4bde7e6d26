"""Guard dependency factory for route handlers."""

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends

from condo_access.api.deps import get_auth_context, get_module_permissions
from condo_access.auth.context import AuthorizationContext
from condo_access.auth.guards import enforce
from condo_access.auth.roles import Role
from condo_access.storage.module_permissions import ModulePermissionRepository

_context_dep = Depends(get_auth_context)
_flags_dep = Depends(get_module_permissions)


def require_access(
    *,
    tenant: bool = True,
    min_role: Role | None = None,
    module: str | None = None,
) -> Callable[..., Coroutine[Any, Any, AuthorizationContext]]:
    """Dependency factory: run the guards, then hand over the context.

    Usage as parameter dependency (returns AuthorizationContext)::

        async def endpoint(
            ctx: AuthorizationContext = Depends(
                require_access(module="financeiro")
            ),
        ): ...

    Raises:
        UnauthenticatedError: no identity (401).
        NoTenantSelectedError: ``tenant`` requested but none bound (400).
        ForbiddenError: role weaker than ``min_role`` (403).
        ModuleDisabledError: ``module`` switched off for a member (403).
    """

    async def _check_access(
        ctx: AuthorizationContext = _context_dep,
        flags: ModulePermissionRepository = _flags_dep,
    ) -> AuthorizationContext:
        await enforce(ctx, tenant=tenant, min_role=min_role, module=module, flags=flags)
        return ctx

    return _check_access
