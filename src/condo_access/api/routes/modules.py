"""Module permission endpoints."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from condo_access.api.deps import get_module_permissions, get_role_store, get_session
from condo_access.api.schemas import (
    ModuleAccessResponse,
    ModulePermissionListResponse,
    ModulePermissionResponse,
    ModulePermissionUpdateRequest,
    ModulePermissionUpdateResponse,
)
from condo_access.auth.access import require_access
from condo_access.auth.context import AuthorizationContext
from condo_access.auth.guards import require_module, require_role, require_tenant
from condo_access.auth.roles import Role
from condo_access.storage.availability import store_errors
from condo_access.storage.module_permissions import ModulePermissionRepository
from condo_access.storage.role_store import RoleStore

logger = structlog.get_logger()

router = APIRouter(tags=["modules"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SignedInDep = Annotated[AuthorizationContext, Depends(require_access(tenant=False))]
PermissionsDep = Annotated[
    ModulePermissionRepository, Depends(get_module_permissions)
]
RoleStoreDep = Annotated[RoleStore, Depends(get_role_store)]
ModuleKey = Annotated[
    str, Path(min_length=1, max_length=64, pattern=r"^[a-z0-9_-]+$")
]


@router.get("/module-permissions")
async def list_module_permissions(
    ctx: SignedInDep,
    permissions: PermissionsDep,
) -> ModulePermissionListResponse:
    """List module flags in effect for the bound condominium.

    Condominium rows override global defaults. Without a bound
    condominium the global defaults are returned. Modules missing
    from the list are enabled.
    """
    rows = await permissions.list_effective(ctx.effective_tenant_id)
    return ModulePermissionListResponse(
        items=[ModulePermissionResponse.model_validate(r) for r in rows]
    )


@router.patch("/module-permissions/{module_key}")
async def update_module_permission(
    module_key: ModuleKey,
    body: ModulePermissionUpdateRequest,
    ctx: SignedInDep,
    permissions: PermissionsDep,
    roles: RoleStoreDep,
    session: SessionDep,
) -> ModulePermissionUpdateResponse:
    """Enable or disable a module.

    Managers toggle the row of their bound condominium. Global admins
    toggle the bound condominium's row, or the global default when
    nothing is bound. An admin bound to an id with no condominium
    gets 404 instead of a row that could never be stored.
    """
    if not ctx.is_global_admin:
        require_tenant(ctx)
    require_role(ctx, Role.MANAGER)

    if ctx.is_global_admin and ctx.effective_tenant_id is not None:
        if await roles.get_condominium(ctx.effective_tenant_id) is None:
            raise HTTPException(status_code=404, detail="Condominium not found")

    row = await permissions.upsert(
        module_key=module_key,
        is_enabled=body.is_enabled,
        tenant_id=ctx.effective_tenant_id,
        updated_by=ctx.user_id,
        module_label=body.module_label,
    )
    with store_errors("module_permissions"):
        await session.commit()

    logger.info(
        "module_permission_updated",
        module_key=module_key,
        is_enabled=body.is_enabled,
        scope="global" if ctx.effective_tenant_id is None else "condominium",
    )
    return ModulePermissionUpdateResponse.model_validate(row)


@router.get("/modules/{module_key}/access")
async def check_module_access(
    module_key: ModuleKey,
    ctx: SignedInDep,
    permissions: PermissionsDep,
) -> ModuleAccessResponse:
    """Run the module guard for the caller.

    Responds 200 when allowed and with the guard's failure otherwise,
    so collaborators can probe before rendering a screen.
    """
    require_tenant(ctx)
    await require_module(ctx, module_key, permissions)
    return ModuleAccessResponse(module_key=module_key, allowed=True)
