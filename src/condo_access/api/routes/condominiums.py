"""Endpoints scoped to the bound condominium."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from condo_access.api.deps import get_role_store
from condo_access.api.schemas import CondominiumResponse
from condo_access.auth.access import require_access
from condo_access.auth.context import AuthorizationContext
from condo_access.errors import NoTenantSelectedError
from condo_access.storage.role_store import RoleStore

router = APIRouter(tags=["condominiums"])

TenantDep = Annotated[AuthorizationContext, Depends(require_access())]
RoleStoreDep = Annotated[RoleStore, Depends(get_role_store)]


@router.get("/condominiums/current")
async def get_current_condominium(
    ctx: TenantDep,
    roles: RoleStoreDep,
) -> CondominiumResponse:
    """Return the condominium this request is bound to.

    Global admins may be bound to an id that does not exist;
    that surfaces here as 404.
    """
    if ctx.effective_tenant_id is None:
        raise NoTenantSelectedError()
    condo = await roles.get_condominium(ctx.effective_tenant_id)
    if condo is None:
        raise HTTPException(status_code=404, detail="Condominium not found")
    return CondominiumResponse.model_validate(condo)
