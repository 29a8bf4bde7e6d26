"""Caller account and condominium list endpoints.

Neither endpoint needs a bound condominium: a client calls them
right after sign-in, before anything has been selected.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from condo_access.api.deps import get_identity, get_role_store
from condo_access.api.schemas import (
    AccountResponse,
    MembershipListResponse,
    MembershipResponse,
)
from condo_access.auth.access import require_access
from condo_access.auth.context import AuthorizationContext
from condo_access.auth.identity import Identity
from condo_access.auth.roles import Role
from condo_access.errors import UnauthenticatedError
from condo_access.storage.role_store import RoleStore

router = APIRouter(tags=["account"])

SignedInDep = Annotated[AuthorizationContext, Depends(require_access(tenant=False))]
IdentityDep = Annotated[Identity | None, Depends(get_identity)]
RoleStoreDep = Annotated[RoleStore, Depends(get_role_store)]


def _signed_in(identity: Identity | None) -> Identity:
    if identity is None:
        raise UnauthenticatedError()
    return identity


@router.get("/me")
async def get_account(ctx: SignedInDep, identity: IdentityDep) -> AccountResponse:
    """Return the caller and the context resolved for this request."""
    caller = _signed_in(identity)
    return AccountResponse(
        user_id=caller.id,
        email=caller.email,
        global_role=caller.global_role,
        role=ctx.role,
        effective_tenant_id=ctx.effective_tenant_id,
        is_global_admin=ctx.is_global_admin,
    )


@router.get("/me/condominiums")
async def list_my_condominiums(
    ctx: SignedInDep,
    identity: IdentityDep,
    roles: RoleStoreDep,
) -> MembershipListResponse:
    """List the condominiums the caller may select.

    Members get their active memberships. Global admins get every
    active condominium, with their membership role where they have
    one and ``global_admin`` elsewhere.
    """
    caller = _signed_in(identity)
    memberships = await roles.list_memberships(caller.id)
    items = [
        MembershipResponse(
            condominium_id=m.condominium_id,
            condominium_name=m.condominium_name,
            role=m.role,
            unit=m.unit,
        )
        for m in memberships
    ]

    if ctx.is_global_admin:
        member_of = {m.condominium_id for m in memberships}
        for condo in await roles.list_active_condominiums():
            if condo.id not in member_of:
                items.append(
                    MembershipResponse(
                        condominium_id=condo.id,
                        condominium_name=condo.name,
                        role=Role.GLOBAL_ADMIN,
                    )
                )
        items.sort(key=lambda m: m.condominium_name)

    return MembershipListResponse(items=items)
