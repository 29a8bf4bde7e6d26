"""FastAPI dependency injection."""

from __future__ import annotations

from functools import lru_cache
from typing import cast

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from condo_access.auth.binder import parse_tenant_claim
from condo_access.auth.context import AuthorizationContext, build_context
from condo_access.auth.identity import Identity, IdentityResolver
from condo_access.config import get_settings
from condo_access.errors import MalformedCredentialError
from condo_access.integrations.sessions import ExpiringSessionStore
from condo_access.storage.database import get_session
from condo_access.storage.module_permissions import ModulePermissionRepository
from condo_access.storage.role_store import RoleStore

__all__ = [
    "get_auth_context",
    "get_device_sessions",
    "get_identity",
    "get_identity_resolver",
    "get_module_permissions",
    "get_role_store",
    "get_session",
]

logger = structlog.get_logger()

DEV_USER_HEADER = "X-User-Id"

_get_session = Depends(get_session)


@lru_cache(maxsize=1)
def get_identity_resolver() -> IdentityResolver:
    """Identity resolver configured from settings (process-wide, stateless)."""
    s = get_settings()
    secret = s.jwt_secret.get_secret_value() if s.jwt_secret is not None else None
    return IdentityResolver(
        secret,
        algorithm=s.jwt_algorithm,
        allow_dev_header=s.dev_identity_enabled,
    )


async def get_role_store(session: AsyncSession = _get_session) -> RoleStore:
    return RoleStore(session)


async def get_module_permissions(
    session: AsyncSession = _get_session,
) -> ModulePermissionRepository:
    return ModulePermissionRepository(session)


_resolver_dep = Depends(get_identity_resolver)
_role_store_dep = Depends(get_role_store)


async def get_identity(
    request: Request,
    resolver: IdentityResolver = _resolver_dep,
    roles: RoleStore = _role_store_dep,
) -> Identity | None:
    """Resolve the caller, ``None`` for anonymous requests.

    A malformed credential is logged and treated as anonymous;
    guards that need an identity reject it as unauthenticated.

    Raises:
        StoreUnavailableError: role store could not be read.
    """
    try:
        principal = resolver.resolve(
            request.headers.get("Authorization"),
            request.headers.get(DEV_USER_HEADER),
        )
    except MalformedCredentialError as e:
        logger.warning(
            "credential_rejected", reason=e.reason, path=request.url.path
        )
        return None

    if principal is None:
        return None
    identity = await roles.find_identity(principal)
    if identity is None:
        logger.info("identity_unknown", path=request.url.path)
    return identity


_identity_dep = Depends(get_identity)


async def get_auth_context(
    request: Request,
    identity: Identity | None = _identity_dep,
    roles: RoleStore = _role_store_dep,
) -> AuthorizationContext:
    """Build the request's authorization context.

    FastAPI caches dependencies per request, so every guard and
    handler in one request sees this exact object.

    Raises:
        StoreUnavailableError: role store could not be read.
    """
    claimed = parse_tenant_claim(request.headers.get(get_settings().tenant_header))
    ctx = await build_context(identity, claimed, roles)

    structlog.contextvars.bind_contextvars(
        user_id=str(ctx.user_id) if ctx.user_id else None,
        tenant_id=str(ctx.effective_tenant_id) if ctx.effective_tenant_id else None,
    )
    return ctx


async def get_device_sessions(request: Request) -> ExpiringSessionStore:
    """Third-party device session store owned by app state.

    Created in lifespan startup and swept there. No access route reads
    it: this is the extension point for device integrations, which
    must take it as a dependency and never reach it through the
    authorization context.
    """
    return cast(ExpiringSessionStore, request.app.state.device_sessions)
