"""Identity resolution, tenant binding, roles and access guards.

Note: ``require_access`` lives in ``auth.access`` and is NOT re-exported
here to avoid a circular import (auth → access → api.deps → auth).
Import directly: ``from condo_access.auth.access import require_access``.
"""

from condo_access.auth.context import AuthorizationContext, build_context
from condo_access.auth.identity import Identity, IdentityResolver, Principal
from condo_access.auth.roles import Role

__all__ = [
    "AuthorizationContext",
    "Identity",
    "IdentityResolver",
    "Principal",
    "Role",
    "build_context",
]
