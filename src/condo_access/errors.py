"""Domain-specific exceptions for condo-access.

Every access failure carries a machine-readable ``kind`` and the HTTP
status it maps to at the request boundary. The client re-raises the
same classes from error payloads via :func:`error_from_payload`.
"""

from __future__ import annotations

from typing import ClassVar


class AccessError(Exception):
    """Base class for request-terminating authorization failures."""

    kind: ClassVar[str] = "access_error"
    status_code: ClassVar[int] = 403
    default_message: ClassVar[str] = "Access denied"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"kind": self.kind, "detail": self.message}


class UnauthenticatedError(AccessError):
    """No valid identity; the caller should sign in."""

    kind = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class NoTenantSelectedError(AccessError):
    """Valid identity but no bound condominium; prompt for a selection."""

    kind = "no_tenant_selected"
    status_code = 400
    default_message = "No condominium selected"


class ForbiddenError(AccessError):
    """Role is weaker than the one the operation requires."""

    kind = "forbidden"
    status_code = 403
    default_message = "Insufficient role"


class ModuleDisabledError(AccessError):
    """The functional module is switched off for this condominium."""

    kind = "module_disabled"
    status_code = 403

    def __init__(self, module_key: str, message: str | None = None) -> None:
        self.module_key = module_key
        super().__init__(message or f"Module disabled: {module_key}")

    def to_payload(self) -> dict[str, str]:
        return {**super().to_payload(), "module_key": self.module_key}


class StoreUnavailableError(AccessError):
    """Role store or module permission table could not be read.

    Never interpreted as allow or deny. Retryable with backoff.
    """

    kind = "store_unavailable"
    status_code = 503
    default_message = "Authorization store unavailable"


class MalformedCredentialError(Exception):
    """A credential was supplied but could not be verified.

    ``reason`` is one of ``malformed``, ``invalid``, ``expired``
    or ``unverifiable``.
    """

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Credential rejected: {reason}")


class UnknownTenantError(ValueError):
    """Raised when selecting a condominium that is not in the tenant list."""

    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"Condominium not available to this user: {tenant_id}")


ACCESS_ERRORS: dict[str, type[AccessError]] = {
    cls.kind: cls
    for cls in (
        UnauthenticatedError,
        NoTenantSelectedError,
        ForbiddenError,
        StoreUnavailableError,
    )
}


def error_from_payload(payload: dict[str, str]) -> AccessError:
    """Rebuild an access error from a ``{"kind", "detail"}`` payload.

    Unknown kinds fall back to the base :class:`AccessError`.
    """
    kind = payload.get("kind", "")
    detail = payload.get("detail")
    if kind == ModuleDisabledError.kind:
        return ModuleDisabledError(payload.get("module_key", ""), detail)
    cls = ACCESS_ERRORS.get(kind, AccessError)
    return cls(detail)
