"""Request/response schemas for the API layer."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from condo_access.auth.roles import Role

# --- Errors ---


class AccessErrorResponse(BaseModel):
    """Body of every guard failure.

    Example::

        {"kind": "no_tenant_selected", "detail": "No condominium selected"}
    """

    kind: str = Field(description="Machine-readable failure kind.")
    detail: str = Field(description="Human-readable message.")
    module_key: str | None = None


# --- Account ---


class AccountResponse(BaseModel):
    """Response for ``GET /me``: the caller and the resolved context."""

    user_id: uuid.UUID
    email: str | None
    global_role: Role | None
    role: Role | None = Field(description="Role in effect for this request.")
    effective_tenant_id: uuid.UUID | None
    is_global_admin: bool


class MembershipResponse(BaseModel):
    """One condominium available to the caller."""

    condominium_id: uuid.UUID
    condominium_name: str
    role: Role
    unit: str | None = None


class MembershipListResponse(BaseModel):
    items: list[MembershipResponse]


# --- Condominium ---


class CondominiumResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    total_units: int | None = None
    is_active: bool


# --- Module permissions ---


class ModulePermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_key: str
    module_label: str
    module_icon: str | None = None
    is_enabled: bool
    condominium_id: uuid.UUID | None = Field(
        default=None, description="NULL when the global default applies."
    )


class ModulePermissionListResponse(BaseModel):
    items: list[ModulePermissionResponse]


class ModulePermissionUpdateRequest(BaseModel):
    """Request body for ``PATCH /module-permissions/{module_key}``."""

    is_enabled: bool
    module_label: str | None = Field(default=None, max_length=200)


class ModulePermissionUpdateResponse(ModulePermissionResponse):
    updated_by: uuid.UUID | None = None
    updated_at: datetime | None = None


class ModuleAccessResponse(BaseModel):
    module_key: str
    allowed: bool
