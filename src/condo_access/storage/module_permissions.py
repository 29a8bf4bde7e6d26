"""Module feature-flag lookups and toggles.

Visibility is fail-open: a module with no row at all is enabled.
Privilege is enforced separately by role guards, which stay
fail-closed. The two defaults are deliberately not unified.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from condo_access.storage.availability import store_errors
from condo_access.storage.orm import ModulePermission

STORE_NAME = "module_permissions"

DEFAULT_MODULE_ENABLED = True


@dataclass(frozen=True)
class EffectivePermission:
    """A module flag after tenant overrides have been applied."""

    module_key: str
    module_label: str
    is_enabled: bool
    condominium_id: uuid.UUID | None
    module_icon: str | None = None


def _scope_clause(tenant_id: uuid.UUID | None) -> ColumnElement[bool]:
    if tenant_id is None:
        return ModulePermission.condominium_id.is_(None)
    return or_(
        ModulePermission.condominium_id.is_(None),
        ModulePermission.condominium_id == tenant_id,
    )


def resolve_rows(rows: list[ModulePermission]) -> dict[str, ModulePermission]:
    """Collapse global and tenant rows into one row per module key.

    A condominium-scoped row wins over the global default.
    """
    resolved: dict[str, ModulePermission] = {}
    for row in rows:
        current = resolved.get(row.module_key)
        if current is None or (
            current.condominium_id is None and row.condominium_id is not None
        ):
            resolved[row.module_key] = row
    return resolved


class ModulePermissionRepository:
    """Reads and single-row upserts against ``module_permissions``.

    Nothing is cached: a toggle is visible to the next request.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_module_enabled(
        self, module_key: str, tenant_id: uuid.UUID | None
    ) -> bool:
        """Whether ``module_key`` is enabled for a condominium.

        Tenant row overrides the global row. No row means enabled.

        Raises:
            StoreUnavailableError: the table could not be read.
        """
        stmt = select(ModulePermission).where(
            ModulePermission.module_key == module_key,
            _scope_clause(tenant_id),
        )
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())

        row = resolve_rows(rows).get(module_key)
        if row is None:
            return DEFAULT_MODULE_ENABLED
        return row.is_enabled

    async def list_effective(
        self, tenant_id: uuid.UUID | None
    ) -> list[EffectivePermission]:
        """All module flags visible in a condominium, sorted by key.

        Without a condominium only the global defaults are returned.
        """
        stmt = select(ModulePermission).where(_scope_clause(tenant_id))
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())

        resolved = resolve_rows(rows)
        return [
            EffectivePermission(
                module_key=key,
                module_label=row.module_label,
                is_enabled=row.is_enabled,
                condominium_id=row.condominium_id,
                module_icon=row.module_icon,
            )
            for key, row in sorted(resolved.items())
        ]

    async def upsert(
        self,
        *,
        module_key: str,
        is_enabled: bool,
        tenant_id: uuid.UUID | None,
        updated_by: uuid.UUID | None,
        module_label: str | None = None,
    ) -> ModulePermission:
        """Create or update the row for ``(tenant_id, module_key)``.

        Only the exact scope is touched; setting a condominium row never
        changes the global default. The caller commits.
        """
        if tenant_id is None:
            scope = ModulePermission.condominium_id.is_(None)
        else:
            scope = ModulePermission.condominium_id == tenant_id
        stmt = select(ModulePermission).where(
            ModulePermission.module_key == module_key, scope
        )
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            row = result.scalar_one_or_none()

            if row is None:
                row = ModulePermission(
                    condominium_id=tenant_id,
                    module_key=module_key,
                    module_label=module_label or module_key,
                    is_enabled=is_enabled,
                    updated_by=updated_by,
                )
                self._session.add(row)
            else:
                row.is_enabled = is_enabled
                row.updated_by = updated_by
                if module_label:
                    row.module_label = module_label
            await self._session.flush()
        return row
