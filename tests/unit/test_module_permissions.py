"""Tests for module flag resolution and toggles."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from condo_access.errors import StoreUnavailableError
from condo_access.storage.module_permissions import (
    DEFAULT_MODULE_ENABLED,
    ModulePermissionRepository,
    resolve_rows,
)
from condo_access.storage.orm import ModulePermission

T1 = uuid.uuid4()


def _row(
    key: str, enabled: bool, tenant_id: uuid.UUID | None = None
) -> ModulePermission:
    return ModulePermission(
        id=uuid.uuid4(),
        condominium_id=tenant_id,
        module_key=key,
        module_label=key.title(),
        is_enabled=enabled,
    )


def _session_with_rows(rows: list[ModulePermission]) -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    session.execute.return_value = result
    return session


class TestResolveRows:
    def test_tenant_row_wins_in_either_order(self) -> None:
        global_row = _row("piscina", False)
        tenant_row = _row("piscina", True, T1)
        assert resolve_rows([global_row, tenant_row])["piscina"] is tenant_row
        assert resolve_rows([tenant_row, global_row])["piscina"] is tenant_row

    def test_keys_kept_apart(self) -> None:
        resolved = resolve_rows([_row("agua", True), _row("gas", False, T1)])
        assert set(resolved) == {"agua", "gas"}


class TestIsModuleEnabled:
    async def test_no_row_is_enabled(self) -> None:
        repo = ModulePermissionRepository(_session_with_rows([]))
        assert await repo.is_module_enabled("residuos", T1) is DEFAULT_MODULE_ENABLED
        assert DEFAULT_MODULE_ENABLED is True

    async def test_tenant_row_disabled(self) -> None:
        repo = ModulePermissionRepository(
            _session_with_rows([_row("financeiro", False, T1)])
        )
        assert await repo.is_module_enabled("financeiro", T1) is False

    async def test_tenant_row_overrides_global(self) -> None:
        rows = [_row("financeiro", False), _row("financeiro", True, T1)]
        repo = ModulePermissionRepository(_session_with_rows(rows))
        assert await repo.is_module_enabled("financeiro", T1) is True

    async def test_global_row_applies_without_tenant_row(self) -> None:
        repo = ModulePermissionRepository(_session_with_rows([_row("gas", False)]))
        assert await repo.is_module_enabled("gas", T1) is False

    async def test_outage_is_not_fail_open(self) -> None:
        session = _session_with_rows([])
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        repo = ModulePermissionRepository(session)
        with pytest.raises(StoreUnavailableError, match="module_permissions"):
            await repo.is_module_enabled("financeiro", T1)


class TestListEffective:
    async def test_sorted_and_resolved(self) -> None:
        rows = [
            _row("seguros", True),
            _row("agua", True),
            _row("agua", False, T1),
        ]
        repo = ModulePermissionRepository(_session_with_rows(rows))
        effective = await repo.list_effective(T1)

        assert [p.module_key for p in effective] == ["agua", "seguros"]
        assert effective[0].is_enabled is False
        assert effective[0].condominium_id == T1
        assert effective[1].condominium_id is None

    async def test_without_tenant_only_globals_queried(self) -> None:
        session = _session_with_rows([_row("agua", True)])
        await ModulePermissionRepository(session).list_effective(None)
        stmt = session.execute.await_args.args[0]
        assert "condominium_id IS NULL" in str(stmt)
        assert " OR " not in str(stmt)


class TestUpsert:
    async def test_creates_missing_row(self) -> None:
        session = _session_with_rows([])
        session.execute.return_value.scalar_one_or_none.return_value = None
        user_id = uuid.uuid4()

        row = await ModulePermissionRepository(session).upsert(
            module_key="piscina", is_enabled=False, tenant_id=T1, updated_by=user_id
        )

        session.add.assert_called_once_with(row)
        assert row.condominium_id == T1
        assert row.module_label == "piscina"
        assert row.is_enabled is False
        assert row.updated_by == user_id
        session.flush.assert_awaited_once()
        session.commit.assert_not_awaited()

    async def test_updates_existing_row(self) -> None:
        existing = _row("piscina", True)
        session = _session_with_rows([])
        session.execute.return_value.scalar_one_or_none.return_value = existing

        row = await ModulePermissionRepository(session).upsert(
            module_key="piscina",
            is_enabled=False,
            tenant_id=None,
            updated_by=None,
            module_label="Pool",
        )

        assert row is existing
        assert existing.is_enabled is False
        assert existing.module_label == "Pool"
        session.add.assert_not_called()

    async def test_outage_on_write(self) -> None:
        session = _session_with_rows([])
        session.execute.return_value.scalar_one_or_none.return_value = None
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("down"))
        with pytest.raises(StoreUnavailableError):
            await ModulePermissionRepository(session).upsert(
                module_key="gas", is_enabled=True, tenant_id=T1, updated_by=None
            )

    async def test_integrity_error_is_not_an_outage(self) -> None:
        session = _session_with_rows([])
        session.execute.return_value.scalar_one_or_none.return_value = None
        session.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("violates foreign key constraint")
        )
        with pytest.raises(IntegrityError):
            await ModulePermissionRepository(session).upsert(
                module_key="gas", is_enabled=True, tenant_id=T1, updated_by=None
            )
