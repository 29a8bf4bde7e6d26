"""Tests for the client-side module permission gate."""

import pytest

from condo_access.api.schemas import ModulePermissionResponse
from condo_access.auth.roles import Role
from condo_access.client.permissions import PermissionGate, module_key_for_path

ROWS = [
    ModulePermissionResponse(
        module_key="financeiro", module_label="Financeiro", is_enabled=False
    ),
    ModulePermissionResponse(module_key="agua", module_label="Agua", is_enabled=True),
]


class TestModuleKeyForPath:
    def test_known_path(self) -> None:
        assert module_key_for_path("/financeiro") == "financeiro"
        assert module_key_for_path("/financeiro/") == "financeiro"

    def test_ungated_path(self) -> None:
        assert module_key_for_path("/") is None
        assert module_key_for_path("/perfil") is None


class TestPermissionGate:
    def test_missing_module_is_enabled(self) -> None:
        gate = PermissionGate(ROWS, Role.RESIDENT)
        assert gate.is_module_enabled("residuos")
        assert gate.can_access_module("residuos")

    def test_disabled_module_hidden_from_members(self) -> None:
        for role in (Role.RESIDENT, Role.OWNER, None):
            gate = PermissionGate(ROWS, role)
            assert not gate.can_access_module("financeiro")
            assert not gate.can_render_path("/financeiro")

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.GLOBAL_ADMIN])
    def test_module_admins_see_everything(self, role: Role) -> None:
        gate = PermissionGate(ROWS, role)
        assert not gate.is_module_enabled("financeiro")
        assert gate.can_access_module("financeiro")
        assert gate.can_render_path("/financeiro")

    def test_ungated_paths_always_render(self) -> None:
        gate = PermissionGate([], None)
        assert gate.can_render_path("/perfil")
