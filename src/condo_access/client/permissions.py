"""Client-side mirror of module permissions, for navigation only.

Hiding an entry point here is a convenience. Every endpoint still
enforces the module guard server-side.
"""

from __future__ import annotations

from collections.abc import Iterable

from condo_access.api.schemas import ModulePermissionResponse
from condo_access.auth.roles import MODULE_ADMIN_ROLES, Role

# Navigation path -> module key.
MODULE_KEY_BY_PATH: dict[str, str] = {
    "/manutencoes": "manutencoes",
    "/piscina": "piscina",
    "/agua": "agua",
    "/gas": "gas",
    "/energia": "energia",
    "/residuos": "residuos",
    "/ocupacao": "ocupacao",
    "/documentos": "documentos",
    "/fornecedores": "fornecedores",
    "/comunicados": "comunicados",
    "/seguranca": "seguranca",
    "/governanca": "governanca",
    "/financeiro": "financeiro",
    "/contratos": "contratos",
    "/conformidade": "conformidade",
    "/seguros": "seguros",
}


def module_key_for_path(path: str) -> str | None:
    """Module gating a navigation path, ``None`` for ungated paths."""
    return MODULE_KEY_BY_PATH.get(path.rstrip("/") or "/")


class PermissionGate:
    """Answers "can this nav item be rendered?".

    Built from one fresh ``GET /module-permissions`` response and
    discarded with it; rows are never cached beyond that.
    """

    def __init__(
        self,
        permissions: Iterable[ModulePermissionResponse],
        role: Role | None,
    ) -> None:
        self._flags = {p.module_key: p.is_enabled for p in permissions}
        self._role = role

    def is_module_enabled(self, module_key: str) -> bool:
        """Same fail-open default as the server: unknown modules are enabled."""
        return self._flags.get(module_key, True)

    def can_access_module(self, module_key: str) -> bool:
        """Managers and global admins always see every module.

        They must be able to reach the screen that re-enables a
        module they just switched off.
        """
        if self._role in MODULE_ADMIN_ROLES:
            return True
        return self.is_module_enabled(module_key)

    def can_render_path(self, path: str) -> bool:
        module_key = module_key_for_path(path)
        if module_key is None:
            return True
        return self.can_access_module(module_key)
