"""Role vocabulary and privilege ordering."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Global and condominium-scoped roles.

    ``GLOBAL_ADMIN`` is only ever a global role. The remaining values
    are membership roles; as a global role they carry no privilege.
    """

    OWNER = "owner"
    RESIDENT = "resident"
    MANAGER = "manager"
    GLOBAL_ADMIN = "global_admin"


# resident < manager < global_admin; owners rank as residents.
ROLE_RANK: dict[Role, int] = {
    Role.OWNER: 0,
    Role.RESIDENT: 0,
    Role.MANAGER: 1,
    Role.GLOBAL_ADMIN: 2,
}

MODULE_ADMIN_ROLES: frozenset[Role] = frozenset({Role.MANAGER, Role.GLOBAL_ADMIN})


def parse_role(value: str | None) -> Role | None:
    """Map a stored role string to :class:`Role`, ``None`` if unknown."""
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def role_satisfies(role: Role | None, min_role: Role) -> bool:
    """Whether ``role`` is at least as strong as ``min_role``.

    An unknown or missing role never satisfies anything.
    """
    if role is None:
        return False
    if role is Role.GLOBAL_ADMIN:
        return True
    return ROLE_RANK[role] >= ROLE_RANK[min_role]


def parse_membership_role(value: str | None) -> Role | None:
    """Like :func:`parse_role`, but a membership never grants global admin."""
    role = parse_role(value)
    if role is Role.GLOBAL_ADMIN:
        return None
    return role
