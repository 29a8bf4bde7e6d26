"""Read-only lookups of global and condominium-scoped roles."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession

from condo_access.auth.identity import Identity, Principal
from condo_access.auth.roles import Role, parse_membership_role, parse_role
from condo_access.storage.availability import store_errors
from condo_access.storage.orm import Condominium, Membership, User

STORE_NAME = "role_store"


@dataclass(frozen=True)
class MembershipView:
    """A condominium the user may act in, with their role there."""

    condominium_id: uuid.UUID
    condominium_name: str
    role: Role
    unit: str | None = None


def _parse_user_id(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class RoleStore:
    """Role lookups backed by the users and memberships tables.

    Only active users, active memberships and active condominiums
    count. Every method raises ``StoreUnavailableError`` when the
    database cannot be read.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_identity(self, principal: Principal) -> Identity | None:
        """Look up the user by id, falling back to email.

        Token subjects issued by the identity provider do not always
        match the local user id, hence the email fallback.
        """
        user: User | None = None
        with store_errors(STORE_NAME):
            user_id = _parse_user_id(principal.user_id)
            if user_id is not None:
                user = await self._active_user(User.id == user_id)
            if user is None and principal.email:
                user = await self._active_user(User.email == principal.email)
        if user is None:
            return None
        return Identity(id=user.id, global_role=parse_role(user.role), email=user.email)

    async def _active_user(self, clause: ColumnElement[bool]) -> User | None:
        stmt = select(User).where(clause, User.is_active.is_(True))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def global_role(self, user_id: uuid.UUID) -> Role | None:
        """Global role of an active user, ``None`` if unknown.

        Request handling does not call this: :meth:`find_identity` already
        returns the global role with the identity.
        Kept for callers that hold only a user id.
        """
        stmt = select(User.role).where(User.id == user_id, User.is_active.is_(True))
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            role = result.scalar_one_or_none()
        return parse_role(role)

    async def tenant_role(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> Role | None:
        """Membership role within a condominium, ``None`` without membership."""
        stmt = (
            select(Membership.role)
            .join(Condominium, Membership.condominium_id == Condominium.id)
            .where(
                Membership.user_id == user_id,
                Membership.condominium_id == tenant_id,
                Membership.is_active.is_(True),
                Condominium.is_active.is_(True),
            )
        )
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            role = result.scalar_one_or_none()
        return parse_membership_role(role)

    async def list_memberships(self, user_id: uuid.UUID) -> list[MembershipView]:
        """All active memberships of a user, ordered by condominium name."""
        stmt = (
            select(Membership, Condominium.name)
            .join(Condominium, Membership.condominium_id == Condominium.id)
            .where(
                Membership.user_id == user_id,
                Membership.is_active.is_(True),
                Condominium.is_active.is_(True),
            )
            .order_by(Condominium.name)
        )
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            rows = result.all()

        views: list[MembershipView] = []
        for membership, name in rows:
            role = parse_membership_role(membership.role)
            if role is None:
                continue
            views.append(
                MembershipView(
                    condominium_id=membership.condominium_id,
                    condominium_name=name,
                    role=role,
                    unit=membership.unit,
                )
            )
        return views

    async def list_active_condominiums(self) -> list[Condominium]:
        """Every active condominium, for global administrators."""
        stmt = (
            select(Condominium)
            .where(Condominium.is_active.is_(True))
            .order_by(Condominium.name)
        )
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

    async def get_condominium(self, tenant_id: uuid.UUID) -> Condominium | None:
        stmt = select(Condominium).where(Condominium.id == tenant_id)
        with store_errors(STORE_NAME):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()
