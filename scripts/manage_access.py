"""CLI for condominium, membership and module administration.

Usage::

    uv run python -m scripts.manage_access <command> [options]

Commands:
    create-condominium      Create a new condominium
    add-member              Grant a user a role in a condominium
    set-global-role         Change a user's global role
    list-members            List members of a condominium
    toggle-module           Enable or disable a module (global or per condominium)
    deactivate-condominium  Deactivate a condominium (members lose access)
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import NoReturn

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from condo_access.auth.roles import Role
from condo_access.config import settings
from condo_access.storage.orm import Condominium, Membership, ModulePermission, User

MEMBERSHIP_ROLES = [Role.OWNER.value, Role.RESIDENT.value, Role.MANAGER.value]
GLOBAL_ROLES = [r.value for r in Role]


def get_sync_session() -> Session:
    """Create sync session for CLI operations.

    Uses the same database URL as the async app (psycopg v3
    handles both sync and async natively).
    """
    engine = create_engine(settings.database_url)
    return Session(engine)


def _fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    sys.exit(1)


def _condominium_by_name(session: Session, name: str) -> Condominium:
    condo = session.execute(
        select(Condominium).where(Condominium.name == name)
    ).scalar_one_or_none()
    if condo is None:
        _fail(f"Condominium not found: {name}")
    return condo


def _user_by_email(session: Session, email: str) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        _fail(f"User not found: {email}")
    return user


def create_condominium(args: argparse.Namespace) -> None:
    """Create a new condominium."""
    with get_sync_session() as session:
        existing = session.execute(
            select(Condominium).where(Condominium.name == args.name)
        ).scalar_one_or_none()
        if existing is not None:
            _fail(f"Condominium already exists: {args.name}")

        condo = Condominium(name=args.name, city=args.city, total_units=args.units)
        session.add(condo)
        session.commit()
        print(f"Condominium created: {args.name} (id: {condo.id})")


def add_member(args: argparse.Namespace) -> None:
    """Grant a user a role in a condominium, updating an existing membership."""
    with get_sync_session() as session:
        condo = _condominium_by_name(session, args.condominium)
        user = _user_by_email(session, args.email)

        membership = session.execute(
            select(Membership).where(
                Membership.user_id == user.id,
                Membership.condominium_id == condo.id,
            )
        ).scalar_one_or_none()

        if membership is None:
            membership = Membership(
                user_id=user.id,
                condominium_id=condo.id,
                role=args.role,
                unit=args.unit,
            )
            session.add(membership)
            action = "added"
        else:
            membership.role = args.role
            membership.unit = args.unit or membership.unit
            membership.is_active = True
            action = "updated"
        session.commit()
        print(f"Member {action}: {args.email} -> {condo.name} ({args.role})")


def set_global_role(args: argparse.Namespace) -> None:
    """Change a user's global role."""
    with get_sync_session() as session:
        user = _user_by_email(session, args.email)
        user.role = args.role
        session.commit()
        print(f"Global role set: {args.email} = {args.role}")


def list_members(args: argparse.Namespace) -> None:
    """List members of a condominium."""
    with get_sync_session() as session:
        condo = _condominium_by_name(session, args.condominium)
        rows = session.execute(
            select(User.email, Membership.role, Membership.unit, Membership.is_active)
            .join(Membership, Membership.user_id == User.id)
            .where(Membership.condominium_id == condo.id)
            .order_by(User.email)
        ).all()

        if not rows:
            print(f'No members in "{condo.name}".')
            return

        print(f'Members of "{condo.name}":')
        for i, row in enumerate(rows, 1):
            status = "active" if row.is_active else "inactive"
            unit = f" unit={row.unit}" if row.unit else ""
            print(f"  {i}. {row.email} [{row.role}]{unit} {status}")


def toggle_module(args: argparse.Namespace) -> None:
    """Enable or disable a module globally or for one condominium."""
    with get_sync_session() as session:
        condo_id = None
        if args.condominium:
            condo_id = _condominium_by_name(session, args.condominium).id

        if condo_id is None:
            scope = ModulePermission.condominium_id.is_(None)
        else:
            scope = ModulePermission.condominium_id == condo_id
        row = session.execute(
            select(ModulePermission).where(
                ModulePermission.module_key == args.module, scope
            )
        ).scalar_one_or_none()

        enabled = args.state == "on"
        if row is None:
            row = ModulePermission(
                condominium_id=condo_id,
                module_key=args.module,
                module_label=args.label or args.module,
                is_enabled=enabled,
            )
            session.add(row)
        else:
            row.is_enabled = enabled
            if args.label:
                row.module_label = args.label
        session.commit()
        where = args.condominium or "global default"
        print(f"Module {args.module} {'enabled' if enabled else 'disabled'} ({where})")


def deactivate_condominium(args: argparse.Namespace) -> None:
    """Deactivate a condominium (members lose access)."""
    with get_sync_session() as session:
        condo = _condominium_by_name(session, args.name)
        if not condo.is_active:
            _fail(f"Condominium already inactive: {args.name}")

        condo.is_active = False
        session.commit()
        print(f"Condominium deactivated: {args.name}")


def main() -> None:
    """Parse arguments and dispatch to command handler."""
    parser = argparse.ArgumentParser(description="Condominium access management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # create-condominium
    p = sub.add_parser("create-condominium", help="Create a new condominium")
    p.add_argument("--name", required=True, help="Condominium name")
    p.add_argument("--city", default=None, help="City")
    p.add_argument("--units", type=int, default=None, help="Total units")

    # add-member
    p = sub.add_parser("add-member", help="Grant a user a role in a condominium")
    p.add_argument("--condominium", required=True, help="Condominium name")
    p.add_argument("--email", required=True, help="User email")
    p.add_argument("--role", choices=MEMBERSHIP_ROLES, default=Role.RESIDENT.value)
    p.add_argument("--unit", default=None, help="Unit label")

    # set-global-role
    p = sub.add_parser("set-global-role", help="Change a user's global role")
    p.add_argument("--email", required=True, help="User email")
    p.add_argument("--role", choices=GLOBAL_ROLES, required=True)

    # list-members
    p = sub.add_parser("list-members", help="List members of a condominium")
    p.add_argument("--condominium", required=True, help="Condominium name")

    # toggle-module
    p = sub.add_parser("toggle-module", help="Enable or disable a module")
    p.add_argument("--module", required=True, help="Module key, e.g. financeiro")
    p.add_argument("--state", choices=["on", "off"], required=True)
    p.add_argument("--condominium", default=None, help="Omit for the global default")
    p.add_argument("--label", default=None, help="Display label")

    # deactivate-condominium
    p = sub.add_parser("deactivate-condominium", help="Deactivate a condominium")
    p.add_argument("--name", required=True, help="Condominium name")

    args = parser.parse_args()

    commands: dict[str, Callable[[argparse.Namespace], None]] = {
        "create-condominium": create_condominium,
        "add-member": add_member,
        "set-global-role": set_global_role,
        "list-members": list_members,
        "toggle-module": toggle_module,
        "deactivate-condominium": deactivate_condominium,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
