"""Tables behind the role store and the module permission table."""

import uuid
from datetime import datetime
from typing import Annotated

import uuid_utils
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from condo_access.auth.roles import Role


def new_id() -> uuid.UUID:
    """Time-ordered UUIDv7 primary key."""
    return uuid.UUID(bytes=uuid_utils.uuid7().bytes)


PrimaryKey = Annotated[
    uuid.UUID, mapped_column(Uuid, primary_key=True, default=new_id)
]
CreatedAt = Annotated[
    datetime, mapped_column(DateTime(timezone=True), server_default=func.now())
]
UpdatedAt = Annotated[
    datetime,
    mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    ),
]
RoleName = Annotated[str, mapped_column(String(32), default=Role.RESIDENT.value)]


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[PrimaryKey]
    email: Mapped[str] = mapped_column(String(320), unique=True)
    name: Mapped[str] = mapped_column(String(200))
    # Only ``global_admin`` matters here; tenant roles live on memberships.
    role: Mapped[RoleName]
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[CreatedAt]
    updated_at: Mapped[UpdatedAt]

    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Condominium(Base):
    """A tenant. Every tenant-scoped row references one."""

    __tablename__ = "condominiums"

    id: Mapped[PrimaryKey]
    name: Mapped[str] = mapped_column(String(200), unique=True)
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(64))
    zip_code: Mapped[str | None] = mapped_column(String(16))
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(320))
    total_units: Mapped[int | None] = mapped_column(Integer)
    # Closed condominiums grant nothing, even to existing members.
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[CreatedAt]
    updated_at: Mapped[UpdatedAt]

    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="condominium", cascade="all, delete-orphan"
    )


class Membership(Base):
    """Grants a user a role within one condominium."""

    __tablename__ = "user_condominiums"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "condominium_id", name="uq_user_condominiums_user_condo"
        ),
    )

    id: Mapped[PrimaryKey]
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    condominium_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("condominiums.id", ondelete="CASCADE"), index=True
    )
    role: Mapped[RoleName]
    unit: Mapped[str | None] = mapped_column(String(64))
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[CreatedAt]
    updated_at: Mapped[UpdatedAt]

    user: Mapped["User"] = relationship(back_populates="memberships")
    condominium: Mapped["Condominium"] = relationship(back_populates="memberships")


class ModulePermission(Base):
    """Feature flag for a functional module.

    ``condominium_id`` NULL is the global default; a row for a
    condominium overrides it.
    """

    __tablename__ = "module_permissions"
    __table_args__ = (
        UniqueConstraint(
            "condominium_id", "module_key", name="uq_module_permissions_condo_key"
        ),
        Index(
            "uq_module_permissions_global_key",
            "module_key",
            unique=True,
            postgresql_where=text("condominium_id IS NULL"),
        ),
    )

    id: Mapped[PrimaryKey]
    condominium_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("condominiums.id", ondelete="CASCADE"), index=True
    )
    module_key: Mapped[str] = mapped_column(String(64))
    module_label: Mapped[str] = mapped_column(String(200))
    module_icon: Mapped[str | None] = mapped_column(String(64))
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    updated_at: Mapped[UpdatedAt]
