"""create_access_tables

Users, condominiums, memberships and module permissions.

Revision ID: 3f7a9c21d0b4
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f7a9c21d0b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create authorization tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "condominiums",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("zip_code", sa.String(length=16), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("total_units", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "user_condominiums",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("condominium_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["condominium_id"], ["condominiums.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "condominium_id", name="uq_user_condominiums_user_condo"
        ),
    )
    op.create_index(
        op.f("ix_user_condominiums_user_id"), "user_condominiums", ["user_id"]
    )
    op.create_index(
        op.f("ix_user_condominiums_condominium_id"),
        "user_condominiums",
        ["condominium_id"],
    )
    op.create_table(
        "module_permissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("condominium_id", sa.Uuid(), nullable=True),
        sa.Column("module_key", sa.String(length=64), nullable=False),
        sa.Column("module_label", sa.String(length=200), nullable=False),
        sa.Column("module_icon", sa.String(length=64), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["condominium_id"], ["condominiums.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["updated_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "condominium_id", "module_key", name="uq_module_permissions_condo_key"
        ),
    )
    op.create_index(
        op.f("ix_module_permissions_condominium_id"),
        "module_permissions",
        ["condominium_id"],
    )
    # UNIQUE above does not cover NULL condominium_id; one global row per key.
    op.create_index(
        "uq_module_permissions_global_key",
        "module_permissions",
        ["module_key"],
        unique=True,
        postgresql_where=sa.text("condominium_id IS NULL"),
    )


def downgrade() -> None:
    """Drop authorization tables."""
    op.drop_index("uq_module_permissions_global_key", table_name="module_permissions")
    op.drop_index(
        op.f("ix_module_permissions_condominium_id"), table_name="module_permissions"
    )
    op.drop_table("module_permissions")
    op.drop_index(
        op.f("ix_user_condominiums_condominium_id"), table_name="user_condominiums"
    )
    op.drop_index(op.f("ix_user_condominiums_user_id"), table_name="user_condominiums")
    op.drop_table("user_condominiums")
    op.drop_table("condominiums")
    op.drop_table("users")
