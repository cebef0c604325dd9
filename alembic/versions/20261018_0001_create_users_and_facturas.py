"""create users and facturas tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

factura_status = sa.Enum("pendiente", "pagada", "vencida", "anulada", name="factura_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("refresh_token", sa.String(), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "facturas",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        sa.Column("paid_date", sa.DateTime(), nullable=True),
        sa.Column("status", factura_status, nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_facturas_amount_non_negative"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_facturas_owner_id"), "facturas", ["owner_id"], unique=False)
    op.create_index(op.f("ix_facturas_due_date"), "facturas", ["due_date"], unique=False)
    op.create_index(op.f("ix_facturas_status"), "facturas", ["status"], unique=False)
    op.create_index(op.f("ix_facturas_deleted_at"), "facturas", ["deleted_at"], unique=False)
    op.create_index("idx_facturas_status_due_date", "facturas", ["status", "due_date"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_facturas_status_due_date", table_name="facturas")
    op.drop_index(op.f("ix_facturas_deleted_at"), table_name="facturas")
    op.drop_index(op.f("ix_facturas_status"), table_name="facturas")
    op.drop_index(op.f("ix_facturas_due_date"), table_name="facturas")
    op.drop_index(op.f("ix_facturas_owner_id"), table_name="facturas")
    op.drop_table("facturas")
    factura_status.drop(op.get_bind(), checkfirst=True)
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
