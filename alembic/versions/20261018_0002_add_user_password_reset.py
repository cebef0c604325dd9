"""add password reset columns to users

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18 12:00:00.000000

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("users", sa.Column("reset_password_token", sa.String(length=64), nullable=True))
    op.add_column("users", sa.Column("reset_password_expire", sa.DateTime(timezone=True), nullable=True))
    op.create_index(op.f("ix_users_reset_password_token"), "users", ["reset_password_token"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_users_reset_password_token"), table_name="users")
    op.drop_column("users", "reset_password_expire")
    op.drop_column("users", "reset_password_token")
