"""create users and user_otp

Revision ID: a3f9c1d2e4b5
Revises:
Create Date: 2026-10-17 10:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "a3f9c1d2e4b5"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_otp",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("otp", sa.String(length=10), nullable=False),
        sa.Column("purpose", sa.String(length=30), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_otp_user_id", "user_otp", ["user_id"])
    # 同一用户同一用途最多一条未使用的验证码
    op.create_index(
        "uq_user_otp_active",
        "user_otp",
        ["user_id", "purpose"],
        unique=True,
        postgresql_where=sa.text("is_used = false"),
        sqlite_where=sa.text("is_used = 0"),
    )


def downgrade() -> None:
    op.drop_index("uq_user_otp_active", table_name="user_otp")
    op.drop_index("ix_user_otp_user_id", table_name="user_otp")
    op.drop_table("user_otp")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
