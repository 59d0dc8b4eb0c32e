"""create accounts and pending transactions

Revision ID: 5c1f0e7a9b21
Revises: 
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1f0e7a9b21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="operator"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"], unique=True)

    op.create_table(
        "pending_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("order_ref", sa.String(length=100), nullable=False),
        sa.Column("verification_code", sa.String(length=32), nullable=False),
        sa.Column("expected_amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="VND"),
        sa.Column("channel", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        sa.Column("resolved_by", sa.String(length=30)),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("resolved_operator", sa.String(length=50)),
    )
    op.create_index("ix_pending_transactions_order_ref", "pending_transactions", ["order_ref"])
    op.create_index("ix_pending_transactions_status", "pending_transactions", ["status"])
    op.create_index(
        "ix_pending_transactions_status_code",
        "pending_transactions",
        ["status", "verification_code"],
    )


def downgrade() -> None:
    op.drop_index("ix_pending_transactions_status_code", table_name="pending_transactions")
    op.drop_index("ix_pending_transactions_status", table_name="pending_transactions")
    op.drop_index("ix_pending_transactions_order_ref", table_name="pending_transactions")
    op.drop_table("pending_transactions")
    op.drop_index("ix_accounts_username", table_name="accounts")
    op.drop_table("accounts")
