# ruff: noqa: I001
"""Finance tracker core tables: users, accounts, CSV schemas, imports,
transactions and tags.

Revision ID: 0001_ft_core
Revises: None
Create Date: 2025-07-13
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ft_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "ft_users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "ft_accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("sort_code", sa.String(20), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("balance_at_start", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("balance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "number", name="uq_ft_accounts_user_number"),
    )
    op.create_index("ix_ft_accounts_user_name", "ft_accounts", ["user_id", "name"])

    op.create_table(
        "ft_csv_schemas",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("transaction_data_start", sa.Integer(), nullable=False),
        sa.Column("date_column", sa.Integer(), nullable=False),
        sa.Column("balance_column", sa.Integer(), nullable=False),
        sa.Column("amount_column", sa.Integer(), nullable=True),
        sa.Column("paid_in_column", sa.Integer(), nullable=True),
        sa.Column("paid_out_column", sa.Integer(), nullable=True),
        sa.Column("description_column", sa.Integer(), nullable=True),
        sa.Column("date_format", sa.String(50), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_ft_csv_schemas_user_name"),
        sa.CheckConstraint("transaction_data_start >= 1", name="ck_ft_csv_schemas_data_start"),
    )

    op.create_table(
        "ft_imports",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "csv_schema_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_csv_schemas.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_rows", sa.Integer(), nullable=True),
        sa.Column("processed_rows", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("imported_rows", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("duplicate_rows", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "status in ('pending','processing','completed','failed')",
            name="ck_ft_imports_status",
        ),
    )
    op.create_index("ix_ft_imports_user_status", "ft_imports", ["user_id", "status"])
    op.create_index("ix_ft_imports_account", "ft_imports", ["account_id"])

    op.create_table(
        "ft_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "import_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_imports.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=True),
        sa.Column("paid_in", sa.Integer(), nullable=True),
        sa.Column("paid_out", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("unique_hash", sa.CHAR(64), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "unique_hash", name="uq_ft_tx_user_hash"),
        sa.CheckConstraint(
            "paid_in IS NULL OR paid_out IS NULL",
            name="ck_ft_tx_single_direction",
        ),
    )
    op.create_index("ix_ft_tx_user_date", "ft_transactions", ["user_id", "date"])
    op.create_index("ix_ft_tx_user_import", "ft_transactions", ["user_id", "import_id"])
    op.create_index("ix_ft_tx_account_date", "ft_transactions", ["account_id", "date"])

    op.create_table(
        "ft_tags",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "name", name="uq_ft_tags_user_name"),
    )

    op.create_table(
        "ft_tag_transaction",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "tag_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_tags.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "transaction_id",
            sa.BigInteger(),
            sa.ForeignKey("ft_transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("is_recommended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_user_added", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("tag_id", "transaction_id", name="uq_ft_tag_transaction_pair"),
    )


def downgrade() -> None:
    op.drop_table("ft_tag_transaction")
    op.drop_table("ft_tags")
    op.drop_index("ix_ft_tx_account_date", table_name="ft_transactions")
    op.drop_index("ix_ft_tx_user_import", table_name="ft_transactions")
    op.drop_index("ix_ft_tx_user_date", table_name="ft_transactions")
    op.drop_table("ft_transactions")
    op.drop_index("ix_ft_imports_account", table_name="ft_imports")
    op.drop_index("ix_ft_imports_user_status", table_name="ft_imports")
    op.drop_table("ft_imports")
    op.drop_table("ft_csv_schemas")
    op.drop_index("ix_ft_accounts_user_name", table_name="ft_accounts")
    op.drop_table("ft_accounts")
    op.drop_table("ft_users")
