from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CHAR,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


# ---------------------------
# Owners: ft_users, ft_accounts
# ---------------------------


class FtUser(Base):
    __tablename__ = "ft_users"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class FtAccount(Base):
    __tablename__ = "ft_accounts"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("ft_users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    sort_code: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Both balances are stored in minor units (pence).
    balance_at_start: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    balance: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "number", name="uq_ft_accounts_user_number"),
        Index("ix_ft_accounts_user_name", "user_id", "name"),
    )


# ---------------------------
# Column mappings: ft_csv_schemas
# ---------------------------


class FtCsvSchema(Base):
    __tablename__ = "ft_csv_schemas"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("ft_users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 1-based row where transaction data begins (after any header/preamble rows).
    transaction_data_start: Mapped[int] = mapped_column(Integer, nullable=False)
    # Column mappings are 1-based column numbers.
    date_column: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_column: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_column: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_in_column: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_out_column: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description_column: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Either a named format (e.g. "d/m/Y") or a strptime pattern; NULL means
    # the format is detected per file.
    date_format: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_ft_csv_schemas_user_name"),
        CheckConstraint("transaction_data_start >= 1", name="ck_ft_csv_schemas_data_start"),
    )


# ---------------------------
# Ingestion record: ft_imports
# ---------------------------


class FtImport(Base):
    __tablename__ = "ft_imports"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("ft_users.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("ft_accounts.id", ondelete="CASCADE"), nullable=False
    )
    # NULL when the import used a transient (unsaved) schema.
    csv_schema_id: Mapped[int | None] = mapped_column(
        ForeignKey("ft_csv_schemas.id", ondelete="SET NULL"), nullable=True
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=text("'pending'")
    )
    total_rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_rows: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    imported_rows: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    duplicate_rows: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    transactions: Mapped[list[FtTransaction]] = relationship(back_populates="import_")

    __table_args__ = (
        CheckConstraint(
            "status in ('pending','processing','completed','failed')",
            name="ck_ft_imports_status",
        ),
        Index("ix_ft_imports_user_status", "user_id", "status"),
        Index("ix_ft_imports_account", "account_id"),
    )


# ---------------------------
# Core: ft_transactions
# ---------------------------


class FtTransaction(Base):
    __tablename__ = "ft_transactions"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("ft_users.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("ft_accounts.id", ondelete="CASCADE"), nullable=False
    )
    import_id: Mapped[int | None] = mapped_column(
        ForeignKey("ft_imports.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # Amounts in minor units. At most one of paid_in/paid_out is set per row.
    balance: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_in: Mapped[int | None] = mapped_column(Integer, nullable=True)
    paid_out: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    # SHA-256 over (user_id, date, balance, paid_in, paid_out); the dedup key.
    unique_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    import_: Mapped[FtImport | None] = relationship(back_populates="transactions")
    tags: Mapped[list[FtTag]] = relationship(
        secondary="ft_tag_transaction", back_populates="transactions", viewonly=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "unique_hash", name="uq_ft_tx_user_hash"),
        CheckConstraint(
            "paid_in IS NULL OR paid_out IS NULL",
            name="ck_ft_tx_single_direction",
        ),
        Index("ix_ft_tx_user_date", "user_id", "date"),
        Index("ix_ft_tx_user_import", "user_id", "import_id"),
        Index("ix_ft_tx_account_date", "account_id", "date"),
    )


# ---------------------------
# Tagging: ft_tags, ft_tag_transaction
# ---------------------------


class FtTag(Base):
    __tablename__ = "ft_tags"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("ft_users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    transactions: Mapped[list[FtTransaction]] = relationship(
        secondary="ft_tag_transaction", back_populates="tags", viewonly=True
    )

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_ft_tags_user_name"),)


class FtTagTransaction(Base):
    __tablename__ = "ft_tag_transaction"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    tag_id: Mapped[int] = mapped_column(
        ForeignKey("ft_tags.id", ondelete="CASCADE"), nullable=False
    )
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("ft_transactions.id", ondelete="CASCADE"), nullable=False
    )
    # How the tag was applied: suggested by criteria vs. picked during review.
    is_recommended: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    is_user_added: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("tag_id", "transaction_id", name="uq_ft_tag_transaction_pair"),
    )


__all__ = [
    "Base",
    "FtUser",
    "FtAccount",
    "FtCsvSchema",
    "FtImport",
    "FtTransaction",
    "FtTag",
    "FtTagTransaction",
]
