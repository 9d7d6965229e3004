# ruff: noqa: I001
"""Persistence integration for finance_tracker.

Functions here read and write the shared database owned by ``libs/db``
through the ORM models in ``db.models.finance``. Callers own the session and
its transaction boundary; nothing in this module commits.

Scope:
- Fingerprint lookups against ``ft_transactions`` (``exists_by_hash``,
  ``existing_hashes``).
- Single-row inserts inside a SAVEPOINT, where a ``(user_id, unique_hash)``
  violation surfaces as :class:`DuplicateConflictError`.
- Tag ownership checks and tag links (``ft_tag_transaction``).
- Account balance recompute.
- CSV schema CRUD and the user/account helpers used by the CLI.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.finance import (
    FtAccount,
    FtCsvSchema,
    FtTag,
    FtTagTransaction,
    FtTransaction,
    FtUser,
)
from .errors import (
    DuplicateConflictError,
    RecordNotFoundError,
    SchemaValidationError,
    TagOwnershipError,
)
from .logging_setup import get_logger
from .schema import ColumnSchema, clone_name

logger = get_logger("finance_tracker.persistence")

# Keep IN (...) lists well under SQLite's bound-parameter limit.
_LOOKUP_CHUNK = 500


# ---------------------------------------------------------------------------
# Fingerprint lookups
# ---------------------------------------------------------------------------


def exists_by_hash(session: Session, *, user_id: int, unique_hash: str) -> bool:
    stmt = (
        select(FtTransaction.id)
        .where(FtTransaction.user_id == user_id, FtTransaction.unique_hash == unique_hash)
        .limit(1)
    )
    return session.execute(stmt).first() is not None


def existing_hashes(session: Session, *, user_id: int, hashes: Iterable[str]) -> set[str]:
    """Return the subset of ``hashes`` already stored for ``user_id``."""

    wanted = sorted(set(hashes))
    found: set[str] = set()
    for start in range(0, len(wanted), _LOOKUP_CHUNK):
        chunk = wanted[start : start + _LOOKUP_CHUNK]
        stmt = select(FtTransaction.unique_hash).where(
            FtTransaction.user_id == user_id, FtTransaction.unique_hash.in_(chunk)
        )
        found.update(session.scalars(stmt))
    return found


# ---------------------------------------------------------------------------
# Transactions and tags
# ---------------------------------------------------------------------------


def insert_transaction(
    session: Session,
    *,
    user_id: int,
    account_id: int,
    import_id: int | None,
    tx_date: str,
    balance: int | None,
    paid_in: int | None,
    paid_out: int | None,
    description: str | None,
    unique_hash: str,
    reference: str | None = None,
) -> FtTransaction:
    """Insert one transaction inside a SAVEPOINT.

    A unique violation on ``(user_id, unique_hash)`` rolls back only the
    savepoint and raises :class:`DuplicateConflictError`. Any other
    integrity error propagates unchanged.
    """

    row = FtTransaction(
        user_id=user_id,
        account_id=account_id,
        import_id=import_id,
        date=date.fromisoformat(tx_date),
        balance=balance,
        paid_in=paid_in,
        paid_out=paid_out,
        description=description,
        reference=reference,
        unique_hash=unique_hash,
    )
    try:
        with session.begin_nested():
            session.add(row)
            session.flush()
    except IntegrityError:
        if exists_by_hash(session, user_id=user_id, unique_hash=unique_hash):
            raise DuplicateConflictError(unique_hash) from None
        raise
    return row


def owned_tag_ids(session: Session, *, user_id: int, tag_ids: Iterable[int]) -> set[int]:
    wanted = set(tag_ids)
    if not wanted:
        return set()
    stmt = select(FtTag.id).where(FtTag.user_id == user_id, FtTag.id.in_(wanted))
    return set(session.scalars(stmt))


def ensure_tags_owned(session: Session, *, user_id: int, tag_ids: Iterable[int]) -> None:
    """Raise :class:`TagOwnershipError` if any id is not one of the user's tags."""

    wanted = set(tag_ids)
    missing = wanted - owned_tag_ids(session, user_id=user_id, tag_ids=wanted)
    if missing:
        raise TagOwnershipError(missing)


def attach_tags(
    session: Session,
    *,
    transaction_id: int,
    tag_ids: Sequence[int],
    is_user_added: bool = True,
    is_recommended: bool = False,
) -> int:
    seen: set[int] = set()
    for tag_id in tag_ids:
        if tag_id in seen:
            continue
        seen.add(tag_id)
        session.add(
            FtTagTransaction(
                tag_id=tag_id,
                transaction_id=transaction_id,
                is_user_added=is_user_added,
                is_recommended=is_recommended,
            )
        )
    session.flush()
    return len(seen)


def create_tag(
    session: Session,
    *,
    user_id: int,
    name: str,
    color: str | None = None,
    description: str | None = None,
) -> FtTag:
    tag = FtTag(user_id=user_id, name=name, color=color, description=description, archived=False)
    session.add(tag)
    session.flush()
    return tag


def refresh_account_balance(session: Session, *, account_id: int) -> int:
    """Set the account balance from its latest transaction.

    Latest means greatest ``date`` then greatest ``id``. Without transactions
    (or when the latest has no balance) the balance falls back to
    ``balance_at_start``.
    """

    account = session.get(FtAccount, account_id)
    if account is None:
        raise RecordNotFoundError("account", account_id)
    latest = session.scalars(
        select(FtTransaction.balance)
        .where(FtTransaction.account_id == account_id)
        .order_by(FtTransaction.date.desc(), FtTransaction.id.desc())
        .limit(1)
    ).first()
    account.balance = latest if latest is not None else account.balance_at_start
    account.updated_at = datetime.now(UTC)
    session.flush()
    return account.balance


# ---------------------------------------------------------------------------
# Users and accounts
# ---------------------------------------------------------------------------


def get_user_by_email(session: Session, *, email: str) -> FtUser:
    user = session.scalars(select(FtUser).where(FtUser.email == email)).first()
    if user is None:
        raise RecordNotFoundError("user", email)
    return user


def get_or_create_user(session: Session, *, email: str) -> FtUser:
    user = session.scalars(select(FtUser).where(FtUser.email == email)).first()
    if user is None:
        user = FtUser(email=email)
        session.add(user)
        session.flush()
    return user


def create_account(
    session: Session,
    *,
    user_id: int,
    name: str,
    number: int,
    sort_code: str,
    balance_at_start: int = 0,
    description: str | None = None,
) -> FtAccount:
    account = FtAccount(
        user_id=user_id,
        name=name,
        number=number,
        sort_code=sort_code,
        description=description,
        balance_at_start=balance_at_start,
        balance=balance_at_start,
    )
    session.add(account)
    session.flush()
    return account


def get_account(session: Session, *, account_id: int, user_id: int) -> FtAccount:
    account = session.get(FtAccount, account_id)
    if account is None or account.user_id != user_id:
        raise RecordNotFoundError("account", account_id)
    return account


def list_accounts(session: Session, *, user_id: int) -> list[FtAccount]:
    stmt = select(FtAccount).where(FtAccount.user_id == user_id).order_by(FtAccount.name)
    return list(session.scalars(stmt))


# ---------------------------------------------------------------------------
# CSV schemas
# ---------------------------------------------------------------------------


def _schema_names(session: Session, user_id: int) -> set[str]:
    return set(session.scalars(select(FtCsvSchema.name).where(FtCsvSchema.user_id == user_id)))


def create_schema(
    session: Session, *, user_id: int, name: str, schema: ColumnSchema
) -> FtCsvSchema:
    schema.validate()
    name = name.strip()
    if not name:
        raise SchemaValidationError("name", "name required")
    if name in _schema_names(session, user_id):
        raise SchemaValidationError("name", f"a schema named {name!r} already exists")
    row = FtCsvSchema(user_id=user_id, name=name, **schema.column_values())
    session.add(row)
    session.flush()
    logger.info("created CSV schema %s (%r) for user %s", row.id, name, user_id)
    return row


def _schema_row(session: Session, *, schema_id: int, user_id: int) -> FtCsvSchema:
    row = session.get(FtCsvSchema, schema_id)
    if row is None or row.user_id != user_id:
        raise RecordNotFoundError("csv schema", schema_id)
    return row


def load_schema(session: Session, *, schema_id: int, user_id: int) -> ColumnSchema:
    return ColumnSchema.from_orm(_schema_row(session, schema_id=schema_id, user_id=user_id))


def list_schemas(session: Session, *, user_id: int) -> list[ColumnSchema]:
    stmt = (
        select(FtCsvSchema)
        .where(FtCsvSchema.user_id == user_id)
        .order_by(func.lower(FtCsvSchema.name))
    )
    return [ColumnSchema.from_orm(row) for row in session.scalars(stmt)]


def clone_schema(session: Session, *, schema_id: int, user_id: int) -> FtCsvSchema:
    """Copy a schema's column settings under the next free ``(copy N)`` name."""

    source = ColumnSchema.from_orm(_schema_row(session, schema_id=schema_id, user_id=user_id))
    new_name = clone_name(source.name or "", _schema_names(session, user_id))
    row = FtCsvSchema(user_id=user_id, name=new_name, **source.column_values())
    session.add(row)
    session.flush()
    return row


__all__ = [
    "attach_tags",
    "clone_schema",
    "create_account",
    "create_schema",
    "create_tag",
    "ensure_tags_owned",
    "exists_by_hash",
    "existing_hashes",
    "get_account",
    "get_or_create_user",
    "get_user_by_email",
    "insert_transaction",
    "list_accounts",
    "list_schemas",
    "load_schema",
    "owned_tag_ids",
    "refresh_account_balance",
]
