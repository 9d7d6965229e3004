"""DB helpers for tests: bootstrap a temporary SQLite DB and seed owners."""

from __future__ import annotations

import os
from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from db.models.finance import FtTag
from sqlalchemy import inspect

from finance_tracker.persistence import create_account, get_or_create_user


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default). The ORM
    models render SQLite-compatible DDL (``func.now()`` becomes
    ``CURRENT_TIMESTAMP``, integer primary keys become rowid aliases), so the
    metadata is created as-is.
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)
    Base.metadata.create_all(bind=engine)
    _assert_tables_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def seed_owner(
    *,
    database_url: str,
    email: str = "owner@example.com",
    balance_at_start: int = 0,
) -> tuple[int, int]:
    """Insert a user and one account; return ``(user_id, account_id)``."""

    with session_scope(database_url=database_url) as session:
        user = get_or_create_user(session, email=email)
        account = create_account(
            session,
            user_id=user.id,
            name="Current",
            number=12345678,
            sort_code="12-34-56",
            balance_at_start=balance_at_start,
        )
        return user.id, account.id


def seed_tag(*, database_url: str, user_id: int, name: str) -> int:
    with session_scope(database_url=database_url) as session:
        tag = FtTag(user_id=user_id, name=name, archived=False)
        session.add(tag)
        session.flush()
        return tag.id


def _assert_tables_in_sync(database_url: str) -> None:
    """Quick sanity check: every ORM table exists with the ORM column set."""

    insp = inspect(get_engine(database_url=database_url))
    for table in Base.metadata.sorted_tables:
        got = {c["name"] for c in insp.get_columns(table.name)}
        expected = {c.name for c in table.columns}
        assert got == expected, (
            f"{table.name} schema drift: missing={expected - got or '∅'}, "
            f"extra={got - expected or '∅'}"
        )
