"""Pytest configuration: import paths and per-test SQLite databases.

Each test that needs storage gets its own file-backed SQLite database under
``tmp_path`` so tests never share rows. Cached engines are disposed after
every test because ``db.client`` keeps one engine per URL.
"""

# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace dirs are on sys.path so `finance_tracker` and `db`
# are importable without an install.
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p for p in [str(_ROOT / "packages"), str(_ROOT / "libs/db/src"), str(_ROOT)] if p not in sys.path
]

from db.client import dispose_engines, get_session  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from tests.helpers.db import bootstrap_sqlite_db, seed_owner, seed_tag  # noqa: E402


@pytest.fixture
def db_url(tmp_path: Path) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "ft-test.db")
    yield url
    dispose_engines()


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def owner(db_url: str) -> tuple[int, int]:
    """``(user_id, account_id)`` for a seeded user with an opening balance of 500.00."""

    return seed_owner(database_url=db_url, balance_at_start=50000)


@pytest.fixture
def user_id(owner: tuple[int, int]) -> int:
    return owner[0]


@pytest.fixture
def account_id(owner: tuple[int, int]) -> int:
    return owner[1]


@pytest.fixture
def tag_id(db_url: str, user_id: int) -> int:
    return seed_tag(database_url=db_url, user_id=user_id, name="Groceries")
