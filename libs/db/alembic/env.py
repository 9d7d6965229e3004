# ruff: noqa: I001
"""
Alembic environment for the ``ft_*`` schema.

The database URL comes from ``DATABASE_URL`` (a workspace ``.env`` is loaded
first) and falls back to ``sqlalchemy.url`` in ``alembic.ini``. Migrations
target ``db.metadata``; ``alembic.ini`` prepends ``src`` to ``sys.path`` so the
``db`` package imports without an install.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

from db import metadata as target_metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# usecwd=True finds the .env both from the repo root and from libs/db.
_dotenv = find_dotenv(usecwd=True)
if _dotenv:
    load_dotenv(dotenv_path=_dotenv, override=False)


def _resolve_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set. Export it, add it to .env, or set "
            "'sqlalchemy.url' in alembic.ini."
        )
    return url


DATABASE_URL = _resolve_url()
config.set_main_option("sqlalchemy.url", DATABASE_URL)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""

    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""

    section = dict(config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = DATABASE_URL
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # ALTER TABLE on SQLite needs batch mode.
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
