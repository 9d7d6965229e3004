# ruff: noqa: I001
"""CLI for the ``finance_tracker`` package.

This module exposes callable command handlers (``cmd_*``, each returning a
process exit code) and a Typer-based console interface over them. The root
callback loads ``.env`` with ``python-dotenv`` and configures logging before
any subcommand runs. Business logic lives in ``finance_tracker.api`` and the
modules it re-exports; handlers only translate between files/options and
those functions, and turn :class:`FinanceTrackerError` into ``Error: ...`` on
stderr with exit code 1.

Typical session::

    finance-tracker init-db
    finance-tracker account create --email me@example.com --name Current \\
        --number 12345678 --sort-code 12-34-56 --balance-at-start 100.00
    finance-tracker inspect-csv --csv-path statement.csv
    finance-tracker schema create --email me@example.com --name "My bank" \\
        --data-start 2 --date-column 1 --balance-column 4 --amount-column 3
    finance-tracker preview --email me@example.com --schema-id 1 \\
        --csv-path statement.csv --approve-valid --output reviewed.json
    finance-tracker finalize --email me@example.com --schema-id 1 \\
        --account-id 1 --reviewed reviewed.json --filename statement.csv
    finance-tracker stats --import-id 1
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .errors import FinanceTrackerError, ImportPayloadError
from .logging_setup import configure_logging, get_logger

logger = get_logger("finance_tracker.cli")

_DEFAULT_PREVIEW_ROWS = 20


def _preview_rows_default() -> int:
    """Resolve the ``inspect-csv`` row count from ``FT_PREVIEW_ROWS``."""

    raw = os.getenv("FT_PREVIEW_ROWS")
    if not raw:
        return _DEFAULT_PREVIEW_ROWS
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring non-integer FT_PREVIEW_ROWS=%r", raw)
        return _DEFAULT_PREVIEW_ROWS
    return value if value > 0 else _DEFAULT_PREVIEW_ROWS


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _emit_json(payload: Any, output: str | None = None) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def _error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


# ---- Command handlers -----------------------------------------------------------


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create all ``ft_*`` tables from ORM metadata (local/dev databases).

    Production databases are migrated with Alembic from ``libs/db``.
    """

    from db import Base
    from db.client import get_engine

    try:
        engine = get_engine(database_url=database_url)
        Base.metadata.create_all(bind=engine)
    except RuntimeError as e:
        return _error(str(e))
    print(f"Initialized database at {engine.url.render_as_string(hide_password=True)}")
    return 0


def cmd_account_create(
    *,
    email: str,
    name: str,
    number: int,
    sort_code: str,
    balance_at_start: str = "0",
    description: str | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .money import to_minor_units
    from .persistence import create_account, get_or_create_user

    try:
        opening = to_minor_units(balance_at_start)
        with session_scope(database_url=database_url) as session:
            user = get_or_create_user(session, email=email)
            account = create_account(
                session,
                user_id=user.id,
                name=name,
                number=number,
                sort_code=sort_code,
                balance_at_start=opening,
                description=description,
            )
            account_id = account.id
    except FinanceTrackerError as e:
        return _error(str(e))
    print(f"{account_id}\t{name}")
    return 0


def cmd_account_list(*, email: str, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .money import format_minor_units
    from .persistence import get_user_by_email, list_accounts

    try:
        with session_scope(database_url=database_url) as session:
            user = get_user_by_email(session, email=email)
            lines = [
                f"{a.id}\t{a.name}\t{a.sort_code}\t{a.number}\t{format_minor_units(a.balance)}"
                for a in list_accounts(session, user_id=user.id)
            ]
    except FinanceTrackerError as e:
        return _error(str(e))
    for line in lines:
        print(line)
    return 0


def cmd_inspect_csv(csv_path: str, *, rows: int | None = None) -> int:
    """Print headers, leading rows and date-format hints for a CSV as JSON."""

    from .ingest.csv_reader import parse_for_preview

    try:
        preview = parse_for_preview(_read_bytes(csv_path), rows or _preview_rows_default())
    except FileNotFoundError:
        return _error(f"File not found: {csv_path}")
    except PermissionError:
        return _error(f"Permission denied: {csv_path}")
    except FinanceTrackerError as e:
        return _error(str(e))
    _emit_json(preview.to_dict())
    return 0


def cmd_schema_create(
    *,
    email: str,
    name: str,
    data_start: int,
    date_column: str | None,
    balance_column: str | None,
    amount_column: str | None = None,
    paid_in_column: str | None = None,
    paid_out_column: str | None = None,
    description_column: str | None = None,
    date_format: str | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .persistence import create_schema, get_user_by_email
    from .schema import ColumnSchema, parse_column_ref

    try:
        schema = ColumnSchema(
            transaction_data_start=data_start,
            date_column=parse_column_ref(date_column),
            balance_column=parse_column_ref(balance_column),
            amount_column=parse_column_ref(amount_column),
            paid_in_column=parse_column_ref(paid_in_column),
            paid_out_column=parse_column_ref(paid_out_column),
            description_column=parse_column_ref(description_column),
            date_format=date_format or None,
        )
        with session_scope(database_url=database_url) as session:
            user = get_user_by_email(session, email=email)
            row = create_schema(session, user_id=user.id, name=name, schema=schema)
            schema_id = row.id
    except FinanceTrackerError as e:
        return _error(str(e))
    print(f"{schema_id}\t{name}")
    return 0


def cmd_schema_list(*, email: str, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import get_user_by_email, list_schemas

    try:
        with session_scope(database_url=database_url) as session:
            user = get_user_by_email(session, email=email)
            schemas = list_schemas(session, user_id=user.id)
    except FinanceTrackerError as e:
        return _error(str(e))
    for s in schemas:
        mapping = ",".join(f"{k}={v}" for k, v in s.get_column_mapping().items())
        print(f"{s.id}\t{s.name}\tstart={s.transaction_data_start}\t{mapping}")
    return 0


def cmd_schema_clone(*, email: str, schema_id: int, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import clone_schema, get_user_by_email

    try:
        with session_scope(database_url=database_url) as session:
            user = get_user_by_email(session, email=email)
            row = clone_schema(session, schema_id=schema_id, user_id=user.id)
            new_id, new_name = row.id, row.name
    except FinanceTrackerError as e:
        return _error(str(e))
    print(f"{new_id}\t{new_name}")
    return 0


def cmd_preview(
    csv_path: str,
    *,
    email: str,
    schema_id: int,
    approve_valid: bool = False,
    output: str | None = None,
    database_url: str | None = None,
) -> int:
    """Preview an upload against a saved schema and print the result as JSON.

    With ``approve_valid`` every non-duplicate row is pre-marked ``approved``
    so the output can be edited and passed straight to ``finalize``.
    """

    from db.client import session_scope

    from .persistence import get_user_by_email, load_schema
    from .workflows.import_flow import preview_transactions

    try:
        data = _read_bytes(csv_path)
        with session_scope(database_url=database_url) as session:
            user = get_user_by_email(session, email=email)
            schema = load_schema(session, schema_id=schema_id, user_id=user.id)
            result = preview_transactions(session, data, schema, user.id)
    except FileNotFoundError:
        return _error(f"File not found: {csv_path}")
    except FinanceTrackerError as e:
        return _error(str(e))

    payload = result.to_dict()
    if approve_valid:
        for tx in payload["transactions"]:
            if not tx["is_duplicate"]:
                tx["status"] = "approved"
    _emit_json(payload, output)
    return 0


def _load_reviewed(path: str) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ImportPayloadError(f"reviewed file is not valid JSON: {e}") from e
    if isinstance(payload, dict):
        payload = payload.get("transactions")
    if not isinstance(payload, list):
        raise ImportPayloadError("reviewed file must hold a list of transactions")
    return payload


def cmd_finalize(
    reviewed_path: str,
    *,
    email: str,
    schema_id: int,
    account_id: int,
    filename: str | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import get_session

    from .persistence import get_user_by_email, load_schema
    from .workflows.import_flow import get_import_stats, import_reviewed_transactions

    try:
        transactions = _load_reviewed(reviewed_path)
    except FileNotFoundError:
        return _error(f"File not found: {reviewed_path}")
    except FinanceTrackerError as e:
        return _error(str(e))

    # The workflow commits its own checkpoints (import record, then the batch),
    # so a plain session is used rather than session_scope.
    session = get_session(database_url=database_url)
    try:
        user = get_user_by_email(session, email=email)
        schema = load_schema(session, schema_id=schema_id, user_id=user.id)
        record = import_reviewed_transactions(
            session,
            transactions,
            schema,
            filename or Path(reviewed_path).name,
            user.id,
            account_id,
            csv_schema_id=schema_id,
        )
        stats = get_import_stats(record)
        import_id = record.id
    except FinanceTrackerError as e:
        return _error(str(e))
    finally:
        session.close()

    _emit_json({"import_id": import_id, "status": "completed", **stats.to_dict()})
    return 0


def cmd_stats(*, import_id: int, database_url: str | None = None) -> int:
    from db.client import session_scope
    from db.models.finance import FtImport

    from .workflows.import_flow import get_import_stats

    with session_scope(database_url=database_url) as session:
        record = session.get(FtImport, import_id)
        if record is None:
            return _error(f"import {import_id} not found")
        payload = {
            "import_id": record.id,
            "status": record.status,
            "filename": record.filename,
            "error_message": record.error_message,
            **get_import_stats(record).to_dict(),
        }
    _emit_json(payload)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank-statement CSVs: inspect files, manage column schemas, "
        "preview and finalize imports. Loads DATABASE_URL from a local .env."
    ),
)
schema_app = typer.Typer(no_args_is_help=True, help="Manage CSV column schemas.")
account_app = typer.Typer(no_args_is_help=True, help="Manage bank accounts.")
app.add_typer(schema_app, name="schema")
app.add_typer(account_app, name="account")

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer inspects these when used as default values below.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank-statement CSV file",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files
)
# Inside ``Annotated`` the first positional is an option name, not a default;
# defaults come from the parameter itself.
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
EMAIL_OPTION: OptionInfo = typer.Option(..., "--email", help="Owner's email address.")


@app.command("init-db")
def init_db_cmd(
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Create all tables in the target database."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@account_app.command("create")
def account_create_cmd(
    email: Annotated[str, EMAIL_OPTION],
    *,
    name: str = typer.Option(..., help="Account display name."),
    number: int = typer.Option(..., help="Account number."),
    sort_code: str = typer.Option(..., help="Sort code, e.g. 12-34-56."),
    balance_at_start: str = typer.Option("0", help="Opening balance, e.g. 1,250.00."),
    description: str | None = typer.Option(None, help="Optional description."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Create an account (and its user when the email is new)."""

    raise typer.Exit(
        cmd_account_create(
            email=email,
            name=name,
            number=number,
            sort_code=sort_code,
            balance_at_start=balance_at_start,
            description=description,
            database_url=database_url,
        )
    )


@account_app.command("list")
def account_list_cmd(
    email: Annotated[str, EMAIL_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    raise typer.Exit(cmd_account_list(email=email, database_url=database_url))


@app.command("inspect-csv")
def inspect_csv_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    rows: int | None = typer.Option(
        None, help="Rows to show (default FT_PREVIEW_ROWS or 20).", min=1
    ),
) -> None:
    """Show headers, first rows and detected date formats for a CSV."""

    raise typer.Exit(cmd_inspect_csv(str(csv_path), rows=rows))


@schema_app.command("create")
def schema_create_cmd(
    email: Annotated[str, EMAIL_OPTION],
    *,
    name: str = typer.Option(..., help="Schema name (unique per user)."),
    data_start: int = typer.Option(..., help="1-based row where transactions start."),
    date_column: str | None = typer.Option(None, help="Date column (number or letter)."),
    balance_column: str | None = typer.Option(None, help="Balance column."),
    amount_column: str | None = typer.Option(None, help="Signed amount column."),
    paid_in_column: str | None = typer.Option(None, help="Paid-in column (split mode)."),
    paid_out_column: str | None = typer.Option(None, help="Paid-out column (split mode)."),
    description_column: str | None = typer.Option(None, help="Description column."),
    date_format: str | None = typer.Option(
        None, help="Date format such as d/m/Y; omit to detect per file."
    ),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Validate and save a column schema."""

    raise typer.Exit(
        cmd_schema_create(
            email=email,
            name=name,
            data_start=data_start,
            date_column=date_column,
            balance_column=balance_column,
            amount_column=amount_column,
            paid_in_column=paid_in_column,
            paid_out_column=paid_out_column,
            description_column=description_column,
            date_format=date_format,
            database_url=database_url,
        )
    )


@schema_app.command("list")
def schema_list_cmd(
    email: Annotated[str, EMAIL_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    raise typer.Exit(cmd_schema_list(email=email, database_url=database_url))


@schema_app.command("clone")
def schema_clone_cmd(
    email: Annotated[str, EMAIL_OPTION],
    *,
    schema_id: int = typer.Option(..., help="Schema to copy."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Copy a schema under the next free "(copy N)" name."""

    raise typer.Exit(
        cmd_schema_clone(email=email, schema_id=schema_id, database_url=database_url)
    )


@app.command("preview")
def preview_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    email: Annotated[str, EMAIL_OPTION],
    schema_id: int = typer.Option(..., help="Saved schema to parse with."),
    approve_valid: bool = typer.Option(
        False, help="Mark every non-duplicate row as approved in the output."
    ),
    output: str | None = typer.Option(None, help="Write JSON here instead of stdout."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Parse a CSV, flag duplicates and print the reviewable rows as JSON."""

    raise typer.Exit(
        cmd_preview(
            str(csv_path),
            email=email,
            schema_id=schema_id,
            approve_valid=approve_valid,
            output=output,
            database_url=database_url,
        )
    )


@app.command("finalize")
def finalize_cmd(
    *,
    reviewed: str = typer.Option(..., help="Reviewed JSON (output of preview)."),
    email: Annotated[str, EMAIL_OPTION],
    schema_id: int = typer.Option(..., help="Schema used for the preview."),
    account_id: int = typer.Option(..., help="Target account."),
    filename: str | None = typer.Option(None, help="Original CSV filename to record."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Persist approved rows from a reviewed preview as one import."""

    raise typer.Exit(
        cmd_finalize(
            reviewed,
            email=email,
            schema_id=schema_id,
            account_id=account_id,
            filename=filename,
            database_url=database_url,
        )
    )


@app.command("stats")
def stats_cmd(
    import_id: int = typer.Option(..., help="Import record id."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Print counters and success rate for an import."""

    raise typer.Exit(cmd_stats(import_id=import_id, database_url=database_url))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main(argv: list[str] | None = None) -> int:
    """Run the Typer app and return its exit code instead of exiting."""

    result = app(args=argv, standalone_mode=False)
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m finance_tracker.cli`
    app()
