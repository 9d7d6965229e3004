"""Import record lifecycle (``ft_imports``).

Status machine::

    pending -> processing -> completed
                          -> failed
    pending -> failed

``completed`` and ``failed`` are terminal. Every transition stamps a
timestamp; illegal transitions raise :class:`ImportStateError`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from sqlalchemy.orm import Session

from db.models.finance import FtImport

from .errors import ImportStateError
from .logging_setup import get_logger

logger = get_logger("finance_tracker.import_records")

type ImportStatus = Literal["pending", "processing", "completed", "failed"]

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

_ALLOWED: dict[str, frozenset[str]] = {
    PENDING: frozenset({PROCESSING, FAILED}),
    PROCESSING: frozenset({COMPLETED, FAILED}),
    COMPLETED: frozenset(),
    FAILED: frozenset(),
}


def _now() -> datetime:
    return datetime.now(UTC)


def _transition(record: FtImport, target: str) -> None:
    current = record.status or PENDING
    if target not in _ALLOWED.get(current, frozenset()):
        raise ImportStateError(current, target)
    record.status = target


def is_terminal(record: FtImport) -> bool:
    return record.status in (COMPLETED, FAILED)


def create_import(
    session: Session,
    *,
    user_id: int,
    account_id: int,
    filename: str,
    csv_schema_id: int | None = None,
    total_rows: int | None = None,
) -> FtImport:
    record = FtImport(
        user_id=user_id,
        account_id=account_id,
        csv_schema_id=csv_schema_id,
        filename=filename,
        status=PENDING,
        total_rows=total_rows,
        processed_rows=0,
        imported_rows=0,
        duplicate_rows=0,
    )
    session.add(record)
    session.flush()
    return record


def mark_started(record: FtImport) -> None:
    _transition(record, PROCESSING)
    record.started_at = _now()


def update_progress(
    record: FtImport,
    *,
    processed_rows: int,
    imported_rows: int,
    duplicate_rows: int,
) -> None:
    if is_terminal(record):
        raise ImportStateError(record.status, record.status)
    record.processed_rows = processed_rows
    record.imported_rows = imported_rows
    record.duplicate_rows = duplicate_rows


def mark_completed(record: FtImport) -> None:
    _transition(record, COMPLETED)
    record.completed_at = _now()
    record.error_message = None


def mark_failed(record: FtImport, message: str) -> None:
    _transition(record, FAILED)
    record.completed_at = _now()
    record.error_message = message
    logger.info("import %s marked failed: %s", record.id, message)


__all__ = [
    "COMPLETED",
    "FAILED",
    "ImportStatus",
    "PENDING",
    "PROCESSING",
    "create_import",
    "is_terminal",
    "mark_completed",
    "mark_failed",
    "mark_started",
    "update_progress",
]
