# ruff: noqa: I001
"""Import workflow: preview an upload, finalize reviewed rows, report stats.

The flow is split around a human review step:

1. :func:`preview_transactions` parses the CSV with an explicit schema,
   extracts canonical transactions and flags duplicates, without writing.
2. The caller reviews the rows and tags each one ``approved``,
   ``discarded``, ``duplicate`` or ``pending``.
3. :func:`import_reviewed_transactions` persists the approved rows under a new
   ``ft_imports`` record.

Finalize is all-or-nothing: any failure after the import record is created
rolls back every inserted row and leaves the record ``failed`` with the error
message, then re-raises.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from db.models.finance import FtImport

from ..dates import detect_date_format
from ..errors import DuplicateConflictError, ImportPayloadError
from ..fingerprint import generate_unique_hash
from ..import_records import (
    create_import,
    mark_completed,
    mark_failed,
    mark_started,
    update_progress,
)
from ..ingest.csv_reader import parse_with_schema
from ..ingest.extract import extract_all
from ..logging_setup import get_logger, import_logger
from ..models import CanonicalTransaction, ImportStats, PreviewResult, ReviewedTransaction
from ..persistence import (
    attach_tags,
    ensure_tags_owned,
    existing_hashes,
    get_account,
    insert_transaction,
    refresh_account_balance,
)
from ..schema import ColumnSchema

logger = get_logger("finance_tracker.workflows.import_flow")


def preview_transactions(
    session: Session,
    data: bytes | str,
    schema: ColumnSchema,
    user_id: int,
) -> PreviewResult:
    """Parse, extract and duplicate-check an upload without persisting anything.

    Raises
    ------
    SchemaValidationError
        When ``schema`` is incomplete (checked before any parsing).
    EmptyFileError
        When the file has no rows.

    Row-level failures are returned in ``PreviewResult.errors``. A row is a
    duplicate when its fingerprint is already stored for the user or when an
    earlier row of the same file has the same fingerprint
    (``duplicate_of_row`` points at that row).
    """

    schema.validate()
    rows = parse_with_schema(data, schema)

    date_format = schema.date_format or detect_date_format(r.date for r in rows)
    extracted, errors = extract_all(rows, schema, user_id, date_format)

    stored = existing_hashes(session, user_id=user_id, hashes=(t.unique_hash for t in extracted))
    first_seen: dict[str, int] = {}
    transactions: list[CanonicalTransaction] = []
    for tx in extracted:
        if tx.unique_hash in stored:
            tx = replace(tx, is_duplicate=True, status="duplicate")
        elif tx.unique_hash in first_seen:
            tx = replace(
                tx,
                is_duplicate=True,
                duplicate_of_row=first_seen[tx.unique_hash],
                status="duplicate",
            )
        else:
            first_seen[tx.unique_hash] = tx.row_number
        transactions.append(tx)

    duplicate_count = sum(1 for t in transactions if t.is_duplicate)
    result = PreviewResult(
        transactions=transactions,
        errors=errors,
        total_rows=len(transactions) + len(errors),
        duplicate_count=duplicate_count,
        valid_count=len(transactions) - duplicate_count,
        date_format=date_format,
    )
    import_logger(logger, user=user_id, schema=schema.id).info(
        "preview: %d row(s), %d valid, %d duplicate, %d error(s), date format %s",
        result.total_rows,
        result.valid_count,
        result.duplicate_count,
        len(errors),
        date_format,
    )
    return result


def _validate_payload(
    transactions: Iterable[Mapping[str, Any] | ReviewedTransaction | CanonicalTransaction],
) -> list[ReviewedTransaction]:
    reviewed: list[ReviewedTransaction] = []
    for idx, item in enumerate(transactions):
        if isinstance(item, ReviewedTransaction):
            reviewed.append(item)
            continue
        raw = item.to_dict() if isinstance(item, CanonicalTransaction) else item
        try:
            reviewed.append(ReviewedTransaction.model_validate(raw))
        except ValidationError as exc:
            raise ImportPayloadError(f"transaction {idx}: {exc}") from exc
    return reviewed


def import_reviewed_transactions(
    session: Session,
    transactions: Iterable[Mapping[str, Any] | ReviewedTransaction | CanonicalTransaction],
    schema: ColumnSchema,
    filename: str,
    user_id: int,
    account_id: int,
    csv_schema_id: int | None = None,
) -> FtImport:
    """Persist the ``approved`` rows of a reviewed preview as one import.

    Fingerprints are recomputed here rather than trusted from the payload.
    Rows reviewed as ``duplicate`` and approved rows that hit the
    ``(user_id, unique_hash)`` constraint both count toward
    ``duplicate_rows``; ``discarded`` and ``pending`` rows are skipped.

    Raises
    ------
    RecordNotFoundError
        When the account does not belong to the user (no import is created).
    ImportPayloadError, TagOwnershipError
        After marking the import ``failed``.
    """

    items = list(transactions)
    get_account(session, account_id=account_id, user_id=user_id)

    record = create_import(
        session,
        user_id=user_id,
        account_id=account_id,
        filename=filename,
        csv_schema_id=csv_schema_id if csv_schema_id is not None else schema.id,
        total_rows=len(items),
    )
    mark_started(record)
    session.commit()
    log = import_logger(logger, import_id=record.id, user=user_id, account=account_id)

    try:
        reviewed = _validate_payload(items)
        ensure_tags_owned(
            session, user_id=user_id, tag_ids=(t for item in reviewed for t in item.tag_ids())
        )

        imported = 0
        duplicates = 0
        for item in reviewed:
            if item.status == "duplicate":
                duplicates += 1
                continue
            if item.status != "approved":
                continue
            unique_hash = generate_unique_hash(
                user_id, item.date, item.balance, item.paid_in, item.paid_out
            )
            try:
                tx = insert_transaction(
                    session,
                    user_id=user_id,
                    account_id=account_id,
                    import_id=record.id,
                    tx_date=item.date,
                    balance=item.balance,
                    paid_in=item.paid_in,
                    paid_out=item.paid_out,
                    description=item.description,
                    reference=item.reference,
                    unique_hash=unique_hash,
                )
            except DuplicateConflictError:
                log.warning("row %s already imported; counted as duplicate", item.row_number)
                duplicates += 1
                continue
            if item.tags:
                attach_tags(session, transaction_id=tx.id, tag_ids=item.tag_ids())
            imported += 1

        refresh_account_balance(session, account_id=account_id)
        update_progress(
            record,
            processed_rows=len(reviewed),
            imported_rows=imported,
            duplicate_rows=duplicates,
        )
        mark_completed(record)
        session.commit()
    except Exception as exc:
        session.rollback()
        log.error("finalize failed; rolled back", exc_info=True)
        mark_failed(record, str(exc))
        session.commit()
        raise

    log.info(
        "import completed: %d imported, %d duplicate of %d row(s)",
        record.imported_rows,
        record.duplicate_rows,
        record.processed_rows,
    )
    return record


def get_import_stats(record: FtImport) -> ImportStats:
    processed = record.processed_rows or 0
    imported = record.imported_rows or 0
    duplicates = record.duplicate_rows or 0
    success_rate = round(imported / processed * 100, 1) if processed else 0.0
    return ImportStats(
        total_rows=record.total_rows if record.total_rows is not None else processed,
        processed_rows=processed,
        imported_rows=imported,
        duplicate_rows=duplicates,
        error_rows=max(0, processed - imported - duplicates),
        success_rate=success_rate,
    )


__all__ = ["get_import_stats", "import_reviewed_transactions", "preview_transactions"]
