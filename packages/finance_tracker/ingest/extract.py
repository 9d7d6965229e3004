"""Turn schema-mapped rows into canonical transactions.

Mapping rules:
- ``date``: parsed with the file's date format as a hint, output ``YYYY-MM-DD``
- ``balance``: required; integer minor units
- single amount column: signed; ``>= 0`` is ``paid_in``, ``< 0`` is
  ``abs()`` into ``paid_out``; empty leaves both ``None``
- split columns: each side taken as an absolute value when present; zero
  counts as absent; both sides non-zero is a row error
- ``description``: mapped cell or ``None``
- ``unique_hash``: see :func:`finance_tracker.fingerprint.generate_unique_hash`
"""

from __future__ import annotations

from collections.abc import Iterable

from ..dates import parse_date
from ..errors import AmountParseError, DateParseError, RowExtractionError
from ..fingerprint import generate_unique_hash
from ..logging_setup import get_logger
from ..models import CanonicalTransaction, MappedRow, RowError
from ..money import is_blank, to_minor_units
from ..schema import ColumnSchema

logger = get_logger("finance_tracker.ingest.extract")


def _minor_units(row: MappedRow, field_name: str) -> int:
    raw = row.get(field_name)
    try:
        return to_minor_units(raw)
    except AmountParseError as exc:
        raise RowExtractionError(row.row_number, f"invalid {field_name}: {exc}") from exc


def _split_side(row: MappedRow, field_name: str) -> int | None:
    raw = row.get(field_name)
    if is_blank(raw):
        return None
    value = abs(_minor_units(row, field_name))
    return value or None


def extract_transaction_data(
    row: MappedRow,
    schema: ColumnSchema,
    user_id: int,
    date_format: str | None = None,
) -> CanonicalTransaction:
    """Build a :class:`CanonicalTransaction` from one mapped row.

    Raises :class:`RowExtractionError` when the date, balance or amount cells
    cannot be parsed.
    """

    try:
        iso_date = parse_date(row.date, date_format or schema.date_format)
    except DateParseError as exc:
        raise RowExtractionError(row.row_number, f"invalid date: {exc}") from exc

    if is_blank(row.balance):
        raise RowExtractionError(row.row_number, "balance is required")
    balance = _minor_units(row, "balance")

    paid_in: int | None = None
    paid_out: int | None = None
    if schema.uses_single_amount_column():
        if not is_blank(row.amount):
            amount = _minor_units(row, "amount")
            if amount >= 0:
                paid_in = amount
            else:
                paid_out = -amount
    else:
        paid_in = _split_side(row, "paid_in")
        paid_out = _split_side(row, "paid_out")
        if paid_in is not None and paid_out is not None:
            raise RowExtractionError(row.row_number, "both paid_in and paid_out present")

    return CanonicalTransaction(
        row_number=row.row_number,
        date=iso_date,
        balance=balance,
        paid_in=paid_in,
        paid_out=paid_out,
        description=row.get("description"),
        unique_hash=generate_unique_hash(user_id, iso_date, balance, paid_in, paid_out),
    )


def extract_all(
    rows: Iterable[MappedRow],
    schema: ColumnSchema,
    user_id: int,
    date_format: str | None = None,
) -> tuple[list[CanonicalTransaction], list[RowError]]:
    """Extract every row; failures are collected, never raised."""

    transactions: list[CanonicalTransaction] = []
    errors: list[RowError] = []
    for row in rows:
        try:
            transactions.append(extract_transaction_data(row, schema, user_id, date_format))
        except RowExtractionError as exc:
            logger.warning("row %d skipped: %s", row.row_number, exc.message)
            errors.append(RowError(row_number=row.row_number, message=exc.message, raw_row=row.raw))
    return transactions, errors


__all__ = ["extract_all", "extract_transaction_data"]
