"""Column schemas: which CSV column holds which transaction field.

A :class:`ColumnSchema` maps 1-based column numbers to the semantic fields of
a bank statement (date, balance, amount or paid-in/paid-out, description) and
records the 1-based row at which transaction data starts. It is the domain
value passed explicitly into the import workflow; the persisted form is
:class:`db.models.finance.FtCsvSchema`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from .dates import is_supported_date_format
from .errors import SchemaValidationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from db.models.finance import FtCsvSchema

# Semantic field name -> ColumnSchema attribute, in mapping order.
COLUMN_FIELDS: dict[str, str] = {
    "date": "date_column",
    "balance": "balance_column",
    "amount": "amount_column",
    "paid_in": "paid_in_column",
    "paid_out": "paid_out_column",
    "description": "description_column",
}

_COLUMN_LETTER = re.compile(r"^[A-Z]$", re.IGNORECASE)


def parse_column_ref(ref: str | int | None) -> int | None:
    """Turn a column reference into a 1-based column number.

    Accepts integers, digit strings (``"3"``) and single spreadsheet letters
    (``"C"`` -> 3). Blank input yields ``None``.
    """

    if ref is None:
        return None
    if isinstance(ref, int):
        return ref
    s = ref.strip()
    if not s:
        return None
    if s.lstrip("-").isdigit():
        return int(s)
    if _COLUMN_LETTER.match(s):
        return ord(s.upper()) - ord("A") + 1
    raise SchemaValidationError("column", f"invalid column reference: {ref!r}")


@dataclass(frozen=True, slots=True)
class ColumnSchema:
    transaction_data_start: int = 1
    date_column: int | None = None
    balance_column: int | None = None
    amount_column: int | None = None
    paid_in_column: int | None = None
    paid_out_column: int | None = None
    description_column: int | None = None
    # Named format (``d/m/Y``) or strptime pattern; ``None`` means detect per file.
    date_format: str | None = None
    name: str | None = None
    id: int | None = None

    def validate(self) -> None:
        """Raise :class:`SchemaValidationError` for the first problem found.

        Order: start row, date column, balance column, amount mode, mixed
        amount modes, column bounds, then the date format.
        """

        if self.transaction_data_start is None or self.transaction_data_start < 1:
            raise SchemaValidationError("transaction_data_start", "start row must be ≥1")
        if self.date_column is None:
            raise SchemaValidationError("date_column", "date column required")
        if self.balance_column is None:
            raise SchemaValidationError("balance_column", "balance column required")

        has_amount = self.amount_column is not None
        has_split = self.paid_in_column is not None or self.paid_out_column is not None
        if not has_amount and not has_split:
            raise SchemaValidationError("amount_column", "amount or paid_in/paid_out required")
        if has_amount and has_split:
            raise SchemaValidationError(
                "amount_column", "use either amount or paid_in/paid_out, not both"
            )

        for attr in COLUMN_FIELDS.values():
            value = getattr(self, attr)
            if value is not None and value < 1:
                raise SchemaValidationError(attr, f"{attr} must be ≥1")

        if self.date_format and not is_supported_date_format(self.date_format):
            raise SchemaValidationError(
                "date_format", f"unsupported date format: {self.date_format!r}"
            )

    def uses_single_amount_column(self) -> bool:
        return (
            self.amount_column is not None
            and self.paid_in_column is None
            and self.paid_out_column is None
        )

    def uses_separate_amount_columns(self) -> bool:
        return self.amount_column is None and (
            self.paid_in_column is not None or self.paid_out_column is not None
        )

    def get_column_mapping(self) -> dict[str, int]:
        """Return ``{field: column}`` for populated fields only.

        The amount group is either ``amount`` or ``paid_in``/``paid_out``,
        never both.
        """

        mapping: dict[str, int] = {}
        for field_name, attr in COLUMN_FIELDS.items():
            if field_name in ("paid_in", "paid_out") and self.amount_column is not None:
                continue
            value = getattr(self, attr)
            if value is not None:
                mapping[field_name] = value
        return mapping

    def column_values(self) -> dict[str, Any]:
        """Everything except identity and name (what a clone copies)."""

        return {
            f.name: getattr(self, f.name) for f in fields(self) if f.name not in ("id", "name")
        }

    @classmethod
    def from_orm(cls, row: FtCsvSchema) -> ColumnSchema:
        return cls(
            id=row.id,
            name=row.name,
            transaction_data_start=row.transaction_data_start,
            date_column=row.date_column,
            balance_column=row.balance_column,
            amount_column=row.amount_column,
            paid_in_column=row.paid_in_column,
            paid_out_column=row.paid_out_column,
            description_column=row.description_column,
            date_format=row.date_format,
        )


def clone_name(base: str, existing_names: Iterable[str]) -> str:
    """Return the first unused of ``"<base> (copy)"``, ``"<base> (copy 2)"``, ..."""

    taken = set(existing_names)
    candidate = f"{base} (copy)"
    counter = 2
    while candidate in taken:
        candidate = f"{base} (copy {counter})"
        counter += 1
    return candidate


__all__ = ["COLUMN_FIELDS", "ColumnSchema", "clone_name", "parse_column_ref"]
