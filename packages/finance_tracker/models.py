"""Data models for the import workflow.

Dataclasses here are transient values passed between the reader, the
extractor and the workflow; nothing in this module touches the database.
The pydantic models at the bottom validate the reviewed payload handed to
:func:`finance_tracker.workflows.import_flow.import_reviewed_transactions`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import date as _date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ---------------------------------------------------------------------------
# Reader output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MappedRow:
    """One CSV data row labelled by a schema.

    ``mapped_fields`` lists the fields the schema maps. A mapped field whose
    cell is empty in this row is ``None``; an unmapped field is also ``None``
    but absent from ``mapped_fields``. Monetary values are raw strings.
    """

    row_number: int
    raw: tuple[str, ...]
    mapped_fields: frozenset[str]
    date: str | None = None
    balance: str | None = None
    amount: str | None = None
    paid_in: str | None = None
    paid_out: str | None = None
    description: str | None = None

    def is_mapped(self, name: str) -> bool:
        return name in self.mapped_fields

    def get(self, name: str) -> str | None:
        if name not in self.mapped_fields:
            return None
        return getattr(self, name)

    def as_dict(self) -> dict[str, str]:
        """Mapped, non-empty fields only."""

        out: dict[str, str] = {}
        for name in ("date", "balance", "amount", "paid_in", "paid_out", "description"):
            value = self.get(name)
            if value is not None and value != "":
                out[name] = value
        return out


@dataclass(frozen=True, slots=True)
class DetectedDateFormat:
    column: int
    format: str
    label: str
    example: str


@dataclass(frozen=True, slots=True)
class CsvPreview:
    """Header, first rows and date-format hints for a raw upload."""

    headers: list[str]
    rows: list[list[str]]
    total_rows: int
    detected_date_formats: list[DetectedDateFormat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """A normalized statement line.

    Amounts are integer minor units; at most one of ``paid_in``/``paid_out``
    is set. Preview fills ``is_duplicate``, ``duplicate_of_row`` and
    ``status``.
    """

    row_number: int
    date: str
    balance: int
    paid_in: int | None
    paid_out: int | None
    description: str | None
    unique_hash: str
    is_duplicate: bool = False
    duplicate_of_row: int | None = None
    status: str = "pending"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["tags"] = []
        return data


@dataclass(frozen=True, slots=True)
class RowError:
    row_number: int
    message: str
    raw_row: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"row_number": self.row_number, "error": self.message, "row_data": list(self.raw_row)}


@dataclass(frozen=True, slots=True)
class PreviewResult:
    transactions: list[CanonicalTransaction]
    errors: list[RowError]
    total_rows: int
    duplicate_count: int
    valid_count: int
    date_format: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "errors": [e.to_dict() for e in self.errors],
            "total_rows": self.total_rows,
            "duplicate_count": self.duplicate_count,
            "valid_count": self.valid_count,
            "date_format": self.date_format,
        }


@dataclass(frozen=True, slots=True)
class ImportStats:
    total_rows: int
    processed_rows: int
    imported_rows: int
    duplicate_rows: int
    error_rows: int
    success_rate: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Reviewed payload (finalize input)
# ---------------------------------------------------------------------------

ReviewStatus = Literal["approved", "discarded", "duplicate", "pending"]


class ReviewedTag(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int


class ReviewedTransaction(BaseModel):
    """One row as returned by the review step.

    Extras (e.g. ``is_duplicate`` or UI-only keys) are ignored. The client's
    ``unique_hash`` is informational; it is recomputed before insert.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    row_number: int | None = None
    date: str
    balance: int
    paid_in: int | None = None
    paid_out: int | None = None
    description: str | None = None
    reference: str | None = None
    unique_hash: str | None = None
    status: ReviewStatus = "pending"
    tags: list[ReviewedTag] = []

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        try:
            return _date.fromisoformat(v).isoformat()
        except ValueError as exc:
            raise ValueError("date must be YYYY-MM-DD") from exc

    @field_validator("paid_in", "paid_out")
    @classmethod
    def _non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("paid_in/paid_out must be non-negative")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tag_ids(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, Sequence) and not isinstance(v, str):
            return [{"id": t} if isinstance(t, int) else t for t in v]
        return v

    @model_validator(mode="after")
    def _single_direction(self) -> ReviewedTransaction:
        if self.paid_in is not None and self.paid_out is not None:
            raise ValueError("both paid_in and paid_out present")
        return self

    def tag_ids(self) -> list[int]:
        return [t.id for t in self.tags]


__all__ = [
    "CanonicalTransaction",
    "CsvPreview",
    "DetectedDateFormat",
    "ImportStats",
    "MappedRow",
    "PreviewResult",
    "ReviewStatus",
    "ReviewedTag",
    "ReviewedTransaction",
    "RowError",
]
