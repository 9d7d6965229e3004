"""Exception hierarchy for ``finance_tracker``.

Fatal errors (empty file, invalid schema, foreign tags, bad payloads) abort an
operation. Row-level errors (``DateParseError``, ``AmountParseError``) are
wrapped into ``RowExtractionError`` by the extractor and collected by the
import workflow instead of propagating.
"""

from __future__ import annotations

from collections.abc import Iterable


class FinanceTrackerError(Exception):
    """Base class for all package errors."""


class EmptyFileError(FinanceTrackerError):
    """The uploaded CSV has no usable rows."""


class SchemaValidationError(FinanceTrackerError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class DateParseError(FinanceTrackerError, ValueError):
    def __init__(self, raw: str | None, message: str | None = None) -> None:
        super().__init__(message or f"unable to parse date: {raw!r}")
        self.raw = raw


class AmountParseError(FinanceTrackerError, ValueError):
    def __init__(self, raw: str | None, message: str | None = None) -> None:
        super().__init__(message or f"invalid amount: {raw!r}")
        self.raw = raw


class RowExtractionError(FinanceTrackerError):
    """A single CSV row could not be turned into a transaction."""

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(message)
        self.row_number = row_number
        self.message = message


class DuplicateConflictError(FinanceTrackerError):
    """An insert hit the ``(user_id, unique_hash)`` constraint."""

    def __init__(self, unique_hash: str) -> None:
        super().__init__(f"transaction already exists: {unique_hash}")
        self.unique_hash = unique_hash


class TagOwnershipError(FinanceTrackerError):
    def __init__(self, tag_ids: Iterable[int]) -> None:
        self.tag_ids = tuple(sorted(set(tag_ids)))
        joined = ", ".join(str(t) for t in self.tag_ids)
        super().__init__(f"tags not owned by user: {joined}")


class ImportStateError(FinanceTrackerError):
    """Illegal import status transition."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"cannot move import from {current!r} to {target!r}")
        self.current = current
        self.target = target


class ImportPayloadError(FinanceTrackerError):
    """Reviewed transactions payload failed validation."""


class RecordNotFoundError(FinanceTrackerError):
    def __init__(self, kind: str, record_id: int | str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


__all__ = [
    "AmountParseError",
    "DateParseError",
    "DuplicateConflictError",
    "EmptyFileError",
    "FinanceTrackerError",
    "ImportPayloadError",
    "ImportStateError",
    "RecordNotFoundError",
    "RowExtractionError",
    "SchemaValidationError",
    "TagOwnershipError",
]
