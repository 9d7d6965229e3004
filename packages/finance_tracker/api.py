"""Public API for the ``finance_tracker`` package.

This module is the stable import surface. Implementations live in
``finance_tracker.dates``, ``finance_tracker.schema``,
``finance_tracker.ingest`` and ``finance_tracker.workflows.import_flow``.
"""

from __future__ import annotations

from .dates import detect_date_format, is_valid_date, parse_date, supported_formats
from .fingerprint import generate_unique_hash
from .ingest.csv_reader import decode_csv_bytes, parse_for_preview, parse_with_schema
from .ingest.extract import extract_all, extract_transaction_data
from .schema import ColumnSchema, clone_name
from .workflows.import_flow import (
    get_import_stats,
    import_reviewed_transactions,
    preview_transactions,
)

__all__ = [
    "ColumnSchema",
    "clone_name",
    "decode_csv_bytes",
    "detect_date_format",
    "extract_all",
    "extract_transaction_data",
    "generate_unique_hash",
    "get_import_stats",
    "import_reviewed_transactions",
    "is_valid_date",
    "parse_date",
    "parse_for_preview",
    "parse_with_schema",
    "preview_transactions",
    "supported_formats",
]
