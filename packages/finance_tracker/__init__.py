"""Public interface for the ``finance_tracker`` package.

Symbol re-exports only; see :mod:`finance_tracker.api` for the functions and
:mod:`finance_tracker.models` for the value types.
"""

from .api import (
    ColumnSchema,
    clone_name,
    decode_csv_bytes,
    detect_date_format,
    extract_all,
    extract_transaction_data,
    generate_unique_hash,
    get_import_stats,
    import_reviewed_transactions,
    is_valid_date,
    parse_date,
    parse_for_preview,
    parse_with_schema,
    preview_transactions,
    supported_formats,
)
from .errors import (
    EmptyFileError,
    FinanceTrackerError,
    RowExtractionError,
    SchemaValidationError,
    TagOwnershipError,
)
from .models import (
    CanonicalTransaction,
    CsvPreview,
    ImportStats,
    MappedRow,
    PreviewResult,
    ReviewedTransaction,
    RowError,
)

__all__ = [
    # API
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
    # Models
    "CanonicalTransaction",
    "ColumnSchema",
    "CsvPreview",
    "ImportStats",
    "MappedRow",
    "PreviewResult",
    "ReviewedTransaction",
    "RowError",
    # Errors
    "EmptyFileError",
    "FinanceTrackerError",
    "RowExtractionError",
    "SchemaValidationError",
    "TagOwnershipError",
]
