"""Read bank-statement CSV bytes for preview or schema-driven mapping.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module (quoted fields with
embedded commas and newlines, doubled quotes). Bytes are decoded with BOM
detection and an encoding fallback chain (UTF-8, then Windows-1252, then
Latin-1) because bank exports are frequently not UTF-8.

Row numbers are 1-based CSV record numbers, counted before blank rows are
skipped, so they line up with ``transaction_data_start`` and with what a user
sees in a spreadsheet.
"""

from __future__ import annotations

import codecs
import csv
from io import StringIO

from ..dates import count_format_matches, get_date_format
from ..errors import EmptyFileError
from ..logging_setup import get_logger
from ..models import CsvPreview, DetectedDateFormat, MappedRow
from ..schema import ColumnSchema

logger = get_logger("finance_tracker.ingest.csv_reader")

DATE_SAMPLE_SIZE = 10

_STRICT_ENCODINGS = ("utf-8", "cp1252")


def decode_csv_bytes(data: bytes | str) -> str:
    if isinstance(data, str):
        return data.lstrip("\ufeff")

    if data.startswith(codecs.BOM_UTF16_LE) or data.startswith(codecs.BOM_UTF16_BE):
        return data.decode("utf-16")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")

    for encoding in _STRICT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            logger.debug("CSV is not valid %s; trying next encoding", encoding)
    # latin-1 maps every byte
    return data.decode("latin-1")


def _clean_cell(cell: str) -> str:
    return cell.replace("\ufeff", "").replace("\x00", "").strip()


def _read_rows(text: str) -> list[list[str]]:
    with StringIO(text.replace("\x00", "")) as f:
        return [[_clean_cell(c) for c in row] for row in csv.reader(f)]


def _is_blank(row: list[str]) -> bool:
    return not any(row)


def _detect_column_date_formats(data_rows: list[list[str]]) -> list[DetectedDateFormat]:
    """Suggest a date format per column from its first non-empty cells.

    A column is reported when its best candidate parses at least half of the
    sampled cells.
    """

    width = max((len(r) for r in data_rows), default=0)
    detected: list[DetectedDateFormat] = []
    for col in range(width):
        samples: list[str] = []
        for row in data_rows:
            if col < len(row) and row[col]:
                samples.append(row[col])
                if len(samples) >= DATE_SAMPLE_SIZE:
                    break
        if not samples:
            continue
        counts = count_format_matches(samples)
        if not counts:
            continue
        best_name = max(counts, key=lambda name: counts[name])
        if counts[best_name] * 2 < len(samples):
            continue
        fmt = get_date_format(best_name)
        if fmt is None:  # pragma: no cover - counts only holds table names
            continue
        example = next((s for s in samples if fmt.match(" ".join(s.split()))), samples[0])
        detected.append(
            DetectedDateFormat(column=col + 1, format=fmt.name, label=fmt.label, example=example)
        )
    return detected


def parse_for_preview(data: bytes | str, max_rows: int = 20) -> CsvPreview:
    """Return headers, up to ``max_rows`` data rows and date-format hints.

    The first non-empty row is the header; blank header cells become
    ``"Column N"``. ``total_rows`` counts non-empty data rows.
    """

    rows = [r for r in _read_rows(decode_csv_bytes(data)) if not _is_blank(r)]
    if not rows:
        raise EmptyFileError("The CSV file appears to be empty or invalid.")

    header_row, data_rows = rows[0], rows[1:]
    headers = [cell or f"Column {i}" for i, cell in enumerate(header_row, start=1)]
    preview = CsvPreview(
        headers=headers,
        rows=data_rows[: max(0, max_rows)],
        total_rows=len(data_rows),
        detected_date_formats=_detect_column_date_formats(data_rows),
    )
    logger.debug(
        "preview: %d columns, %d data rows, %d date column(s)",
        len(headers),
        preview.total_rows,
        len(preview.detected_date_formats),
    )
    return preview


def _cell(row: list[str], column: int) -> str | None:
    idx = column - 1
    if 0 <= idx < len(row) and row[idx] != "":
        return row[idx]
    return None


def parse_with_schema(data: bytes | str, schema: ColumnSchema) -> list[MappedRow]:
    """Map every data row (from ``transaction_data_start``) onto schema fields.

    Fully empty rows are skipped. A mapped column that is empty (or missing
    from a short row) yields ``None`` for that field.
    """

    rows = _read_rows(decode_csv_bytes(data))
    if all(_is_blank(r) for r in rows):
        raise EmptyFileError("The CSV file appears to be empty or invalid.")

    mapping = schema.get_column_mapping()
    mapped_fields = frozenset(mapping)
    out: list[MappedRow] = []
    for row_number, row in enumerate(rows, start=1):
        if row_number < schema.transaction_data_start or _is_blank(row):
            continue
        values = {name: _cell(row, column) for name, column in mapping.items()}
        out.append(
            MappedRow(row_number=row_number, raw=tuple(row), mapped_fields=mapped_fields, **values)
        )
    logger.debug("mapped %d row(s) starting at row %d", len(out), schema.transaction_data_start)
    return out


__all__ = ["DATE_SAMPLE_SIZE", "decode_csv_bytes", "parse_for_preview", "parse_with_schema"]
