"""Date parsing and format detection for bank-statement cells.

Bank exports disagree on date layout, so parsing works from an ordered table
of candidate formats (:data:`DATE_FORMATS`). Each entry pairs a format name
(PHP-style tokens such as ``d/m/Y`` or ``jS F, Y``, which is also what schemas
store) with a compiled regular expression whose named groups carry the day,
month and year. Adding a format means adding an entry to the table.

Rules
-----
- Input is trimmed and internal whitespace is collapsed before matching.
- Month names and ordinal suffixes match case-insensitively; ordinals work
  day-first (``11th July 2025``) and month-first (``July 1st, 2025``).
- A regex match only counts when the captured values form a real calendar
  date (``31/02/2024`` fails), so ambiguous numeric dates resolve day-first:
  ``d/m/Y`` precedes ``m/d/Y`` and a day value above 12 makes the day-first
  candidate fail.
- Time components are accepted by the ``H:i:s`` variants and discarded.
- Output is always ``YYYY-MM-DD``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache

from .errors import DateParseError

_MONTHS_FULL = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}
_MONTHS_ABBR = {name[:3]: num for name, num in _MONTHS_FULL.items()}
_MONTHS_ABBR["sept"] = 9

# Format token -> regex fragment. Characters outside this table are literals.
_TOKENS: dict[str, str] = {
    "d": r"(?P<day>\d{2})",
    "j": r"(?P<day>\d{1,2})",
    "m": r"(?P<month>\d{2})",
    "n": r"(?P<month>\d{1,2})",
    "Y": r"(?P<year>\d{4})",
    "y": r"(?P<year2>\d{2})",
    "F": r"(?P<month_full>[a-z]+)",
    "M": r"(?P<month_abbr>[a-z]{3,4})\.?",
    "S": r"(?:st|nd|rd|th)",
    "H": r"(?P<hour>\d{2})",
    "i": r"(?P<minute>\d{2})",
    "s": r"(?P<second>\d{2})",
}


def _compile_format(name: str) -> re.Pattern[str]:
    parts: list[str] = []
    for ch in name:
        if ch in _TOKENS:
            parts.append(_TOKENS[ch])
        elif ch == " ":
            parts.append(r"\s")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class DateFormat:
    """One candidate date layout."""

    name: str
    label: str
    example: str
    pattern: re.Pattern[str]

    @classmethod
    def build(cls, name: str, label: str, example: str) -> DateFormat:
        return cls(name=name, label=label, example=example, pattern=_compile_format(name))

    def match(self, text: str) -> date | None:
        m = self.pattern.fullmatch(text)
        if m is None:
            return None
        return _date_from_groups(m.groupdict())


def _date_from_groups(groups: dict[str, str | None]) -> date | None:
    day = groups.get("day")
    if day is None:
        return None

    numeric_month = groups.get("month")
    month_full = groups.get("month_full")
    month_abbr = groups.get("month_abbr")
    month: int | None = None
    if numeric_month is not None:
        month = int(numeric_month)
    elif month_full is not None:
        month = _MONTHS_FULL.get(month_full.lower())
    elif month_abbr is not None:
        month = _MONTHS_ABBR.get(month_abbr.lower())
    if month is None:
        return None

    year4 = groups.get("year")
    year2 = groups.get("year2")
    if year4 is not None:
        year = int(year4)
    elif year2 is not None:
        yy = int(year2)
        # 00-69 -> 2000s, 70-99 -> 1900s
        year = 2000 + yy if yy < 70 else 1900 + yy
    else:
        return None

    if groups.get("hour") is not None:
        hour, minute, second = (int(groups.get(k) or 0) for k in ("hour", "minute", "second"))
        if hour > 23 or minute > 59 or second > 59:
            return None

    try:
        return date(year, month, int(day))
    except ValueError:
        return None


DATE_FORMATS: tuple[DateFormat, ...] = (
    DateFormat.build("Y-m-d", "YYYY-MM-DD", "2024-01-15"),
    DateFormat.build("d/m/Y", "DD/MM/YYYY", "15/01/2024"),
    DateFormat.build("m/d/Y", "MM/DD/YYYY", "01/15/2024"),
    DateFormat.build("d-m-Y", "DD-MM-YYYY", "15-01-2024"),
    DateFormat.build("m-d-Y", "MM-DD-YYYY", "01-15-2024"),
    DateFormat.build("Y/m/d", "YYYY/MM/DD", "2024/01/15"),
    DateFormat.build("d.m.Y", "DD.MM.YYYY", "15.01.2024"),
    DateFormat.build("j/n/Y", "D/M/YYYY", "5/1/2024"),
    DateFormat.build("n/j/Y", "M/D/YYYY", "1/5/2024"),
    DateFormat.build("j-n-Y", "D-M-YYYY", "5-1-2024"),
    DateFormat.build("j.n.Y", "D.M.YYYY", "5.1.2024"),
    DateFormat.build("d/m/y", "DD/MM/YY", "15/01/24"),
    DateFormat.build("m/d/y", "MM/DD/YY", "01/15/24"),
    DateFormat.build("d-m-y", "DD-MM-YY", "15-01-24"),
    DateFormat.build("m-d-y", "MM-DD-YY", "01-15-24"),
    DateFormat.build("Y-m-d H:i:s", "YYYY-MM-DD HH:MM:SS", "2024-01-15 10:30:00"),
    DateFormat.build("d/m/Y H:i:s", "DD/MM/YYYY HH:MM:SS", "15/01/2024 10:30:00"),
    DateFormat.build("m/d/Y H:i:s", "MM/DD/YYYY HH:MM:SS", "01/15/2024 10:30:00"),
    DateFormat.build("j F Y", "D Month YYYY", "16 July 2025"),
    DateFormat.build("j M Y", "D Mon YYYY", "12 Jul 2024"),
    DateFormat.build("F j, Y", "Month D, YYYY", "July 16, 2025"),
    DateFormat.build("M j, Y", "Mon D, YYYY", "Jul 12, 2024"),
    DateFormat.build("j F, Y", "D Month, YYYY", "16 July, 2025"),
    DateFormat.build("j M, Y", "D Mon, YYYY", "12 Jul, 2024"),
    DateFormat.build("jS F Y", "Dth Month YYYY", "11th July 2025"),
    DateFormat.build("jS M Y", "Dth Mon YYYY", "11th Jul 2025"),
    DateFormat.build("jS F, Y", "Dth Month, YYYY", "11th July, 2025"),
    DateFormat.build("jS M, Y", "Dth Mon, YYYY", "11th Jul, 2025"),
    DateFormat.build("F jS, Y", "Month Dth, YYYY", "July 1st, 2025"),
    DateFormat.build("M jS, Y", "Mon Dth, YYYY", "Jul 2nd, 2025"),
)

_BY_NAME: dict[str, DateFormat] = {f.name: f for f in DATE_FORMATS}


def _normalize(raw: str | None) -> str:
    if raw is None:
        return ""
    return " ".join(raw.split())


@lru_cache(maxsize=64)
def _custom_format(name: str) -> DateFormat:
    return DateFormat.build(name, name, "")


def _match_expected(text: str, expected_format: str) -> date | None:
    """Try ``text`` against one caller-supplied format.

    ``expected_format`` is a candidate name (``d/m/Y``), any other token
    string using the same letters, or a ``strptime`` pattern (contains ``%``).
    """

    if "%" in expected_format:
        try:
            return datetime.strptime(text, expected_format).date()
        except ValueError:
            return None
    fmt = _BY_NAME.get(expected_format)
    if fmt is None:
        try:
            fmt = _custom_format(expected_format)
        except re.error:
            return None
    return fmt.match(text)


def is_supported_date_format(name: str) -> bool:
    """Return whether ``name`` can be used as an expected format.

    Token strings must compile and capture a day, a month and a year;
    ``strptime`` patterns (containing ``%``) are accepted as given.
    """

    if name in _BY_NAME or "%" in name:
        return True
    try:
        groups = set(_custom_format(name).pattern.groupindex)
    except re.error:
        return False
    has_month = bool(groups & {"month", "month_full", "month_abbr"})
    return "day" in groups and has_month and bool(groups & {"year", "year2"})


def get_date_format(name: str) -> DateFormat | None:
    return _BY_NAME.get(name)


def supported_formats() -> tuple[str, ...]:
    return tuple(f.name for f in DATE_FORMATS)


def parse_date(raw: str | None, expected_format: str | None = None) -> str:
    """Parse ``raw`` into an ISO ``YYYY-MM-DD`` string.

    When ``expected_format`` is given it is tried first; if it does not match,
    the candidate table is tried in order. Raises :class:`DateParseError`
    when the input is empty or no candidate matches.
    """

    text = _normalize(raw)
    if not text:
        raise DateParseError(raw, "date is empty")

    if expected_format:
        parsed = _match_expected(text, expected_format)
        if parsed is not None:
            return parsed.isoformat()

    for fmt in DATE_FORMATS:
        parsed = fmt.match(text)
        if parsed is not None:
            return parsed.isoformat()

    raise DateParseError(raw, f"unable to parse date: {text!r}")


def is_valid_date(raw: str | None, expected_format: str | None = None) -> bool:
    """Return whether ``raw`` parses.

    With ``expected_format`` only that format is checked (no fallback).
    """

    text = _normalize(raw)
    if not text:
        return False
    if expected_format:
        return _match_expected(text, expected_format) is not None
    return any(fmt.match(text) is not None for fmt in DATE_FORMATS)


def count_format_matches(samples: Iterable[str | None]) -> dict[str, int]:
    """Count, per candidate format, how many samples it parses.

    The result keeps candidate order and omits formats with zero matches.
    """

    texts = [t for t in (_normalize(s) for s in samples) if t]
    counts: dict[str, int] = {}
    for fmt in DATE_FORMATS:
        n = sum(1 for t in texts if fmt.match(t) is not None)
        if n:
            counts[fmt.name] = n
    return counts


def detect_date_format(samples: Iterable[str | None]) -> str | None:
    """Return the candidate format that parses the most samples.

    Ties go to the earlier candidate. ``None`` when nothing parses.
    """

    counts = count_format_matches(samples)
    if not counts:
        return None
    best_name: str | None = None
    best = 0
    # dict preserves candidate order; strict ">" keeps the earliest on ties
    for name, n in counts.items():
        if n > best:
            best_name, best = name, n
    return best_name


__all__ = [
    "DATE_FORMATS",
    "DateFormat",
    "count_format_matches",
    "detect_date_format",
    "get_date_format",
    "is_supported_date_format",
    "is_valid_date",
    "parse_date",
    "supported_formats",
]
