from __future__ import annotations

import pytest

from finance_tracker.dates import (
    DATE_FORMATS,
    detect_date_format,
    get_date_format,
    is_supported_date_format,
    is_valid_date,
    parse_date,
    supported_formats,
)
from finance_tracker.errors import DateParseError


@pytest.mark.parametrize(
    "raw",
    [
        "15/01/2023",
        "2023-01-15",
        "15 Jan 2023",
        "15th January 2023",
        "15-01-2023",
        "15.01.2023",
        "2023/01/15",
        "01/15/2023",
        "January 15, 2023",
        "Jan 15, 2023",
        "15 January, 2023",
        "15th Jan, 2023",
        "January 15th, 2023",
        "Jan 15th, 2023",
        "15/01/23",
        "2023-01-15 10:30:00",
        "15/01/2023 23:59:59",
    ],
)
def test_parse_date_canonicalizes_supported_layouts(raw: str):
    assert parse_date(raw) == "2023-01-15"


def test_parse_date_prefers_day_first_when_ambiguous():
    assert parse_date("03/04/2024") == "2024-04-03"


def test_parse_date_single_digit_day_and_month():
    assert parse_date("5/1/2024") == "2024-01-05"
    assert parse_date("5.1.2024") == "2024-01-05"


def test_parse_date_collapses_whitespace_and_ignores_case():
    assert parse_date("  16   JULY   2025 ") == "2025-07-16"
    assert parse_date("1ST sept 2024") == "2024-09-01"


def test_parse_date_two_digit_year_pivot():
    assert parse_date("15/01/69") == "2069-01-15"
    assert parse_date("15/01/70") == "1970-01-15"


@pytest.mark.parametrize("raw", ["", "   ", None, "not-a-date", "31/02/2024", "2024-13-01"])
def test_parse_date_rejects_invalid_input(raw):
    with pytest.raises(DateParseError):
        parse_date(raw)


def test_parse_date_rejects_bad_time_component():
    with pytest.raises(DateParseError):
        parse_date("2024-01-15 25:00:00")


def test_expected_format_is_tried_first():
    # Day-first would win without the hint.
    assert parse_date("03/04/2024", "m/d/Y") == "2024-03-04"


def test_expected_format_accepts_strptime_pattern():
    assert parse_date("20240115", "%Y%m%d") == "2024-01-15"


def test_expected_format_mismatch_falls_back_to_candidates():
    assert parse_date("2024-01-15", "d/m/Y") == "2024-01-15"


def test_month_first_ordinals():
    assert parse_date("July 1st, 2025") == "2025-07-01"
    assert parse_date("Jul 2nd, 2025") == "2025-07-02"
    assert parse_date("august 23RD, 2024") == "2024-08-23"


def test_malformed_expected_format_falls_back_to_candidates():
    # Repeated tokens cannot compile into a pattern.
    assert parse_date("15/01/2023", "dd/mm/yyyy") == "2023-01-15"
    assert not is_valid_date("15/01/2023", "dd/mm/yyyy")
    with pytest.raises(DateParseError):
        parse_date("not-a-date", "dd/mm/yyyy")


@pytest.mark.parametrize(
    "name, supported",
    [
        ("d/m/Y", True),
        ("F jS, Y", True),
        ("Y.m.d", True),
        ("%Y%m%d", True),
        ("dd/mm/yyyy", False),
        ("m/Y", False),
        ("nonsense", False),
    ],
)
def test_is_supported_date_format(name, supported):
    assert is_supported_date_format(name) is supported


def test_is_valid_date_with_expected_format_does_not_fall_back():
    assert is_valid_date("2024-01-15")
    assert not is_valid_date("2024-01-15", "d/m/Y")
    assert is_valid_date("15/01/2024", "d/m/Y")
    assert not is_valid_date("")


def test_detect_date_format_textual_month():
    samples = ["16 July 2025", "17 July 2025", "18 July 2025"]
    assert detect_date_format(samples) == "j F Y"


def test_detect_date_format_majority_wins():
    assert detect_date_format(["2023-01-15", "2023-01-16", "15/01/2023"]) == "Y-m-d"


def test_detect_date_format_month_first_when_days_exceed_twelve():
    assert detect_date_format(["01/15/2024", "02/20/2024", "03/04/2024"]) == "m/d/Y"


def test_detect_date_format_none_when_nothing_parses():
    assert detect_date_format(["foo", "", None, "12.50"]) is None
    assert detect_date_format([]) is None


def test_format_table_is_consistent():
    names = supported_formats()
    assert names[:3] == ("Y-m-d", "d/m/Y", "m/d/Y")
    assert len(set(names)) == len(names)
    for fmt in DATE_FORMATS:
        # Every entry's own example must parse with that entry.
        assert fmt.match(fmt.example) is not None, fmt.name
    assert get_date_format("d/m/Y") is DATE_FORMATS[1]
    assert get_date_format("nope") is None
