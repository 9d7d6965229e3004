from __future__ import annotations

from decimal import Decimal

import pytest

from finance_tracker.errors import AmountParseError
from finance_tracker.money import format_minor_units, parse_amount, to_minor_units


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1000.00", 100000),
        ("100", 10000),
        ("-100.00", -10000),
        ("+12.34", 1234),
        ("1,234.56", 123456),
        ("£1,234.56", 123456),
        ("$12.00", 1200),
        ("€0.99", 99),
        ("(45.00)", -4500),
        ("-($1,234.56)", -123456),
        ("$(1.50)", -150),
        ("45.00 DR", -4500),
        ("45.00 CR", 4500),
        ("45.00dr", -4500),
        ("  7.5 ", 750),
    ],
)
def test_to_minor_units_accepts_common_bank_shapes(raw: str, expected: int):
    assert to_minor_units(raw) == expected


def test_rounding_is_half_away_from_zero():
    assert to_minor_units("0.125") == 13
    assert to_minor_units("-0.125") == -13
    assert to_minor_units("0.124") == 12
    assert to_minor_units("10.005") == 1001


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", "DR", "1.2.3", "NaN", "Infinity"])
def test_invalid_amounts_raise(raw):
    with pytest.raises(AmountParseError):
        to_minor_units(raw)


def test_parse_amount_returns_signed_decimal():
    assert parse_amount("(1,000.10)") == Decimal("-1000.10")


def test_format_minor_units():
    assert format_minor_units(123456) == "1,234.56"
    assert format_minor_units(-50) == "-0.50"
    assert format_minor_units(None) == ""
