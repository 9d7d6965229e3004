"""Monetary cell parsing.

Bank exports write amounts in many shapes: ``1,234.56``, ``£12.00``,
``-($1,234.56)``, ``45.00 DR``. :func:`parse_amount` turns such text into a
signed :class:`~decimal.Decimal`; :func:`to_minor_units` converts to integer
pence with ``ROUND_HALF_UP`` (half away from zero) on the third decimal.
The rounding mode feeds the dedup hash, so it must not change.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import AmountParseError

_CURRENCY_SYMBOLS = ("£", "$", "€")
_HUNDRED = Decimal(100)


def is_blank(raw: str | None) -> bool:
    return raw is None or not raw.strip()


def parse_amount(raw: str | None) -> Decimal:
    if raw is None:
        raise AmountParseError(raw, "amount is required")
    s = raw.strip()
    if not s:
        raise AmountParseError(raw, "amount is empty")

    negative = False
    # Trailing credit/debit markers: "45.00 DR" is money out.
    upper = s.upper()
    if upper.endswith("DR") or upper.endswith("CR"):
        negative = upper.endswith("DR")
        s = s[:-2].rstrip()

    # Strip leading sign, currency symbol and surrounding parentheses in any
    # order until stable, so "-($1,234.56)" and "$(1,234.56)" both work.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        for symbol in _CURRENCY_SYMBOLS:
            if s.startswith(symbol):
                s = s[len(symbol) :].lstrip()
                changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    # Thousands separators
    s = s.replace(",", "").strip()

    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise AmountParseError(raw) from exc
    if not d.is_finite():
        raise AmountParseError(raw)
    return -abs(d) if negative else d


def to_minor_units(raw: str | None) -> int:
    """Parse ``raw`` and return signed integer minor units (pence)."""

    d = parse_amount(raw)
    return int((d * _HUNDRED).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_minor_units(value: int | None) -> str:
    if value is None:
        return ""
    d = Decimal(value) / _HUNDRED
    return f"{d:,.2f}"


__all__ = ["format_minor_units", "is_blank", "parse_amount", "to_minor_units"]
