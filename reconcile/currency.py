from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

ZERO = Decimal("0")

# parseFloat-style: read the leading number and ignore any trailing text ("50000 approx").
_LEADING_NUMBER = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)")


@dataclass(frozen=True)
class CurrencyLocale:
    """How money is written in the source sheets for one currency."""

    code: str
    symbols: Tuple[str, ...]
    group_separator: str = ","
    decimal_separator: str = "."


INR = CurrencyLocale(code="INR", symbols=("₹", "Rs.", "Rs", "INR"))
USD = CurrencyLocale(code="USD", symbols=("US$", "$", "USD"))
EUR = CurrencyLocale(code="EUR", symbols=("€", "EUR"), group_separator=".", decimal_separator=",")

LOCALES: Dict[str, CurrencyLocale] = {loc.code: loc for loc in (INR, USD, EUR)}


def get_locale(code: Optional[str], default: CurrencyLocale = INR) -> CurrencyLocale:
    if not code:
        return default
    return LOCALES.get(str(code).strip().upper(), default)


def _from_number(value: numbers.Real) -> Optional[Decimal]:
    if isinstance(value, numbers.Integral):
        return Decimal(int(value))
    as_float = float(value)
    if not math.isfinite(as_float):
        return None
    return Decimal(str(as_float))


def try_parse_currency(value: object, locale: CurrencyLocale = INR) -> Optional[Decimal]:
    """Parse a free-text money value.

    Returns ``None`` when the value is present but cannot be read as a number,
    and ``ZERO`` for blank values.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, numbers.Real):
        return _from_number(value)

    text = str(value).strip()
    if not text:
        return ZERO

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    for symbol in sorted(locale.symbols, key=len, reverse=True):
        text = text.replace(symbol, "")
    text = re.sub(r"\s+", "", text)
    if text.startswith("-"):
        negative = not negative
        text = text[1:]
    text = text.replace(locale.group_separator, "")
    if locale.decimal_separator != ".":
        text = text.replace(locale.decimal_separator, ".")

    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    try:
        amount = Decimal(match.group(1))
    except InvalidOperation:
        return None
    return -amount if negative else amount


def parse_currency(value: object, locale: CurrencyLocale = INR) -> Decimal:
    """Money value of ``value``; anything unreadable counts as 0."""
    parsed = try_parse_currency(value, locale)
    return ZERO if parsed is None else parsed
