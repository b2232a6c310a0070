"""Money and quantity helpers.

Numbers entered by the user arrive as floats, ints or free text. They are
validated here before any mutation touches the document, and converted to
``Decimal`` for summation so that only the final display step rounds.

Examples:
    parse_non_negative("12.5")   → 12.5
    parse_non_negative(-3)       → None
    parse_price_text("$1,234.00") → 1234.0
    format_currency(Decimal("18850.4")) → "$18,850"
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional, Union


Number = Union[int, float, Decimal]

_PRICE_NOISE = re.compile(r"[^0-9.]")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a user-supplied value as a finite float.

    Args:
        value: int, float, Decimal or numeric string

    Returns:
        Finite float, or None when the value is not a number
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def parse_non_negative(value: Any) -> Optional[float]:
    """Parse a value that must be a finite number >= 0 (None when invalid)."""
    number = parse_number(value)
    if number is None or number < 0:
        return None
    return number


def coerce_non_negative(value: Any, default: float = 0.0) -> float:
    """Coerce a loaded value to a finite non-negative float, falling back to default."""
    number = parse_non_negative(value)
    return default if number is None else number


def parse_price_text(text: Optional[str]) -> Optional[float]:
    """
    Extract a price from a quoted price string.

    Everything except digits and dots is dropped, so "$1,234.00" → 1234.0
    and "USD 89.99 / ea" → 89.99.

    Args:
        text: Price string as returned by a price lookup

    Returns:
        Parsed price, or None when no number remains
    """
    if not text:
        return None

    cleaned = _PRICE_NOISE.sub("", text)
    # "1.234.5" style leftovers: keep the leading number only
    match = re.match(r"\d*\.?\d+", cleaned)
    if not match:
        return None
    return parse_non_negative(match.group(0))


def to_decimal(value: Number) -> Decimal:
    """Convert a stored number to Decimal without adding binary noise."""
    if isinstance(value, Decimal):
        return value
    try:
        # str() gives the shortest repr of a float, e.g. 0.1 → "0.1"
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def line_total(quantity: Number, unit_price: Number) -> Decimal:
    """Compute quantity × unit price in Decimal."""
    return to_decimal(quantity) * to_decimal(unit_price)


def format_currency(value: Number, symbol: str = "$") -> str:
    """
    Format an amount as whole US dollars.

    Args:
        value: Amount to format
        symbol: Currency symbol prefix

    Returns:
        e.g. "$1,234" or "-$56"
    """
    amount = to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.0f}"


def format_signed_currency(value: Number, symbol: str = "$") -> str:
    """Format a variance with an explicit + for amounts at or under budget."""
    formatted = format_currency(value, symbol)
    return formatted if formatted.startswith("-") else f"+{formatted}"
