"""
Decimal helpers for monetary values.

Stored prices arrive as strings, numbers or blanks. Everything is converted to
Decimal on the way in and only quantized to cents on the way out.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

CENTS = Decimal('0.01')
ZERO = Decimal('0')

_NUMBER_CHARS = re.compile(r"[^0-9,.\-]")


def to_decimal(value) -> Optional[Decimal]:
    """
    Parse a stored price into a Decimal.

    Returns None for blanks and non-numeric input (an absent price is not
    zero). Floats go through ``str`` to avoid binary artifacts.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        return Decimal(str(value))

    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def parse_localized_number(value) -> Optional[Decimal]:
    """
    Parse numbers written with thousands separators.

    Handles "45,000", "1.234.567,89", "4.050,25" and "$ 3.987,10". The last
    separator is treated as decimal unless exactly three digits follow it.
    """
    if not isinstance(value, str):
        return to_decimal(value)

    cleaned = _NUMBER_CHARS.sub("", str(value))
    if not cleaned:
        return None

    last_sep = max(cleaned.rfind("."), cleaned.rfind(","))
    digits = re.sub(r"[^0-9\-]", "", cleaned)
    if not digits or digits == "-":
        return None

    if last_sep == -1:
        return to_decimal(digits)

    digits_after = len(cleaned) - last_sep - 1
    if digits_after in (0, 3):
        return to_decimal(digits)

    integer_part = digits[:-digits_after] or "0"
    return to_decimal(f"{integer_part}.{digits[-digits_after:]}")


def quantize(value: Decimal) -> Decimal:
    """Round to 2 decimals (presentation only)."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
