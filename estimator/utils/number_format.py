"""Number parsing utilities for grid input and imported spreadsheets."""
import re
from decimal import Decimal, InvalidOperation

ZERO = Decimal('0')

# Largest magnitude accepted from input or storage; anything beyond reads as 0
MAX_AMOUNT = Decimal('1e15')

# "1,234.56" / "$1,234" - US grouping, optional currency sign
THOUSANDS_PATTERN = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")


def to_decimal(value) -> Decimal:
    """
    Read a stored or imported numeric value as Decimal.

    None, blanks, garbage, non-finite values and magnitudes above MAX_AMOUNT
    read as 0. Negative values are returned unchanged; clamping is the row
    model's job.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return _bounded(value)
    if isinstance(value, int):
        return _bounded(Decimal(value))
    if isinstance(value, float):
        # str() keeps the short repr, so 7.2 stays 7.2
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
        return _bounded(result)
    return _parse_text(str(value))


def parse_amount(raw) -> Decimal:
    """
    Coerce raw user input into a finite, non-negative Decimal.

    Never raises:
    - "abc" -> 0, "" -> 0, "nan" -> 0, "inf" -> 0, "1e400" -> 0
    - "-5" -> 0 (negative literals clamp to 0)
    - " $1,250.50 " -> 1250.50
    """
    value = to_decimal(raw)
    if value < 0:
        return ZERO
    return value


def _bounded(value: Decimal) -> Decimal:
    # copy_abs and comparison ignore the context, so huge exponents cannot trap
    if not value.is_finite() or value.copy_abs() > MAX_AMOUNT:
        return ZERO
    return value


def _parse_text(text: str) -> Decimal:
    cleaned = text.strip()
    if not cleaned:
        return ZERO

    negative = cleaned.startswith('-')
    if negative:
        cleaned = cleaned[1:].strip()
    if cleaned.startswith('$'):
        cleaned = cleaned[1:].strip()
    if THOUSANDS_PATTERN.match(cleaned):
        cleaned = cleaned.replace(',', '')

    try:
        result = _bounded(Decimal(cleaned))
    except (InvalidOperation, ValueError):
        return ZERO

    return -result if negative else result
