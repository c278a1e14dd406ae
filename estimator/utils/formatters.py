"""
Formatting helpers for proposals and exports.
Currency, quantities, percentages and dates in US style.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

Number = Union[int, float, Decimal, str, None]


def _to_decimal(value: Number) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not num.is_finite():
        return None
    return num


def money(value: Number) -> str:
    """
    Format an amount with a dollar sign and exactly 2 decimals.

    Examples:
        money(1500) -> "$1,500.00"
        money(93.324) -> "$93.32"
        money(-12.5) -> "-$12.50"
        money(None) -> "-"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"

    num = num.quantize(Decimal('0.01'))
    sign = "-" if num < 0 else ""
    return f"{sign}${abs(num):,.2f}"


def num(value: Number, decimals: Optional[int] = None) -> str:
    """
    Format a quantity with thousands separators, dropping trailing zeros.

    Examples:
        num(2) -> "2"
        num(1500.5) -> "1,500.5"
        num(0.25) -> "0.25"
        num(1.23456, decimals=2) -> "1.23"
    """
    value_dec = _to_decimal(value)
    if value_dec is None:
        return "-"
    if value_dec == 0:
        return "0"

    if decimals is not None:
        value_dec = value_dec.quantize(Decimal(10) ** -decimals)

    text = f"{value_dec:,f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def pct(value: Number) -> str:
    """
    Format a percentage field.

    Examples:
        pct(10) -> "10%"
        pct(7.5) -> "7.5%"
    """
    formatted = num(value)
    if formatted == "-":
        return formatted
    return f"{formatted}%"


def date_us(value: Union[date, datetime, None]) -> str:
    """
    Format a date as MM/DD/YYYY.

    Examples:
        date_us(date(2026, 1, 12)) -> "01/12/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%m/%d/%Y")
