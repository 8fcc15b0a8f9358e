"""
Formatting helpers for API payloads and user-facing messages.
Numbers follow the Indonesian convention: '.' groups thousands, ',' separates decimals.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

from kasir.utils.date_ranges import MONTH_NAMES_LONG


def num_id(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number Indonesian style.

    Examples:
        num_id(1500) -> "1.500"
        num_id(1500.5) -> "1.500,5"
        num_id(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    num_str = f"{num:f}"
    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        if decimals is None:
            decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    sign = ''
    if integer_part.startswith('-'):
        sign, integer_part = '-', integer_part[1:]

    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i + 3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]

    if decimal_part:
        return f"{sign}{integer_formatted},{decimal_part}"
    return f"{sign}{integer_formatted}"


def rupiah(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount as Rupiah without fraction digits.

    Examples:
        rupiah(1500000) -> "Rp 1.500.000"
        rupiah(-2500) -> "-Rp 2.500"
    """
    try:
        num = Decimal(str(value if value not in (None, "") else 0))
    except (InvalidOperation, ValueError, TypeError):
        num = Decimal('0')
    num = num.quantize(Decimal('1'))
    formatted = num_id(abs(num))
    return f"-Rp {formatted}" if num < 0 else f"Rp {formatted}"


def date_id(value: Union[date, datetime, None], with_time: bool = False) -> str:
    """Format a date as '19 Oktober 2026' (optionally with 'HH:MM')."""
    if value is None:
        return "-"
    text = f"{value.day} {MONTH_NAMES_LONG[value.month - 1]} {value.year}"
    if with_time and isinstance(value, datetime):
        text += value.strftime(" %H:%M")
    return text


def iso(value: Union[date, datetime, None]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def money(value) -> float:
    """Serialize a Numeric column value for JSON."""
    if value is None:
        return 0.0
    return float(value)
