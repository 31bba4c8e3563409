"""Shared parsing helpers for customer-typed input."""

import re
from datetime import date, datetime
from typing import Optional

DATE_INPUT_FORMAT = "%d/%m/%Y"
TAX_ID_DIGITS = 11

_TAX_ID_RE = re.compile(rf"[0-9]{{{TAX_ID_DIGITS}}}")
_TIME_RE = re.compile(r"([01]?[0-9]|2[0-3]):([0-5][0-9])")


def is_valid_tax_id(value: str) -> bool:
    """Return True for exactly 11 ASCII digits (surrounding whitespace ignored).

    Examples:
        >>> is_valid_tax_id("12345678901")
        True
        >>> is_valid_tax_id("123.456.789-01")
        False
    """
    return _TAX_ID_RE.fullmatch(value.strip()) is not None


def parse_date(value: str) -> Optional[date]:
    """Parse a strict DD/MM/YYYY date. Returns None when malformed."""
    value = value.strip()
    if not re.fullmatch(r"\d{2}/\d{2}/\d{4}", value):
        return None
    try:
        return datetime.strptime(value, DATE_INPUT_FORMAT).date()
    except ValueError:
        return None


def parse_time(value: str) -> Optional[str]:
    """Parse H:MM or HH:MM into a zero-padded HH:MM string.

    Examples:
        >>> parse_time("9:00")
        '09:00'
        >>> parse_time("25:00") is None
        True
    """
    match = _TIME_RE.fullmatch(value.strip())
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def format_date(day: date) -> str:
    """Format a date the way customers type it (DD/MM/YYYY)."""
    return day.strftime(DATE_INPUT_FORMAT)
