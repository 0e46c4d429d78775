"""Shared validation and formatting helpers used by the flow controller."""

import re
from datetime import date

MIN_PHONE_LENGTH = 7

PHONE_PATTERN = re.compile(r"^[\d\s()+-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_phone(value: str) -> bool:
    """Permissive phone check: digits and common punctuation, at least 7 characters.

    Examples:
        >>> is_valid_phone("0412 345 678")
        True
        >>> is_valid_phone("+44 (20) 7946-0958")
        True
        >>> is_valid_phone("call me")
        False
    """
    value = value.strip()
    return bool(PHONE_PATTERN.match(value)) and len(value) >= MIN_PHONE_LENGTH


def is_valid_email(value: str) -> bool:
    """Shape check only: something@something.something with no whitespace."""
    return bool(EMAIL_PATTERN.match(value.strip()))


def format_long_date(value: date) -> str:
    """Format a date the way the widget reads it back to the visitor.

    Examples:
        >>> format_long_date(date(2026, 10, 19))
        'October 19th, 2026'
        >>> format_long_date(date(2026, 3, 22))
        'March 22nd, 2026'
    """
    day = value.day
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{value.strftime('%B')} {day}{suffix}, {value.year}"
