"""
Formatting utilities for expense display.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from .enums import DocType, ExpenseCategory


def parse_iso_datetime(value: Optional[Union[str, datetime, date]]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as sent by the backend.

    Accepts a trailing "Z", a bare date, or datetime/date objects.
    Returns None for empty or unparsable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_input_date(value: Optional[Union[str, datetime, date]]) -> str:
    """Format a timestamp as the YYYY-MM-DD value of a date input."""
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def to_iso_timestamp(input_date: str) -> str:
    """
    Convert a YYYY-MM-DD date input into the ISO timestamp the backend expects.

    "2025-01-15" -> "2025-01-15T00:00:00.000Z"
    """
    parsed = datetime.strptime(input_date.strip(), "%Y-%m-%d")
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def format_currency(
    value: Optional[Union[int, float, Decimal, str]],
    symbol: str = "₪",
) -> str:
    """
    Format a number as Israeli shekels.

    Returns:
        Formatted string like "1,234.50 ₪"
    """
    if value is None or value == "":
        value = 0
    try:
        return f"{float(value):,.2f} {symbol}"
    except (ValueError, TypeError):
        return str(value)


def format_date(value: Optional[Union[str, datetime, date]]) -> str:
    """Format a date as D.M.YYYY (he-IL short date)."""
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return "" if value is None else str(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return f"{parsed.day}.{parsed.month}.{parsed.year}"


def format_file_size(size_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals ("1.50 MB")."""
    return f"{size_bytes / 1024 / 1024:.2f} MB"


def category_label(category: Optional[str]) -> str:
    """Hebrew label for a category value, falling back to the raw value."""
    if not category:
        return "-"
    try:
        return ExpenseCategory(category).label
    except ValueError:
        return category


def doc_type_label(doc_type: Optional[str]) -> str:
    """Hebrew label for a document type value."""
    try:
        return DocType(doc_type or DocType.UNKNOWN.value).label
    except ValueError:
        return doc_type or DocType.UNKNOWN.label


def or_dash(value: Optional[str]) -> str:
    return value if value else "-"
