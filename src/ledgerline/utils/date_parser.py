"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


# Spreadsheet serials below 61 predate the fictitious 1900-02-29.
_SERIAL_EPOCH = date(1899, 12, 30)
_EARLY_SERIAL_EPOCH = date(1899, 12, 31)
_MAX_SERIAL = 99999
_MIN_UNIX_SECONDS = 100_000_000
_MIN_UNIX_MILLIS = 100_000_000_000

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_DATE_SHAPES = (
    _ISO_RE,
    re.compile(r"^\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}$"),
    re.compile(r"^\d{4}/\d{1,2}/\d{1,2}$"),
    re.compile(r"^\d{1,2}[ \-][A-Za-z]{3,9}\.?[ \-,]+\d{2,4}$"),
    re.compile(r"^[A-Za-z]{3,9}\.? \d{1,2},? \d{4}$"),
)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Handle "last/this/next" + time period
    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            days_since_monday = today.weekday()
            return today - timedelta(days=days_since_monday + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def serial_to_date(serial: float) -> Optional[date]:
    """Convert a spreadsheet serial day number to a date.

    Serial 60 is the non-existent 1900-02-29 and maps to 1900-02-28.
    """
    whole = int(serial)
    if whole < 1 or whole > _MAX_SERIAL:
        return None
    if whole == 60:
        return date(1900, 2, 28)
    if whole < 60:
        return _EARLY_SERIAL_EPOCH + timedelta(days=whole)
    return _SERIAL_EPOCH + timedelta(days=whole)


def timestamp_to_date(value: float) -> Optional[date]:
    """Convert a UNIX timestamp in seconds or milliseconds to a UTC date."""
    if value >= _MIN_UNIX_MILLIS:
        value = value / 1000
    elif value < _MIN_UNIX_SECONDS:
        return None
    try:
        return datetime.fromtimestamp(value, UTC).date()
    except (OverflowError, OSError, ValueError):
        return None


def _number_to_date(value: float) -> Optional[date]:
    if value <= _MAX_SERIAL:
        return serial_to_date(value)
    return timestamp_to_date(value)


def parse_cell_date(value: Any) -> Optional[date]:
    """Interpret a raw cell value as a date.

    Tries, in order: date objects, spreadsheet serial numbers and UNIX
    timestamps (numeric values or numeric strings), ISO-like strings and
    finally locale date strings. Returns None when nothing fits.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float, Decimal)):
        return _number_to_date(float(value))

    text = str(value).strip()
    if not text:
        return None

    if _NUMERIC_RE.match(text):
        try:
            return _number_to_date(float(Decimal(text)))
        except InvalidOperation:
            return None

    iso = _ISO_RE.match(text)
    if iso:
        try:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        except ValueError:
            return None

    try:
        return date_parser.parse(text).date()
    except (ValueError, TypeError, OverflowError):
        return None


def parse_date_or_today(
    value: Any, warnings: list[str], context: str, today: Optional[date] = None
) -> date:
    """Parse a cell date, falling back to today and recording a warning."""
    parsed = parse_cell_date(value)
    if parsed is not None:
        return parsed
    fallback = today or date.today()
    warnings.append(
        f"{context}: could not parse date {value!r}; using {fallback.isoformat()}"
    )
    return fallback


def looks_like_date(value: Any) -> bool:
    """Return True if a cell value is date-shaped.

    Bare numbers are never date-shaped here; amounts would otherwise be
    mistaken for serial dates when scanning a row.
    """
    if isinstance(value, (datetime, date)):
        return True
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text:
        return False
    return any(shape.match(text) for shape in _DATE_SHAPES) and parse_cell_date(text) is not None
