"""Utility functions for vocabox application."""

from datetime import date, datetime


def parse_date(value) -> date | None:
    """Parse a date, datetime or ISO string into a calendar date.

    Returns None for empty or unparseable values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date(value) -> str:
    """Format a date as YYYY-MM-DD ('' for None)."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else ''
