from datetime import date, datetime
from typing import Optional

from lib.errors import InvalidRangeError, RangeTooLargeError
from lib.types import DateRange

# Fallback formats tried after ISO-8601, in order
_FALLBACK_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%d/%m/%Y", "%m-%d-%Y", "%d-%m-%Y")


def parse_date(value: str) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` date, falling back to US then day-first forms.

    Returns ``None`` when no format matches.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def validate_range(start: date, end: date, max_span_days: int) -> DateRange:
    """Return ``DateRange(start, end)`` or raise if it is inverted or too long."""
    if start > end:
        raise InvalidRangeError(start, end)
    span = (end - start).days
    if span > max_span_days:
        raise RangeTooLargeError(start, end, span, max_span_days)
    return DateRange(start, end)


def format_period(start: date, end: date) -> str:
    """Human-readable period, e.g. ``Dec 18 - Jan 12, 2026``."""
    return f"{start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day}, {end.year}"
