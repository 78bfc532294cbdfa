"""Calendar-date helpers used by the streak engine and the aggregator"""
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return utcnow().date()


def to_date(value) -> date | None:
    """
    Truncate a date-like value to a calendar date.

    Accepts `date`, `datetime` (time of day dropped) and ISO-8601 strings
    ("2024-05-01" or a full timestamp). None passes through.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    raise TypeError(f'cannot convert {type(value).__name__} to a date')


def days_between(earlier, later) -> int:
    """Whole calendar days from `earlier` to `later` (negative if reversed)"""
    return (to_date(later) - to_date(earlier)).days
