"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC.

    Args:
        value: Datetime to normalize

    Returns:
        Aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def epoch_millis(value: datetime | None = None) -> int:
    """
    Milliseconds since the Unix epoch.

    Args:
        value: Datetime to convert (defaults to now)

    Returns:
        Integer milliseconds
    """
    return int((value or utc_now()).timestamp() * 1000)
