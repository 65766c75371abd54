"""
Expiry policy for retiring aging algorithms.

A limit is an ISO calendar date ("2030-12-31") interpreted at the start of
that day in UTC. The current instant is always supplied by the caller.
"""

from datetime import date, datetime, time, timezone
from typing import Callable, Optional, Union

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def limit_instant(limit: Union[str, date]) -> datetime:
    """Start of the limit day in UTC."""
    if isinstance(limit, datetime):
        limit = limit.date()
    elif isinstance(limit, str):
        limit = date.fromisoformat(limit.strip())
    return datetime.combine(limit, time.min, tzinfo=timezone.utc)


def is_expired(limit: Optional[Union[str, date]], now: datetime) -> bool:
    """
    Check whether `now` is at or past the limit date.

    Args:
        limit: ISO date string, date, or None for "never expires"
        now: Instant to compare against; naive values are taken as UTC

    Returns:
        True if the boundary instant has been reached
    """
    if not limit:
        return False

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return now >= limit_instant(limit)
