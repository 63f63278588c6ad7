"""Expiration policy for shared content.

Everything here is pure: callers pass the item and the current time, nothing
is read from or written to storage. The same checks back both the periodic
reaper and lazy expiry on read, so an item past its deadline ends up in the
same state whichever path sees it first.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current UTC time at whole-second resolution."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _deadline_epoch(item) -> Optional[int]:
    first_viewed_at = as_utc(item.first_viewed_at)
    if not item.auto_delete or first_viewed_at is None:
        return None
    return int(first_viewed_at.timestamp()) + int(item.delete_after_minutes) * 60


def expires_at(item) -> Optional[datetime]:
    """Deadline of a running auto-delete timer, or None if no timer is running.

    Deadlines past the calendar's range come back as `datetime.max` (UTC).
    """
    deadline = _deadline_epoch(item)
    if deadline is None:
        return None
    try:
        return datetime.fromtimestamp(deadline, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.max.replace(tzinfo=timezone.utc)


def is_expired(item, now: datetime) -> bool:
    """True once `now` is strictly past the view-anchored deadline."""
    deadline = _deadline_epoch(item)
    if deadline is None:
        return False
    return int(as_utc(now).timestamp()) > deadline


def remaining_seconds(item, now: datetime) -> Optional[int]:
    deadline = _deadline_epoch(item)
    if deadline is None:
        return None
    return max(0, deadline - int(as_utc(now).timestamp()))


def should_burn(item) -> bool:
    return bool(item.burn_after_read)
