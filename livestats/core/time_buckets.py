# ==============================================================================
# Clock and Time Bucketing
# ==============================================================================
"""
Pure time helpers used by the event store and the analytics views.

Buckets are one minute wide and aligned to the start of the minute. A window
of N minutes yields N + 1 buckets: N full minutes plus the current partial
minute, oldest first.
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

BUCKET_WIDTH = timedelta(minutes=1)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def local_day(moment: datetime) -> date:
    """Calendar day of ``moment`` in the process's local timezone."""
    return moment.astimezone().date()


def floor_to_minute(moment: datetime) -> datetime:
    """Truncate to the start of the minute."""
    return moment.replace(second=0, microsecond=0)


def bucket_starts(now: datetime, window_minutes: int) -> list[datetime]:
    """
    Start times of the buckets covering ``[now - window_minutes, now]``.

    Args:
        now: Reference time; its minute is the last (partial) bucket
        window_minutes: Window length in minutes, must not be negative

    Returns:
        ``window_minutes + 1`` bucket start times, oldest first
    """
    if window_minutes < 0:
        raise ValueError(f"window_minutes must not be negative, got {window_minutes}")
    current = floor_to_minute(now)
    return [current - BUCKET_WIDTH * offset for offset in range(window_minutes, -1, -1)]


def bucket_index(starts: list[datetime], moment: datetime) -> int | None:
    """
    Index of the bucket containing ``moment``, or None if outside the window.

    ``starts`` must be contiguous one-minute buckets as produced by
    ``bucket_starts``.
    """
    if not starts:
        return None
    offset = (moment - starts[0]) // BUCKET_WIDTH
    if 0 <= offset < len(starts):
        return offset
    return None
