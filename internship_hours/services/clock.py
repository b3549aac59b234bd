"""UTC clock with millisecond precision."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision from a datetime."""
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def utc_now() -> datetime:
    """Current UTC instant, truncated to milliseconds."""
    return truncate_to_millis(datetime.now(timezone.utc))
