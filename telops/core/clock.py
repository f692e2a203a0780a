"""Time source shared by the lifecycle services."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC now; all persisted timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, rounded to the nearest minute."""
    return math.floor((end - start).total_seconds() / 60 + 0.5)


def to_naive_utc(value: datetime) -> datetime:
    """Drop tz info after converting aware datetimes to UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
