"""Time helpers.

All persisted timestamps are naive UTC so they compare the same way on
PostgreSQL ``timestamp without time zone`` columns and on SQLite.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def epoch_ms(moment: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC datetime."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
