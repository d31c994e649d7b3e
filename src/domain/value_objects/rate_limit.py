"""Rate limiting value objects."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one fixed-window counter check.

    Attributes:
        allowed: Whether this request fits in the window.
        remaining: Requests left in the window (never negative).
        reset_at: When the current window ends (naive UTC).
        limit: The limit the decision was made against.
    """

    allowed: bool
    remaining: int
    reset_at: datetime
    limit: int = 0
