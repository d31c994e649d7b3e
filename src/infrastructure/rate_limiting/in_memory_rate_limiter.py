"""Process-local fixed-window limiter.

Selected with ``RATE_LIMIT_BACKEND=memory`` for tests and single-process
development servers. Counts are not shared between workers.
"""

import asyncio
from typing import Dict, Tuple

from src.domain.interfaces.rate_limiter import IRateLimiter
from src.domain.value_objects.rate_limit import RateLimitDecision
from src.utils.clock import Clock, epoch_ms, from_epoch_ms, utcnow


class InMemoryRateLimiter(IRateLimiter):
    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._windows: Dict[str, Tuple[int, int]] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        now_ms = epoch_ms(self._clock())
        async with self._lock:
            count, window_start = self._windows.get(key, (0, now_ms))
            if count == 0 or now_ms - window_start >= window_ms:
                count, window_start = 0, now_ms
            if count <= limit:
                count += 1
            self._windows[key] = (count, window_start)

        return RateLimitDecision(
            allowed=count <= limit,
            remaining=max(limit - count, 0),
            reset_at=from_epoch_ms(window_start + window_ms),
            limit=limit,
        )

    def reset(self) -> None:
        self._windows.clear()
