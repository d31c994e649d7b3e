"""Port to the shared fixed-window request counter."""

from abc import ABC, abstractmethod

from src.domain.value_objects.rate_limit import RateLimitDecision


class IRateLimiter(ABC):
    @abstractmethod
    async def check(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        """Counts one request against ``key`` and reports whether it fits.

        Being over the limit is a normal result (``allowed=False``), not an
        error. The increment is atomic in the backing store.
        """
        raise NotImplementedError
