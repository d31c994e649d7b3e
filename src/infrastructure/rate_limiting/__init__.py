"""Fixed-window request limiters for public endpoints."""

from .in_memory_rate_limiter import InMemoryRateLimiter
from .redis_rate_limiter import RedisFixedWindowRateLimiter

__all__ = ["InMemoryRateLimiter", "RedisFixedWindowRateLimiter"]
