"""Redis-backed fixed-window limiter shared by every API worker.

Each key is a hash ``{count, window_start}`` whose lifetime is the window.
The read, the window roll-over and the increment run inside one Lua script
so concurrent workers never lose an update.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import NoScriptError, RedisError

from src.domain.interfaces.rate_limiter import IRateLimiter
from src.domain.value_objects.rate_limit import RateLimitDecision
from src.utils.clock import Clock, epoch_ms, from_epoch_ms, utcnow

logger = structlog.get_logger(__name__)

# KEYS[1] = counter key; ARGV = now_ms, window_ms, limit
FIXED_WINDOW_SCRIPT = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local count = tonumber(redis.call('HGET', KEYS[1], 'count') or '0')
local start = tonumber(redis.call('HGET', KEYS[1], 'window_start') or '0')
if count == 0 or now - start >= window then
    count = 0
    start = now
    redis.call('HSET', KEYS[1], 'count', 0, 'window_start', start)
    redis.call('PEXPIRE', KEYS[1], window)
end
if count <= limit then
    count = redis.call('HINCRBY', KEYS[1], 'count', 1)
end
return {count, start}
"""


class RedisFixedWindowRateLimiter(IRateLimiter):
    """Counts requests per key in fixed windows.

    The stored count stops at ``limit + 1``; anything above the limit is
    refused either way. If Redis is unreachable the limiter fails open and
    logs the error, since a broken cache must not take the reset flow down.
    """

    key_prefix = "rate_limit:"

    def __init__(self, redis_client: Redis, clock: Clock = utcnow):
        self.redis = redis_client
        self._clock = clock
        self._script_sha: Optional[str] = None

    async def _register_script(self) -> str:
        if self._script_sha is None:
            self._script_sha = await self.redis.script_load(FIXED_WINDOW_SCRIPT)
        return self._script_sha

    async def _run_script(self, redis_key: str, now_ms: int, window_ms: int, limit: int):
        sha = await self._register_script()
        try:
            return await self.redis.evalsha(sha, 1, redis_key, now_ms, window_ms, limit)
        except NoScriptError:
            # Script cache was flushed (restart or SCRIPT FLUSH)
            self._script_sha = None
            sha = await self._register_script()
            return await self.redis.evalsha(sha, 1, redis_key, now_ms, window_ms, limit)

    async def check(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        now = self._clock()
        now_ms = epoch_ms(now)
        redis_key = f"{self.key_prefix}{key}"

        try:
            count, window_start = await self._run_script(redis_key, now_ms, window_ms, limit)
        except RedisError as e:
            logger.error("Rate limiter unavailable, allowing request", key=key, error=str(e))
            return RateLimitDecision(
                allowed=True,
                remaining=limit,
                reset_at=from_epoch_ms(now_ms + window_ms),
                limit=limit,
            )

        count = int(count)
        reset_at = from_epoch_ms(int(window_start) + window_ms)
        allowed = count <= limit
        if not allowed:
            logger.warning("Rate limit exceeded", key=key, limit=limit, reset_at=reset_at.isoformat())
        return RateLimitDecision(
            allowed=allowed,
            remaining=max(limit - count, 0),
            reset_at=reset_at,
            limit=limit,
        )
