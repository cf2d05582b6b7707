# pulse/services/rate_limiter.py
from dataclasses import dataclass

import redis
from redis.exceptions import RedisError

from pulse.utils.logging import get_logger
from pulse.utils.retry import redis_retry
from pulse.utils.settings import (
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    REDIS_URL,
)

logger = get_logger(__name__)

#INCR and EXPIRE in one atomic step, the window starts with the first hit
_HIT_LUA = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('TTL', KEYS[1])
return {current, ttl}
"""


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_in: int


class RateLimiter:
    """
    -fixed window counter per client key
    -atomic via lua, no GET/SET race between workers
    -fail open: when redis is down the request goes through
    """

    def __init__(
        self,
        url: str | None = None,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        client: redis.Redis | None = None,
    ):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @redis_retry()
    def _hit(self, key: str):
        return self.redis.eval(_HIT_LUA, 1, key, self.window_seconds)

    def hit(self, client_key: str) -> RateLimitResult:
        key = f"ratelimit:{client_key}"
        try:
            count, ttl = self._hit(key)
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable, letting request through: {e}")
            return RateLimitResult(True, self.max_requests, self.max_requests, self.window_seconds)

        count = int(count)
        ttl = int(ttl) if int(ttl) > 0 else self.window_seconds
        allowed = count <= self.max_requests
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_key} ({count}/{self.max_requests})")

        return RateLimitResult(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(self.max_requests - count, 0),
            reset_in=ttl,
        )
