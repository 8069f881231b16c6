"""Sliding-window rate limiting for the advisory endpoint.

Two backends share the ``RateLimiter`` interface: an in-process map for a
single worker and a Redis sorted-set window for deployments running several
worker processes.
"""
from abc import ABC, abstractmethod
from collections import OrderedDict
import logging
import math
import time
import uuid

from fastapi import Depends, HTTPException, Request
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from krushi_sathi.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    max_requests: int
    window_seconds: float

    @abstractmethod
    async def check(self, key: str) -> bool:
        """Record a hit for ``key``; False once the window is full."""

    @property
    def retry_after(self) -> int:
        return math.ceil(self.window_seconds)

    async def close(self) -> None:
        pass


class InMemoryRateLimiter(RateLimiter):
    """address -> request timestamps, pruned lazily on every check.

    The map holds at most ``max_keys`` addresses; the least recently seen one
    is evicted first.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 60.0,
                 max_keys: int = 10000, clock=time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._hits: OrderedDict[str, list[float]] = OrderedDict()

    async def check(self, key: str) -> bool:
        now = self._clock()
        hits = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]
        allowed = len(hits) < self.max_requests
        if allowed:
            hits.append(now)
        self._hits[key] = hits
        self._hits.move_to_end(key)
        while len(self._hits) > self.max_keys:
            evicted, _ = self._hits.popitem(last=False)
            logger.debug(f"Rate limiter evicted key {evicted}")
        return allowed

    def __len__(self) -> int:
        return len(self._hits)


class RedisRateLimiter(RateLimiter):
    """Sliding window kept in one sorted set per key (score = timestamp).

    Prune, count and add run atomically as one Lua script.
    """

    SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
if redis.call('ZCARD', key) >= limit then
    return 0
end
redis.call('ZADD', key, now, ARGV[4])
redis.call('EXPIRE', key, tonumber(ARGV[5]))
return 1
"""

    def __init__(self, redis_client, max_requests: int = 10, window_seconds: float = 60.0,
                 prefix: str = "krushi:ratelimit:"):
        self.redis = redis_client
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._sliding_window = redis_client.register_script(self.SLIDING_WINDOW_SCRIPT)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisRateLimiter":
        return cls(aioredis.from_url(url), **kwargs)

    async def check(self, key: str) -> bool:
        now = time.time()
        allowed = await self._sliding_window(
            keys=[f"{self.prefix}{key}"],
            args=[now, self.window_seconds, self.max_requests,
                  f"{now}:{uuid.uuid4().hex[:8]}", math.ceil(self.window_seconds)],
        )
        return bool(allowed)

    async def close(self) -> None:
        await self.redis.close()


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        if settings.RATE_LIMIT_REDIS_URL:
            logger.info("Using Redis-backed rate limiter.")
            _rate_limiter = RedisRateLimiter.from_url(
                settings.RATE_LIMIT_REDIS_URL,
                max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
                window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            )
        else:
            _rate_limiter = InMemoryRateLimiter(
                max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
                window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
                max_keys=settings.RATE_LIMIT_MAX_KEYS,
            )
    return _rate_limiter


async def reset_rate_limiter() -> None:
    global _rate_limiter
    if _rate_limiter is not None:
        await _rate_limiter.close()
    _rate_limiter = None


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_advisory_rate_limit(request: Request,
                                      limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    """Route dependency: 429 with a Retry-After hint once the window is full."""
    key = client_address(request)
    try:
        allowed = await limiter.check(key)
    except RedisError as e:
        # Fail open when the shared counter is unreachable
        logger.error(f"Rate limiter backend error for {key}: {e}", exc_info=True)
        return
    if not allowed:
        logger.warning(f"Rate limit exceeded for {key}")
        raise HTTPException(
            status_code=429,
            detail={"error": "Too many requests", "code": "RATE_LIMITED", "retryAfter": limiter.retry_after},
            headers={"Retry-After": str(limiter.retry_after)},
        )
