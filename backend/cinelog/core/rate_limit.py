import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import redis

from .config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    count: int
    remaining: int
    reset_at: float  # epoch seconds


class RateLimitStore(ABC):
    """Fixed-window request counters keyed by client identifier"""

    @abstractmethod
    def increment(self, key: str, window_seconds: int) -> Tuple[int, float]:
        """Count one request; returns (count in current window, window reset time)"""

    @abstractmethod
    def reset(self, key: str) -> None:
        pass

    @abstractmethod
    def is_limited(self, key: str, max_requests: int) -> bool:
        """True when the current window already holds ``max_requests`` requests"""


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local store. Counters are not shared between worker processes."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[int, float]] = {}

    def increment(self, key: str, window_seconds: int) -> Tuple[int, float]:
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + window_seconds
            count += 1
            self._windows[key] = (count, reset_at)
            return count, reset_at

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def is_limited(self, key: str, max_requests: int) -> bool:
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
        return self._clock() < reset_at and count >= max_requests


class RedisRateLimitStore(RateLimitStore):
    """Shared store on Redis INCR/EXPIRE. Fails open when Redis is unavailable."""

    def __init__(self, client: redis.Redis, clock: Callable[[], float] = time.time):
        self.redis = client
        self._clock = clock

    def increment(self, key: str, window_seconds: int) -> Tuple[int, float]:
        now = self._clock()
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.ttl(key)
            count, ttl = pipe.execute()
            if ttl is None or ttl < 0:
                self.redis.expire(key, window_seconds)
                ttl = window_seconds
        except redis.RedisError as e:
            logger.warning(f"Rate limiter store error: {str(e)}")
            return 0, now + window_seconds
        return int(count), now + ttl

    def reset(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning(f"Rate limiter reset error: {str(e)}")

    def is_limited(self, key: str, max_requests: int) -> bool:
        try:
            value = self.redis.get(key)
        except redis.RedisError:
            return False
        return value is not None and int(value) >= max_requests


class RateLimiter:
    """Fixed-window limiter over a pluggable RateLimitStore"""

    def __init__(self, store: RateLimitStore, max_requests: int, window_seconds: int, key_prefix: str = "ratelimit"):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix

    def _key(self, identifier: str) -> str:
        return f"{self.key_prefix}:{identifier}"

    def hit(self, identifier: str) -> RateLimitResult:
        """Record a request and report whether it is within the budget"""
        count, reset_at = self.store.increment(self._key(identifier), self.window_seconds)
        allowed = count <= self.max_requests
        if not allowed:
            logger.warning(f"Rate limit exceeded for {identifier} ({count}/{self.max_requests})")
        return RateLimitResult(
            allowed=allowed,
            count=count,
            remaining=max(0, self.max_requests - count),
            reset_at=reset_at,
        )

    def is_limited(self, identifier: str) -> bool:
        return self.store.is_limited(self._key(identifier), self.max_requests)

    def reset(self, identifier: str) -> None:
        self.store.reset(self._key(identifier))


_analytics_limiter: Optional[RateLimiter] = None


def build_store(backend: str, redis_url: Optional[str]) -> RateLimitStore:
    if backend == "redis":
        if not redis_url:
            raise ValueError("RATE_LIMIT_BACKEND=redis requires REDIS_URL")
        return RedisRateLimitStore(redis.Redis.from_url(redis_url, socket_timeout=3))
    return InMemoryRateLimitStore()


def get_analytics_rate_limiter() -> RateLimiter:
    """Rate limiter singleton for the analytics ingestion endpoint"""
    global _analytics_limiter
    if _analytics_limiter is None:
        settings = get_settings()
        _analytics_limiter = RateLimiter(
            build_store(settings.RATE_LIMIT_BACKEND, settings.REDIS_URL),
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            key_prefix="ratelimit:analytics",
        )
    return _analytics_limiter
