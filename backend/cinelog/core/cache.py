import json
import logging
import time
import zlib
from typing import Optional, Any, Dict
import redis
from .config import get_settings

logger = logging.getLogger(__name__)

SOCKET_TIMEOUT_SECONDS = 3


class CacheService:
    """Small Redis cache for JSON values (optionally zlib-compressed).

    Without a configured REDIS_URL every read misses and every write is a
    no-op, so callers never need to special-case a missing cache.
    """

    def __init__(self, url: Optional[str] = None, compress: bool = True, client: Optional[redis.Redis] = None):
        settings = get_settings()
        url = url or settings.REDIS_URL
        self.compress = compress
        if client is not None:
            self.redis = client
        elif url:
            self.redis = redis.Redis.from_url(
                url,
                decode_responses=False,
                socket_timeout=SOCKET_TIMEOUT_SECONDS,
                socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
            )
        else:
            self.redis = None

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def get_json(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            data = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {str(e)}")
            return None
        if data is None:
            return None
        if self.compress:
            try:
                data = zlib.decompress(data)
            except zlib.error:
                pass
        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except (UnicodeDecodeError, ValueError):
            return None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> bool:
        if not self.enabled:
            return False
        raw = json.dumps(value, ensure_ascii=False).encode("utf-8")
        payload = zlib.compress(raw) if self.compress else raw
        try:
            self.redis.setex(key, ttl_seconds, payload)
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for {key}: {str(e)}")
            return False
        return True

    def delete(self, key: str) -> int:
        if not self.enabled:
            return 0
        try:
            return int(self.redis.delete(key))
        except redis.RedisError:
            return 0

    def round_trip(self, key: str = "health:probe") -> Dict[str, float]:
        """Write, read back and delete a probe value; raises on any failure"""
        if not self.enabled:
            raise RuntimeError("Redis is not configured")
        marker = str(time.time())

        set_start = time.perf_counter()
        self.redis.setex(key, 10, marker.encode("utf-8"))
        set_time = (time.perf_counter() - set_start) * 1000

        get_start = time.perf_counter()
        value = self.redis.get(key)
        get_time = (time.perf_counter() - get_start) * 1000

        self.redis.delete(key)
        if value is None or value.decode("utf-8") != marker:
            raise RuntimeError("Cache returned a different value than written")
        return {"setTime": round(set_time, 2), "getTime": round(get_time, 2)}
