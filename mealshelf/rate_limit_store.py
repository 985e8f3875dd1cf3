from __future__ import annotations
import logging
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)


class RateLimitStore:
    """
    Ventanas deslizantes por clave. Redis si hay REDIS_URL (multi-proceso);
    si no, o si Redis falla, memoria local del proceso.
    """
    def __init__(self) -> None:
        self._redis: Optional[Redis] = None
        self._local: Dict[str, Deque[float]] = defaultdict(deque)

    def _use_redis(self) -> bool:
        return bool(settings.redis_url)

    def _client(self) -> Redis:
        assert settings.redis_url, "redis_url no configurado"
        if self._redis is None:
            self._redis = Redis.from_url(settings.redis_url, password=settings.redis_password)
        return self._redis

    async def _allow_redis(self, key: str, now: float, window: float, limit: int) -> bool:
        client = self._client()
        rkey = f"rl:{key}"
        min_score = now - window
        pipe = client.pipeline()
        pipe.zremrangebyscore(rkey, 0, min_score)
        pipe.zcard(rkey)
        _, count = await pipe.execute()
        if count >= limit:
            return False
        pipe = client.pipeline()
        pipe.zadd(rkey, {str(now): now})
        pipe.expire(rkey, int(window))
        await pipe.execute()
        return True

    def _allow_local(self, key: str, now: float, window: float, limit: int) -> bool:
        q = self._local[key]
        while q and (now - q[0]) > window:
            q.popleft()
        if len(q) >= limit:
            return False
        q.append(now)
        return True

    async def allow(self, key: str, now: float, window: float, limit: int) -> bool:
        if self._use_redis():
            try:
                return await self._allow_redis(key, now, window, limit)
            except RedisError as e:
                logger.warning("Rate limit store: Redis unavailable (%s), using local memory", e)
        return self._allow_local(key, now, window, limit)


store = RateLimitStore()
