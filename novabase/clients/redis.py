"""
NovaBase — Redis Clients

Async Redis connection plus Redis-backed implementations of four
collaborators:

  RedisCache        — Cache: JSON values, Lua scripts, bulk clear
  RedisDispatcher   — Dispatcher: list queues, delayed messages in a sorted
                      set, received-but-not-deleted messages in a hash
  RedisNotifier     — Notifier: PUBLISH on channel:<target>
  RedisRateLimiter  — RateLimiter: fixed-window INCR/EXPIRE counters,
                      shared by every process using the same prefix

All keys are prefixed with the configured instance prefix.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from typing import Any

import orjson
import structlog
from redis.asyncio import Redis

from novabase.config import RedisConfig
from novabase.core.types import Notice, RateOptions
from novabase.errors import RateLimitError
from novabase.primitives.common import new_id

logger = structlog.get_logger()


class RedisClient:
    """
    Async Redis client with key prefixing for multi-instance support.
    """

    def __init__(self, config: RedisConfig) -> None:
        self._config = config
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Establish Redis connection."""
        self._client = Redis.from_url(
            self._config.full_url,
            decode_responses=True,
        )
        # Verify connectivity
        await self._client.ping()
        logger.info("redis_connected", prefix=self._config.prefix)

    async def close(self) -> None:
        """Close the connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_disconnected")

    @property
    def client(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    def key(self, key: str) -> str:
        """Prefix a key with the instance prefix."""
        return f"{self._config.prefix}:{key}"

    async def health_check(self) -> dict:
        """Check connectivity."""
        try:
            await self.client.ping()
            return {"status": "connected"}
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))
            return {"status": "disconnected", "error": str(e)}


def _dumps(value: Any) -> str:
    return orjson.dumps(value).decode()


def _loads(raw: str | None) -> Any:
    return None if raw is None else orjson.loads(raw)


# ─── Cache ────────────────────────────────────────────────────────


class RedisCache:
    """Cache collaborator storing JSON-serialisable values."""

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    async def get(self, key: str | Sequence[str]) -> Any:
        if isinstance(key, str):
            return _loads(await self._redis.client.get(self._redis.key(key)))
        keys = list(key)
        if not keys:
            return []
        raw = await self._redis.client.mget([self._redis.key(k) for k in keys])
        return [_loads(item) for item in raw]

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if ttl:
            await self._redis.client.set(self._redis.key(key), _dumps(value), px=int(ttl * 1000))
        else:
            await self._redis.client.set(self._redis.key(key), _dumps(value))

    async def execute(self, script: str, keys: Sequence[str], params: Sequence[Any]) -> Any:
        prefixed = [self._redis.key(k) for k in keys]
        return await self._redis.client.eval(script, len(prefixed), *prefixed, *params)

    async def clear(self, key: str | Sequence[str]) -> None:
        keys = [key] if isinstance(key, str) else list(key)
        if not keys:
            return
        await self._redis.client.delete(*(self._redis.key(k) for k in keys))
        logger.debug("cache_cleared", keys=len(keys))


# ─── Dispatcher ───────────────────────────────────────────────────


class RedisDispatcher:
    """
    Dispatcher collaborator.

    Ready messages wait in queue:<name>; delayed ones in
    queue:<name>:delayed scored by their due time. receive() moves a message
    into queue:<name>:inflight until delete() acknowledges it.
    """

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis
        self._logger = logger.bind(system="novabase.dispatcher")

    def _ready(self, queue: str) -> str:
        return self._redis.key(f"queue:{queue}")

    def _delayed(self, queue: str) -> str:
        return self._redis.key(f"queue:{queue}:delayed")

    def _inflight(self, queue: str) -> str:
        return self._redis.key(f"queue:{queue}:inflight")

    async def send(
        self,
        queue: str,
        payload: Any,
        delay: float | None = None,
        ttl: float | None = None,
    ) -> str:
        now = time.time()
        message_id = new_id()
        raw = _dumps({
            "id": message_id,
            "payload": payload,
            "expires_at": now + ttl if ttl else None,
        })
        if delay:
            await self._redis.client.zadd(self._delayed(queue), {raw: now + delay})
        else:
            await self._redis.client.rpush(self._ready(queue), raw)
        self._logger.debug("task_sent", queue=queue, message_id=message_id, delay=delay)
        return message_id

    async def receive(self, queue: str) -> dict[str, Any] | None:
        """Pop the next live message, or None when the queue is empty."""
        await self._promote_due(queue)
        while True:
            raw = await self._redis.client.lpop(self._ready(queue))
            if raw is None:
                return None
            message = orjson.loads(raw)
            expires_at = message.get("expires_at")
            if expires_at is not None and expires_at < time.time():
                self._logger.debug("task_expired", queue=queue, message_id=message["id"])
                continue
            await self._redis.client.hset(self._inflight(queue), message["id"], raw)
            return {"id": message["id"], "payload": message["payload"]}

    async def delete(self, queue: str, message_id: str) -> None:
        await self._redis.client.hdel(self._inflight(queue), message_id)

    async def _promote_due(self, queue: str) -> None:
        due = await self._redis.client.zrangebyscore(self._delayed(queue), 0, time.time())
        if not due:
            return
        pipe = self._redis.client.pipeline()
        for raw in due:
            pipe.zrem(self._delayed(queue), raw)
            pipe.rpush(self._ready(queue), raw)
        await pipe.execute()


# ─── Notifier ─────────────────────────────────────────────────────


class RedisNotifier:
    """Notifier collaborator publishing each notice on its target channel."""

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    async def send(self, notices: Notice | Sequence[Notice]) -> None:
        batch = [notices] if isinstance(notices, Notice) else list(notices)
        if not batch:
            return
        pipe = self._redis.client.pipeline()
        for notice in batch:
            pipe.publish(
                self._redis.key(f"channel:{notice.target}"),
                _dumps({
                    "event": notice.event,
                    "topic": notice.topic,
                    "payload": notice.payload,
                }),
            )
        await pipe.execute()
        logger.debug("notices_sent", count=len(batch))


# ─── Rate Limiter ─────────────────────────────────────────────────


class RedisRateLimiter:
    """Fixed-window counters: at most `limit` attempts per window bucket."""

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis
        self._logger = logger.bind(system="novabase.rate_limiter")

    async def attempt(self, key: str, options: RateOptions) -> None:
        bucket = int(time.time() // options.window)
        counter = self._redis.key(f"rate:{key}:{bucket}")

        count = await self._redis.client.incr(counter)
        if count == 1:
            await self._redis.client.expire(counter, math.ceil(options.window))

        if count > options.limit:
            remaining = await self._redis.client.ttl(counter)
            self._logger.warning(
                "rate_limit_exceeded",
                key=key,
                current_count=count,
                limit=options.limit,
                window_seconds=options.window,
            )
            raise RateLimitError(key, max(remaining, 0))
