"""
Unit tests for the Redis-backed collaborators.

The redis.asyncio client is replaced with mocks; tests check the commands
issued and how replies are decoded.
"""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from novabase.clients.redis import (
    RedisCache,
    RedisClient,
    RedisDispatcher,
    RedisNotifier,
    RedisRateLimiter,
)
from novabase.config import RedisConfig
from novabase.core.types import Notice, RateOptions
from novabase.errors import RateLimitError

_COMMANDS = (
    "get", "mget", "set", "eval", "delete", "zadd", "rpush", "lpop", "hset",
    "hdel", "zrangebyscore", "incr", "expire", "ttl", "ping", "aclose",
)


# ─── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def redis():
    client = RedisClient(RedisConfig(prefix="t"))
    raw = MagicMock()
    for name in _COMMANDS:
        setattr(raw, name, AsyncMock(return_value=None))
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    raw.pipeline.return_value = pipe
    client._client = raw
    return client


def _message(message_id: str, payload, expires_at=None) -> str:
    return orjson.dumps({"id": message_id, "payload": payload, "expires_at": expires_at}).decode()


# ─── Client ───────────────────────────────────────────────────────


def test_key_prefix(redis):
    assert redis.key("users:1") == "t:users:1"


def test_client_requires_connect():
    with pytest.raises(RuntimeError, match="not connected"):
        RedisClient(RedisConfig()).client


@pytest.mark.asyncio
async def test_health_check(redis):
    assert await redis.health_check() == {"status": "connected"}

    redis.client.ping.side_effect = ConnectionError("refused")
    result = await redis.health_check()
    assert result["status"] == "disconnected"


# ─── Cache ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cache_get_single(redis):
    redis.client.get.return_value = '{"name":"ada"}'

    assert await RedisCache(redis).get("users:1") == {"name": "ada"}
    redis.client.get.assert_awaited_once_with("t:users:1")


@pytest.mark.asyncio
async def test_cache_get_many(redis):
    redis.client.mget.return_value = ["1", None]

    assert await RedisCache(redis).get(["a", "b"]) == [1, None]
    redis.client.mget.assert_awaited_once_with(["t:a", "t:b"])


@pytest.mark.asyncio
async def test_cache_set_with_ttl(redis):
    await RedisCache(redis).set("k", {"v": 1}, ttl=1.5)

    redis.client.set.assert_awaited_once_with("t:k", '{"v":1}', px=1500)


@pytest.mark.asyncio
async def test_cache_execute_prefixes_keys(redis):
    await RedisCache(redis).execute("return 1", ["a", "b"], [7])

    redis.client.eval.assert_awaited_once_with("return 1", 2, "t:a", "t:b", 7)


@pytest.mark.asyncio
async def test_cache_clear(redis):
    cache = RedisCache(redis)
    await cache.clear(["a", "b"])
    await cache.clear([])

    redis.client.delete.assert_awaited_once_with("t:a", "t:b")


# ─── Dispatcher ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_send_ready_message(redis):
    message_id = await RedisDispatcher(redis).send("jobs", {"n": 1})

    key, raw = redis.client.rpush.await_args.args
    assert key == "t:queue:jobs"
    assert orjson.loads(raw) == {"id": message_id, "payload": {"n": 1}, "expires_at": None}
    redis.client.zadd.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_delayed_message(redis):
    before = time.time()
    await RedisDispatcher(redis).send("jobs", 1, delay=30, ttl=60)

    key, mapping = redis.client.zadd.await_args.args
    assert key == "t:queue:jobs:delayed"
    ((raw, due),) = mapping.items()
    assert due >= before + 30
    assert orjson.loads(raw)["expires_at"] >= before + 60
    redis.client.rpush.assert_not_awaited()


@pytest.mark.asyncio
async def test_receive_moves_message_inflight(redis):
    redis.client.zrangebyscore.return_value = []
    redis.client.lpop.return_value = _message("m1", {"n": 1})

    message = await RedisDispatcher(redis).receive("jobs")

    assert message == {"id": "m1", "payload": {"n": 1}}
    redis.client.hset.assert_awaited_once()
    assert redis.client.hset.await_args.args[:2] == ("t:queue:jobs:inflight", "m1")


@pytest.mark.asyncio
async def test_receive_skips_expired(redis):
    redis.client.zrangebyscore.return_value = []
    redis.client.lpop.side_effect = [
        _message("old", 1, expires_at=time.time() - 5),
        _message("new", 2),
    ]

    message = await RedisDispatcher(redis).receive("jobs")

    assert message["id"] == "new"


@pytest.mark.asyncio
async def test_receive_empty_queue(redis):
    redis.client.zrangebyscore.return_value = []

    assert await RedisDispatcher(redis).receive("jobs") is None


@pytest.mark.asyncio
async def test_receive_promotes_due_messages(redis):
    raw = _message("m1", 1)
    redis.client.zrangebyscore.return_value = [raw]
    pipe = redis.client.pipeline.return_value

    await RedisDispatcher(redis).receive("jobs")

    pipe.zrem.assert_called_once_with("t:queue:jobs:delayed", raw)
    pipe.rpush.assert_called_once_with("t:queue:jobs", raw)
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_acknowledges(redis):
    await RedisDispatcher(redis).delete("jobs", "m1")

    redis.client.hdel.assert_awaited_once_with("t:queue:jobs:inflight", "m1")


# ─── Notifier ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_notifier_publishes_each_notice(redis):
    pipe = redis.client.pipeline.return_value

    await RedisNotifier(redis).send([
        Notice(target="u1", event="created", payload={"id": 1}),
        Notice(target="u2", event="deleted", topic="orders"),
    ])

    assert pipe.publish.call_count == 2
    channel, raw = pipe.publish.call_args_list[0].args
    assert channel == "t:channel:u1"
    assert orjson.loads(raw) == {"event": "created", "topic": None, "payload": {"id": 1}}
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_notifier_accepts_single_notice(redis):
    pipe = redis.client.pipeline.return_value

    await RedisNotifier(redis).send(Notice(target="u1", event="created"))

    pipe.publish.assert_called_once()


# ─── Rate Limiter ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_first_attempt_sets_window_expiry(redis):
    redis.client.incr.return_value = 1

    await RedisRateLimiter(redis).attempt("u1", RateOptions(window=2.5, limit=5))

    counter = redis.client.incr.await_args.args[0]
    assert counter.startswith("t:rate:u1:")
    redis.client.expire.assert_awaited_once_with(counter, 3)


@pytest.mark.asyncio
async def test_attempt_over_limit_raises(redis):
    redis.client.incr.return_value = 6
    redis.client.ttl.return_value = 42

    with pytest.raises(RateLimitError) as exc_info:
        await RedisRateLimiter(redis).attempt("u1", RateOptions(window=60, limit=5))

    assert exc_info.value.retry_after == 42
    redis.client.expire.assert_not_awaited()
