"""
NovaBase — External Service Clients

Connection management for Postgres and Redis, and the collaborator
implementations built on them.
"""

from novabase.clients.postgres import PostgresDao, PostgresStore
from novabase.clients.redis import (
    RedisCache,
    RedisClient,
    RedisDispatcher,
    RedisNotifier,
    RedisRateLimiter,
)

__all__ = [
    "PostgresDao",
    "PostgresStore",
    "RedisCache",
    "RedisClient",
    "RedisDispatcher",
    "RedisNotifier",
    "RedisRateLimiter",
]
