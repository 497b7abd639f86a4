"""
NovaBase — Postgres Store

Async Postgres connection pooling (asyncpg) implementing the Store and Dao
collaborators. A Dao owns one pooled connection for the duration of one
execution; acquiring with start_transaction=True opens a transaction that
the Executor later commits or rolls back through close().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import asyncpg
import structlog

from novabase.core.types import CloseAction, DaoOptions

if TYPE_CHECKING:
    from novabase.config import PostgresConfig

logger = structlog.get_logger()


class PostgresDao:
    """One pooled connection, optionally inside a transaction."""

    def __init__(
        self,
        pool: asyncpg.Pool,
        connection: asyncpg.Connection,
        transaction: Any | None = None,
    ) -> None:
        self._pool = pool
        self._connection: asyncpg.Connection | None = connection
        self._transaction = transaction

    @property
    def is_active(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    @property
    def connection(self) -> asyncpg.Connection:
        if self._connection is None:
            raise RuntimeError("Dao is closed")
        return self._connection

    async def execute(self, query: str, *args: Any) -> str:
        return await self.connection.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self.connection.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self.connection.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self.connection.fetchval(query, *args)

    async def close(self, action: CloseAction | None = None) -> None:
        """
        End the transaction (if any) and return the connection to the pool.

        A transaction closed without an explicit action is rolled back.
        """
        if self._connection is None:
            return
        try:
            if self._transaction is not None:
                if action == CloseAction.COMMIT:
                    await self._transaction.commit()
                else:
                    await self._transaction.rollback()
        finally:
            self._transaction = None
            connection, self._connection = self._connection, None
            await self._pool.release(connection)


class PostgresStore:
    """
    Async Postgres store with connection pooling.
    """

    def __init__(self, config: PostgresConfig) -> None:
        self._config = config
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Create the connection pool."""
        self._pool = await asyncpg.create_pool(
            dsn=self._config.dsn,
            min_size=self._config.min_pool_size,
            max_size=self._config.pool_size,
            ssl="require" if self._config.ssl else None,
        )
        logger.info(
            "postgres_connected",
            host=self._config.host,
            database=self._config.database,
        )

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_disconnected")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Postgres store not connected. Call connect() first.")
        return self._pool

    async def acquire(self, options: DaoOptions | None = None) -> PostgresDao:
        connection = await self.pool.acquire()
        transaction = None
        if options is not None and options.start_transaction:
            try:
                transaction = connection.transaction()
                await transaction.start()
            except Exception:
                await self.pool.release(connection)
                raise
        return PostgresDao(self.pool, connection, transaction)

    async def health_check(self) -> dict:
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return {"status": "connected"}
        except Exception as e:
            logger.error("postgres_health_check_failed", error=str(e))
            return {"status": "disconnected", "error": str(e)}
