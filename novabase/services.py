"""
NovaBase — Service Wiring

NovaBaseService turns a NovaBaseConfig into live collaborators and hands out
Executors built on them.

Lifecycle:
  initialize() — configure logging, connect Postgres and Redis, build the
                 ExecutorServices
  executor()   — build an Executor for one action with the configured defaults
  shutdown()   — close the connections it opened

Clients passed in to the constructor are used as-is and are not connected or
closed by the service; the caller owns them. Pass configure_logging=False
when the host application sets up logging itself.
"""

from __future__ import annotations

import structlog

from novabase.clients.postgres import PostgresStore
from novabase.clients.redis import (
    RedisCache,
    RedisClient,
    RedisDispatcher,
    RedisNotifier,
    RedisRateLimiter,
)
from novabase.config import NovaBaseConfig
from novabase.core.collaborators import Authenticator, ExecutorServices, Logger, RateLimiter, Store
from novabase.core.executor import Executor
from novabase.core.safety import LocalRateLimiter
from novabase.core.types import Action, ActionAdapter, ExecutionOptions
from novabase.telemetry.logging import StructlogLogger, setup_logging

logger = structlog.get_logger()


class NovaBaseService:
    """Owns the shared collaborators every Executor in a process runs against."""

    def __init__(
        self,
        config: NovaBaseConfig,
        authenticator: Authenticator | None = None,
        action_logger: Logger | None = None,
        store: Store | None = None,
        redis_client: RedisClient | None = None,
        configure_logging: bool = True,
    ) -> None:
        self._config = config
        self._configure_logging = configure_logging
        self._authenticator = authenticator
        self._action_logger = action_logger
        self._store = store
        self._redis = redis_client
        # Clients created here are closed here; injected ones belong to the caller
        self._owned_store: PostgresStore | None = None
        self._owned_redis: RedisClient | None = None
        self._services: ExecutorServices | None = None
        self._logger = logger.bind(system="novabase.service")

    @property
    def services(self) -> ExecutorServices:
        if self._services is None:
            raise RuntimeError("NovaBaseService.initialize() must be called first")
        return self._services

    async def initialize(self) -> None:
        """
        Connect clients and build the collaborator bundle.

        Idempotent — safe to call multiple times.
        """
        if self._services is not None:
            return

        if self._configure_logging:
            setup_logging(self._config.logging, service="novabase")

        if self._store is None:
            store = PostgresStore(self._config.postgres)
            await store.connect()
            self._store = self._owned_store = store

        if self._redis is None:
            redis = RedisClient(self._config.redis)
            await redis.connect()
            self._redis = self._owned_redis = redis

        executor_config = self._config.executor
        limiter: RateLimiter | None = None
        if executor_config.rate_limits is not None:
            limiter = (
                RedisRateLimiter(self._redis)
                if executor_config.limiter == "redis"
                else LocalRateLimiter()
            )

        self._services = ExecutorServices(
            store=self._store,
            cache=RedisCache(self._redis),
            dispatcher=RedisDispatcher(self._redis) if executor_config.dispatch else None,
            notifier=RedisNotifier(self._redis) if executor_config.notify else None,
            limiter=limiter,
            authenticator=self._authenticator,
            logger=self._action_logger or StructlogLogger(system="novabase.actions"),
            rate_limits=executor_config.rate_limits,
            settings=executor_config.settings,
        )
        self._logger.info(
            "novabase_initialized",
            dispatch=executor_config.dispatch,
            notify=executor_config.notify,
            limiter=executor_config.limiter if limiter is not None else None,
        )

    def executor(
        self,
        action: Action,
        adapter: ActionAdapter | None = None,
        options: ExecutionOptions | None = None,
    ) -> Executor:
        """Build an Executor; configured dao options apply unless overridden."""
        options = options or ExecutionOptions()
        if options.dao_options is None:
            options = options.model_copy(update={"dao_options": self._config.executor.dao_options})
        return Executor(self.services, action, adapter, options)

    async def shutdown(self) -> None:
        if self._owned_redis is not None:
            await self._owned_redis.close()
            self._redis = self._owned_redis = None
        if self._owned_store is not None:
            await self._owned_store.close()
            self._store = self._owned_store = None
        self._services = None
        self._logger.info("novabase_shutdown")
