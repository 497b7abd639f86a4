"""
NovaBase — Collaborator Contracts

The Executor is wired against seven external collaborators. Each is a
structural Protocol: anything with the right methods will do, whether it is
one of the clients in novabase.clients or a test double.

  Store          — hands out transactional Dao handles       (required)
  Cache          — key/value cache, cleared after commit      (optional)
  Dispatcher     — queues Tasks for out-of-process work       (optional)
  Notifier       — publishes Notices                          (optional)
  RateLimiter    — accepts or rejects an attempt for a key    (optional)
  Authenticator  — decodes and verifies caller credentials    (optional)
  Logger         — sink for pipeline events                   (optional)

Collaborators are checked once, when the Executor is built, so that a
mis-wired deployment fails at startup rather than on the first request.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NoReturn, Protocol

from novabase.core.types import (
    AuthInputs,
    CloseAction,
    DaoOptions,
    ExecutionOptions,
    Notice,
    RateOptions,
)
from novabase.errors import ConfigurationError

# ─── Protocols ────────────────────────────────────────────────────


class Dao(Protocol):
    is_active: bool
    in_transaction: bool

    async def close(self, action: CloseAction | None = None) -> None: ...


class Store(Protocol):
    async def acquire(self, options: DaoOptions | None = None) -> Dao: ...


class Cache(Protocol):
    async def get(self, key: str | Sequence[str]) -> Any: ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    async def execute(self, script: str, keys: Sequence[str], params: Sequence[Any]) -> Any: ...

    async def clear(self, key: str | Sequence[str]) -> None: ...


class Dispatcher(Protocol):
    async def send(
        self,
        queue: str,
        payload: Any,
        delay: float | None = None,
        ttl: float | None = None,
    ) -> Any: ...

    async def receive(self, queue: str) -> Any: ...

    async def delete(self, queue: str, message_id: str) -> None: ...


class Notifier(Protocol):
    async def send(self, notices: Notice | Sequence[Notice]) -> None: ...


class RateLimiter(Protocol):
    async def attempt(self, key: str, options: RateOptions) -> None: ...


class Authenticator(Protocol):
    def decode(self, inputs: AuthInputs) -> Any: ...

    def to_owner(self, credentials_or_result: Any) -> str | None: ...

    async def authenticate(self, context: Any, credentials: Any, options: Any) -> Any: ...


class Logger(Protocol):
    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, error: BaseException) -> None: ...

    def log(self, event: str, properties: dict[str, Any] | None = None) -> None: ...

    def track(self, metric: str, value: float) -> None: ...

    def trace(self, service: str, command: str, time: float, success: bool = True) -> None: ...


# ─── Stand-ins for absent collaborators ──────────────────────────


class NoopLogger:
    """Used when no Logger is supplied. Swallows everything."""

    def debug(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, error: BaseException) -> None:
        pass

    def log(self, event: str, properties: dict[str, Any] | None = None) -> None:
        pass

    def track(self, metric: str, value: float) -> None:
        pass

    def trace(self, service: str, command: str, time: float, success: bool = True) -> None:
        pass


class UnavailableCache:
    """Used when no Cache is supplied. Every operation fails loudly."""

    def _unavailable(self) -> NoReturn:
        raise ConfigurationError("Cannot use cache: cache hasn't been initialized")

    async def get(self, key: str | Sequence[str]) -> Any:
        self._unavailable()

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._unavailable()

    async def execute(self, script: str, keys: Sequence[str], params: Sequence[Any]) -> Any:
        self._unavailable()

    async def clear(self, key: str | Sequence[str]) -> None:
        self._unavailable()


# ─── Service Bundle ───────────────────────────────────────────────


@dataclass
class ExecutorServices:
    """
    Everything an Executor needs from its environment.

    `rate_limits` is the global limit shared by every action built on these
    services; per-action limits go in ExecutionOptions. `settings` is exposed
    to actions as context.settings.
    """

    store: Store
    cache: Cache | None = None
    dispatcher: Dispatcher | None = None
    notifier: Notifier | None = None
    limiter: RateLimiter | None = None
    authenticator: Authenticator | None = None
    logger: Logger | None = None
    rate_limits: RateOptions | None = None
    settings: Any = None


_REQUIRED_METHODS: dict[str, tuple[str, ...]] = {
    "store": ("acquire",),
    "cache": ("get", "set", "execute", "clear"),
    "dispatcher": ("send", "receive", "delete"),
    "notifier": ("send",),
    "limiter": ("attempt",),
    "authenticator": ("decode", "to_owner", "authenticate"),
    "logger": ("debug", "info", "warn", "error", "log", "track", "trace"),
}

_DISPLAY_NAMES: dict[str, str] = {
    "store": "Store",
    "cache": "Cache",
    "dispatcher": "Dispatcher",
    "notifier": "Notifier",
    "limiter": "Rate Limiter",
    "authenticator": "Authenticator",
    "logger": "Logger",
}


def validate_services(
    services: ExecutorServices | None,
    options: ExecutionOptions | None = None,
) -> None:
    """
    Check collaborators structurally and against the options that need them.

    Raises ConfigurationError on the first problem found.
    """
    if services is None:
        raise ConfigurationError("Cannot create an Executor: services are undefined")
    if services.store is None:
        raise ConfigurationError("Cannot create an Executor: Store is undefined")

    for attr, methods in _REQUIRED_METHODS.items():
        collaborator = getattr(services, attr)
        if collaborator is None:
            continue
        for method in methods:
            if not callable(getattr(collaborator, method, None)):
                raise ConfigurationError(
                    f"Cannot create an Executor: {_DISPLAY_NAMES[attr]} is invalid "
                    f"(missing {method}())"
                )

    if services.authenticator is None and options is not None and options.auth_options is not None:
        raise ConfigurationError("Cannot create an Executor: Authenticator was not provided")

    wants_limits = services.rate_limits is not None or (
        options is not None and options.rate_limits is not None
    )
    if services.limiter is None and wants_limits:
        raise ConfigurationError("Cannot create an Executor: Rate Limiter was not provided")
