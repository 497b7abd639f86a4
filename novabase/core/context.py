"""
NovaBase — Action Context

The per-execution ledger an action works against. It carries the open Dao,
the cache and the logger, and it collects everything the action wants to
happen once its transaction is durable:

  register(task | notice)   — queue a side effect (merged by queue/target)
  clear(filter | action)    — drop pending notices / deferred actions
  invalidate(key)           — mark a cache key for eviction at commit
  defer(action, inputs)     — run an action after commit
  run(action, inputs)       — invoke a sub-action now, unless suppressed
  suppress / unsuppress     — tag-scoped switch for run()

One context exists per Executor.execute() call and is never shared. After the
primary action finishes and the transaction commits, the Executor seals the
context: defer() then fails, while register(), invalidate() and run() stay
available to the deferred actions themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from datetime import datetime
from typing import Any

from novabase.core.collaborators import Cache, Dao, Logger
from novabase.core.registry import MergeRegistry, SuppressionRegistry, action_name
from novabase.core.types import Action, DeferredAction, Notice, NoticeFilter, Task
from novabase.errors import ConfigurationError
from novabase.primitives.common import utc_now
from novabase.validator import validate


class ActionContext:
    """Request-scoped side-effect ledger and sub-action gate."""

    def __init__(
        self,
        dao: Dao,
        cache: Cache,
        logger: Logger,
        settings: Any = None,
        *,
        dispatch: bool = False,
        notify: bool = False,
        timestamp: datetime | None = None,
    ) -> None:
        self._dao = dao
        self._cache = cache
        self._logger = logger
        self._settings = settings
        self._timestamp = timestamp or utc_now()

        # None means "no collaborator to deliver these to"
        self._tasks: MergeRegistry[Task] | None = MergeRegistry("queue") if dispatch else None
        self._notices: MergeRegistry[Notice] | None = MergeRegistry("target") if notify else None

        self._keys: set[str] = set()
        self._deferred: list[DeferredAction] = []
        self._suppressed = SuppressionRegistry()
        self._sealed = False

    # ─── Read-only state ──────────────────────────────────────────

    @property
    def dao(self) -> Dao:
        return self._dao

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def settings(self) -> Any:
        return self._settings

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def tasks(self) -> list[Task]:
        return self._tasks.items() if self._tasks is not None else []

    @property
    def notices(self) -> list[Notice]:
        return self._notices.items() if self._notices is not None else []

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    @property
    def deferred(self) -> list[DeferredAction]:
        return list(self._deferred)

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ─── Side effects ─────────────────────────────────────────────

    def register(self, task_or_notice: Task | Notice) -> None:
        """Queue a Task or Notice, merging with pending ones of the same key."""
        if task_or_notice is None:
            return
        if getattr(task_or_notice, "queue", None):
            if self._tasks is None:
                raise ConfigurationError("Cannot register task: dispatcher is not available")
            self._tasks.add(task_or_notice)  # type: ignore[arg-type]
        elif getattr(task_or_notice, "target", None):
            if self._notices is None:
                raise ConfigurationError("Cannot register notice: notifier is not available")
            self._notices.add(task_or_notice)  # type: ignore[arg-type]
        else:
            raise TypeError(
                f"Cannot register {task_or_notice!r}: expected a task with a queue "
                f"or a notice with a target"
            )

    def clear(self, filter_or_action: NoticeFilter | Mapping[str, Any] | Action) -> None:
        """
        Drop pending side effects.

        With an action: removes every deferred entry for that action.
        With a NoticeFilter (or a mapping of target/topic/event): removes
        every pending notice matching all set fields. An empty filter removes
        nothing.
        """
        if callable(filter_or_action):
            self._deferred = [d for d in self._deferred if d.action != filter_or_action]
            return

        if filter_or_action is None:
            return
        notice_filter = (
            NoticeFilter.model_validate(filter_or_action)
            if isinstance(filter_or_action, Mapping)
            else filter_or_action
        )
        if notice_filter.is_empty:
            return
        if self._notices is None:
            raise ConfigurationError("Cannot clear notices: notifier is not available")
        self._notices.remove(notice_filter.matches)

    def invalidate(self, key: str) -> None:
        self._keys.add(key)

    def is_invalid(self, key: str) -> bool:
        return key in self._keys

    # ─── Sub-actions ──────────────────────────────────────────────

    async def run(self, action: Action, inputs: Any = None) -> Any:
        """Invoke a sub-action in this context; suppressed actions return None."""
        name = action_name(action)
        if self._suppressed.is_suppressed(action):
            self._logger.debug(f"Suppressed {name} action")
            return None
        self._logger.debug(f"Started {name} action")
        return await action(self, inputs)

    def defer(self, action: Action, inputs: Any = None) -> None:
        """Queue an action to run after the transaction commits."""
        validate(not self._sealed, "Cannot defer an action: the action context is sealed")
        self._deferred.append(DeferredAction(action=action, inputs=inputs))

    def suppress(self, actions: Action | Iterable[Action], tag: Hashable) -> None:
        self._suppressed.suppress(actions, tag)

    def unsuppress(self, actions: Action | Iterable[Action], tag: Hashable) -> None:
        self._suppressed.unsuppress(actions, tag)

    def is_suppressed(self, action: Callable[..., Any]) -> bool:
        return self._suppressed.is_suppressed(action)

    # ─── Executor hooks ───────────────────────────────────────────

    def seal(self) -> None:
        self._sealed = True

    def __repr__(self) -> str:
        return (
            f"<ActionContext tasks={len(self.tasks)} notices={len(self.notices)} "
            f"keys={len(self._keys)} deferred={len(self._deferred)} sealed={self._sealed}>"
        )
