"""
NovaBase — Core Types

Value types shared by the Executor, the ActionContext and the collaborators.

Design notes:
- Task and Notice are side-effect descriptors. They are collected on the
  ActionContext while an action runs and handed to the Dispatcher/Notifier
  only after the transaction commits. Subclass them and override merge() to
  coalesce descriptors bound for the same queue/target.
- SoftFailure is the explicit result variant for "commit my work, but report
  this error". Raising a NovaError with allow_commit=True means the same.
- Options models are pydantic so that they can be loaded from configuration
  and validated once, at Executor construction.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import Field

from novabase.primitives.common import NovaBaseModel

if TYPE_CHECKING:
    from novabase.core.context import ActionContext

# An action receives the context explicitly and returns its result (or a
# SoftFailure). Identity matters: suppression and deferral are keyed on the
# function object, so pass module-level functions, not fresh lambdas.
Action = Callable[["ActionContext", Any], Awaitable[Any]]
ActionAdapter = Callable[["ActionContext", Any, Any, "str | None"], Awaitable[Any]]


# ─── Enums ────────────────────────────────────────────────────────


class CloseAction(enum.StrEnum):
    COMMIT = "commit"
    ROLLBACK = "rollback"


class ExecutionStage(enum.StrEnum):
    IDLE = "idle"
    RATE_LIMITING = "rate_limiting"
    ACQUIRING = "acquiring"
    AUTHENTICATING = "authenticating"
    ADAPTING = "adapting"
    INVOKING = "invoking"
    COMMITTING = "committing"
    DEFERRING = "deferring"
    INVALIDATING = "invalidating"
    DELIVERING = "delivering"
    COMPLETED = "completed"


# ─── Side-effect Descriptors ──────────────────────────────────────


class Task(NovaBaseModel):
    """
    Out-of-process work bound for a named queue.

    delay and ttl are in seconds and are passed through to the Dispatcher.
    """

    queue: str
    payload: Any = None
    delay: float | None = None
    ttl: float | None = None

    def merge(self, other: Task) -> Task | None:
        """
        Combine with a pending task for the same queue.

        Return the replacement task, or None to keep both. The default never
        merges.
        """
        return None


class Notice(NovaBaseModel):
    """A pub/sub event for a target channel, optionally narrowed by topic."""

    target: str
    event: str
    topic: str | None = None
    payload: Any = None

    def merge(self, other: Notice) -> Notice | None:
        """Same contract as Task.merge(), keyed by target."""
        return None


class NoticeFilter(NovaBaseModel):
    """Matches pending notices on every field that is set."""

    target: str | None = None
    topic: str | None = None
    event: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.target or self.topic or self.event)

    def matches(self, notice: Notice) -> bool:
        if self.is_empty:
            return False
        return (
            (not self.target or self.target == notice.target)
            and (not self.topic or self.topic == notice.topic)
            and (not self.event or self.event == notice.event)
        )


@dataclass
class DeferredAction:
    """An (action, inputs) pair queued to run after commit."""

    action: Action
    inputs: Any


@dataclass(frozen=True)
class SoftFailure:
    """
    Action result meaning: commit and deliver side effects, then raise `error`.
    """

    error: BaseException


# ─── Requestor ────────────────────────────────────────────────────


class AuthInputs(NovaBaseModel):
    """Raw credentials as presented by the caller."""

    scheme: str
    credentials: str


class Requestor(NovaBaseModel):
    """
    Who is calling. `address` is the caller's network address; `auth`, when
    present, makes authentication mandatory for the execution.
    """

    address: str | None = None
    auth: AuthInputs | None = None


# ─── Options ──────────────────────────────────────────────────────


class DaoOptions(NovaBaseModel):
    """Forwarded verbatim to Store.acquire()."""

    start_transaction: bool = False


class RateOptions(NovaBaseModel):
    """At most `limit` attempts per `window` seconds."""

    window: float = Field(gt=0)
    limit: int = Field(ge=0)


class RateLimits(NovaBaseModel):
    """Resolved limits of one Executor. `global` is shared by all actions."""

    local: RateOptions | None = None
    global_: RateOptions | None = Field(default=None, alias="global")

    @property
    def configured(self) -> bool:
        return self.local is not None or self.global_ is not None


class ExecutionOptions(NovaBaseModel):
    """Per-action options given to the Executor constructor."""

    auth_options: Any = None
    dao_options: DaoOptions | None = None
    rate_limits: RateOptions | None = None
    defaults: dict[str, Any] = Field(default_factory=dict)
