"""
NovaBase — Core

The execution pipeline (Executor) and the per-execution ledger
(ActionContext), with the types and collaborator contracts they share.
"""

from novabase.core.collaborators import (
    Authenticator,
    Cache,
    Dao,
    Dispatcher,
    ExecutorServices,
    Logger,
    NoopLogger,
    Notifier,
    RateLimiter,
    Store,
    UnavailableCache,
)
from novabase.core.context import ActionContext
from novabase.core.executor import Executor
from novabase.core.registry import MergeRegistry, SuppressionRegistry
from novabase.core.safety import LocalRateLimiter
from novabase.core.types import (
    AuthInputs,
    CloseAction,
    DaoOptions,
    DeferredAction,
    ExecutionOptions,
    ExecutionStage,
    Notice,
    NoticeFilter,
    RateLimits,
    RateOptions,
    Requestor,
    SoftFailure,
    Task,
)

__all__ = [
    "ActionContext",
    "AuthInputs",
    "Authenticator",
    "Cache",
    "CloseAction",
    "Dao",
    "DaoOptions",
    "DeferredAction",
    "Dispatcher",
    "ExecutionOptions",
    "ExecutionStage",
    "Executor",
    "ExecutorServices",
    "LocalRateLimiter",
    "Logger",
    "MergeRegistry",
    "NoopLogger",
    "Notice",
    "NoticeFilter",
    "Notifier",
    "RateLimiter",
    "RateLimits",
    "RateOptions",
    "Requestor",
    "SoftFailure",
    "Store",
    "SuppressionRegistry",
    "Task",
    "UnavailableCache",
]
