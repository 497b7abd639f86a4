"""
NovaBase — Action Execution Pipeline

NovaBase runs server-side actions: discrete units of business logic that
work against a transactional store, emit background tasks and pub/sub
notices, may be rate-limited and authenticated, and must leave the system in
a well-defined state whether they succeed or fail.

Public interface:
  Executor          — runs one action end to end
  ActionContext     — per-execution ledger of side effects
  ExecutorServices  — the collaborators an Executor is wired against
  Task, Notice      — side-effect descriptors
  SoftFailure       — "commit, then report this error" result variant
  NovaBaseService   — builds collaborators from configuration
"""

from novabase.core.collaborators import ExecutorServices
from novabase.core.context import ActionContext
from novabase.core.executor import Executor
from novabase.core.types import (
    AuthInputs,
    DaoOptions,
    ExecutionOptions,
    Notice,
    NoticeFilter,
    RateOptions,
    Requestor,
    SoftFailure,
    Task,
)
from novabase.errors import (
    ClientError,
    ConfigurationError,
    InternalServerError,
    NovaError,
    RateLimitError,
    TooBusyError,
)
from novabase.services import NovaBaseService
from novabase.validator import validate

__all__ = [
    "ActionContext",
    "AuthInputs",
    "ClientError",
    "ConfigurationError",
    "DaoOptions",
    "ExecutionOptions",
    "Executor",
    "ExecutorServices",
    "InternalServerError",
    "Notice",
    "NoticeFilter",
    "NovaBaseService",
    "NovaError",
    "RateLimitError",
    "RateOptions",
    "Requestor",
    "SoftFailure",
    "Task",
    "TooBusyError",
    "validate",
]
