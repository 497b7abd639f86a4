"""
NovaBase — Error Hierarchy

All exceptions raised by the execution pipeline and its collaborators.

Every error carries an HTTP-style status so that an outer transport layer can
map it to a response without knowing where it came from:

  ClientError          4xx   -- the caller did something wrong (bad inputs,
                                failed authentication, rate limit exceeded)
  InternalServerError  500   -- something inside the system failed
  ConfigurationError   500   -- a collaborator or option is missing/invalid;
                                always critical, never retried

An error raised with allow_commit=True tells the Executor that the action's
work should still be committed and its side effects delivered before the
error is surfaced to the caller (a "soft failure").
"""

from __future__ import annotations

from typing import Any

from novabase.primitives.common import HttpStatusCode


def _phrase(status: int) -> str:
    try:
        return HttpStatusCode(status).phrase
    except ValueError:
        return "Unknown Error"


class NovaError(RuntimeError):
    """Base for all NovaBase errors."""

    default_status: int = HttpStatusCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "",
        status: int | None = None,
        *,
        cause: BaseException | None = None,
        allow_commit: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = int(status) if status is not None else int(self.default_status)
        self.cause = cause
        self.allow_commit = allow_commit

    @property
    def name(self) -> str:
        return _phrase(self.status)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500

    def to_body(self) -> dict[str, Any]:
        return {"name": self.name, "message": self.message}

    def __str__(self) -> str:
        return self.message


class ClientError(NovaError):
    """The request could not be served because of something the caller did."""

    default_status = HttpStatusCode.BAD_REQUEST


class InternalServerError(NovaError):
    """
    Something inside the system failed.

    Accepts either a message (optionally with the underlying cause, whose
    message is appended) or the cause itself.
    """

    def __init__(
        self,
        message_or_cause: str | BaseException,
        is_critical: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        if isinstance(message_or_cause, BaseException):
            cause = message_or_cause
            message = str(message_or_cause)
        else:
            message = f"{message_or_cause}: {cause}" if cause else message_or_cause
        super().__init__(message, HttpStatusCode.INTERNAL_SERVER_ERROR, cause=cause)
        self.is_critical = is_critical

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        if self.cause is not None:
            body["cause"] = str(self.cause)
        return body


class ConfigurationError(InternalServerError):
    """A required collaborator or option is missing or structurally invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, is_critical=True)


class RateLimitError(ClientError):
    """A rate limit window is exhausted for the given key."""

    def __init__(self, key: str, retry_after: float) -> None:
        super().__init__(
            f"Rate limit exceeded for {{{key}}}",
            HttpStatusCode.TOO_MANY_REQUESTS,
        )
        self.key = key
        self.retry_after = retry_after


class TooBusyError(NovaError):
    """The system is overloaded and refuses new work."""

    default_status = HttpStatusCode.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "The server is too busy") -> None:
        super().__init__(message)


def wrap_error(error: BaseException, message: str) -> NovaError:
    """
    Prefix an error's message with context.

    NovaErrors are updated in place so that their type and status survive;
    an error already carrying the prefix is left as is, so re-raising a
    shared error instance does not stack prefixes. Anything else becomes an
    InternalServerError with the original as cause.
    """
    if isinstance(error, NovaError):
        if error.message == message or error.message.startswith(f"{message}: "):
            return error
        error.message = f"{message}: {error.message}" if error.message else message
        error.args = (error.message,)
        return error
    return InternalServerError(message, cause=error)
