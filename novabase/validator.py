"""
NovaBase — Validators

Assertion helpers that raise the right error for the right situation:

  validate(cond, msg)             → InternalServerError (500)
  validate.request(cond, msg)     → ClientError 400
  validate.authorized(cond, msg)  → ClientError 401
  validate.inputs(cond, msg)      → ClientError 402
  validate.exists(cond, msg)      → ClientError 404
  validate.allowed(cond, msg)     → ClientError 405
  validate.accepts(cond, msg)     → ClientError 406
  validate.content(cond, msg)     → ClientError 415
  validate.ready(cond, msg)       → ClientError 425

Each validator also has from_error(error), which raises the same kind of
error when `error` is not None (useful for parser results).
"""

from __future__ import annotations

from typing import Any, NoReturn

from novabase.errors import ClientError, InternalServerError
from novabase.primitives.common import HttpStatusCode


class _ClientValidator:
    def __init__(self, status: HttpStatusCode) -> None:
        self._status = status

    def __call__(self, condition: Any, message: str) -> None:
        if not condition:
            raise ClientError(message, self._status)

    def from_error(self, error: BaseException | None, message: str | None = None) -> None:
        if error is not None:
            _raise_from(ClientError(message or str(error), self._status, cause=error), error)

    def __repr__(self) -> str:
        return f"<validator status={int(self._status)}>"


class Validator:
    """Root validator. Call it directly for server-side invariants."""

    def __init__(self) -> None:
        self.request = _ClientValidator(HttpStatusCode.BAD_REQUEST)
        self.authorized = _ClientValidator(HttpStatusCode.UNAUTHORIZED)
        self.inputs = _ClientValidator(HttpStatusCode.INVALID_INPUTS)
        self.exists = _ClientValidator(HttpStatusCode.NOT_FOUND)
        self.allowed = _ClientValidator(HttpStatusCode.NOT_ALLOWED)
        self.accepts = _ClientValidator(HttpStatusCode.NOT_ACCEPTABLE)
        self.content = _ClientValidator(HttpStatusCode.UNSUPPORTED_CONTENT)
        self.ready = _ClientValidator(HttpStatusCode.NOT_READY)

    def __call__(self, condition: Any, message: str, is_critical: bool = False) -> None:
        if not condition:
            raise InternalServerError(message, is_critical)

    def from_error(self, error: BaseException | None, message: str | None = None) -> None:
        if error is not None:
            if message:
                _raise_from(InternalServerError(message, cause=error), error)
            _raise_from(InternalServerError(error), error)


def _raise_from(error: BaseException, cause: BaseException) -> NoReturn:
    raise error from cause


validate = Validator()
