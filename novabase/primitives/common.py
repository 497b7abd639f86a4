"""
NovaBase — Common Primitives

Shared enums, base classes, and utilities used across the package.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel
from ulid import ULID


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


# ─── Enums ────────────────────────────────────────────────────────


class HttpStatusCode(int, enum.Enum):
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    INVALID_INPUTS = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    PAYLOAD_TOO_LARGE = 413
    UNSUPPORTED_CONTENT = 415
    NOT_READY = 425
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        return _STATUS_PHRASES.get(self, "Unknown Error")


_STATUS_PHRASES: dict[HttpStatusCode, str] = {
    HttpStatusCode.OK: "OK",
    HttpStatusCode.CREATED: "Created",
    HttpStatusCode.ACCEPTED: "Accepted",
    HttpStatusCode.NO_CONTENT: "No Content",
    HttpStatusCode.BAD_REQUEST: "Bad Request",
    HttpStatusCode.UNAUTHORIZED: "Unauthorized",
    HttpStatusCode.INVALID_INPUTS: "Invalid Inputs",
    HttpStatusCode.FORBIDDEN: "Forbidden",
    HttpStatusCode.NOT_FOUND: "Not Found",
    HttpStatusCode.NOT_ALLOWED: "Method Not Allowed",
    HttpStatusCode.NOT_ACCEPTABLE: "Not Acceptable",
    HttpStatusCode.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HttpStatusCode.UNSUPPORTED_CONTENT: "Unsupported Media Type",
    HttpStatusCode.NOT_READY: "Not Ready",
    HttpStatusCode.TOO_MANY_REQUESTS: "Too Many Requests",
    HttpStatusCode.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HttpStatusCode.NOT_IMPLEMENTED: "Not Implemented",
    HttpStatusCode.SERVICE_UNAVAILABLE: "Service Unavailable",
}


# ─── Base Models ──────────────────────────────────────────────────


class NovaBaseModel(BaseModel):
    """Base model for all NovaBase value types."""

    model_config = {"populate_by_name": True, "from_attributes": True}
