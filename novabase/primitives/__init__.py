"""
NovaBase — Primitives

Identifiers, timestamps, status codes and the shared pydantic base model.
"""

from novabase.primitives.common import HttpStatusCode, NovaBaseModel, new_id, utc_now

__all__ = [
    "HttpStatusCode",
    "NovaBaseModel",
    "new_id",
    "utc_now",
]
