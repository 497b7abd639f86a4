"""
NovaBase — Telemetry

structlog configuration and the structlog-backed Logger collaborator.
"""

from novabase.telemetry.logging import StructlogLogger, setup_logging

__all__ = ["StructlogLogger", "setup_logging"]
