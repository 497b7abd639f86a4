"""
NovaBase — Structured Logging

All logging via structlog. setup_logging() wires structlog onto the standard
library root logger; StructlogLogger adapts a structlog logger to the
Logger collaborator the Executor writes pipeline events to.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from novabase.config import LoggingConfig


HANDLER_NAME = "novabase"


def _renderer(config: LoggingConfig) -> Any:
    if config.format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=config.stream == "stdout" and sys.stdout.isatty())


def setup_logging(config: LoggingConfig, service: str = "") -> logging.Handler:
    """
    Route structlog through the standard library root logger.

    Safe to call again: the handler installed by a previous call is replaced,
    handlers added by the host application are left in place. Returns the
    installed handler.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    pre_chain: list[Any] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
    ]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    if service:
        structlog.contextvars.bind_contextvars(service=service)

    handler = logging.StreamHandler(sys.stderr if config.stream == "stderr" else sys.stdout)
    handler.set_name(HANDLER_NAME)
    # Records from plain logging.getLogger() callers get the same fields
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(config),
            ],
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.getLevelName(config.level.upper()))

    for name, level in config.libraries.items():
        logging.getLogger(name).setLevel(logging.getLevelName(level.upper()))

    return handler


class StructlogLogger:
    """
    Logger collaborator backed by structlog.

    Free-form messages go out as the event; log() properties, metrics and
    service traces become key/value pairs.
    """

    def __init__(self, bound: Any | None = None, **context: Any) -> None:
        base = bound if bound is not None else structlog.get_logger()
        self._logger = base.bind(**context) if context else base

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warn(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, error: BaseException) -> None:
        self._logger.error(
            str(error) or type(error).__name__,
            error_type=type(error).__name__,
            status=getattr(error, "status", None),
        )

    def log(self, event: str, properties: dict[str, Any] | None = None) -> None:
        self._logger.info(event, **(properties or {}))

    def track(self, metric: str, value: float) -> None:
        self._logger.info("metric_tracked", metric=metric, value=value)

    def trace(self, service: str, command: str, time: float, success: bool = True) -> None:
        self._logger.info(
            "service_traced",
            service=service,
            command=command,
            duration_ms=time,
            success=success,
        )
