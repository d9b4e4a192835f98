"""Structured JSON logging with run context.

Uses structlog for structured logging with JSON output.  Library
modules log through ``logging.getLogger(__name__)``; the root handler
installed here renders those records with the same processor chain as
structlog's own loggers, so every entry emitted during an import run
carries the run's ``run_id`` and ``user_id``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

# Marks the root handler owned by setup_logging so reconfiguring replaces it
_HANDLER_NAME = "tradebook"


def bind_run_context(*, user_id: str, run_id: str, **extra: Any) -> None:
    """Bind run identifiers to every log entry in the current context."""
    structlog.contextvars.bind_contextvars(user_id=user_id, run_id=run_id, **extra)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()


def _add_component(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add component name (``tradebook.matching.lots`` -> ``matching``)."""
    parts = str(event_dict.get("logger", "")).split(".")
    event_dict.setdefault("component", parts[1] if len(parts) > 1 else parts[0])
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    *,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for production, "console" for development.
        stream: Where entries are written.  Defaults to stderr.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        _add_component,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
        shared.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)
