"""
Structured logging for the debugger: event_type, signature, level, timestamp.

Every engine module logs through get_logger(); records come out as one
JSON object per line on stderr so they can sit next to the logs of the
service that embeds the debugger. LOG_FORMAT=console switches to the
human-readable renderer, LOG_LEVEL sets the threshold (INFO by default).

Depends only on structlog and stdlib logging; importing anything from
cpi_debugger here would create an import cycle.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"


def _level_value(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    return getattr(logging, name, logging.INFO)


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_to_event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog for the debugger.

    Called once at import with values from the environment; an embedding
    application may call it again to change level or format.
    """
    renderer_name = (fmt or os.getenv("LOG_FORMAT") or DEFAULT_LOG_FORMAT).strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _event_to_event_type,
    ]
    if renderer_name == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_value(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger bound to a module name.

        logger = get_logger(__name__)
        logger.debug("cpi_flow_built", steps=4, cpi_steps=2, skipped=0)

    renders as {"cpi_steps": 2, "event_type": "cpi_flow_built", "level": "debug",
    "logger": "cpi_debugger.analysis_engine.cpi_flow", "skipped": 0, "steps": 4, "timestamp": "..."}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_signature(signature: str) -> structlog.BoundLogger:
    """Logger carrying the transaction signature on every event."""
    return get_logger("cpi_debugger").bind(signature=signature)
