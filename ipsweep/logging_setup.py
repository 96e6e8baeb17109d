from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.processors import TimeStamper
from opentelemetry import trace


def _add_trace_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx and ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(level.strip().upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: str | int = "INFO", component: Optional[str] = None) -> None:
    """JSON logs on stderr; stdout is left free for image output."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        TimeStamper(fmt="iso", utc=True),
        _add_trace_context,
        structlog.processors.dict_tracebacks,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()
    if component:
        structlog.contextvars.bind_contextvars(component=component)


def get_logger(name: str):
    return structlog.get_logger(name)
