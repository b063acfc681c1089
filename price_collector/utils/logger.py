"""
Structured logging for Price Collector.

Every request binds a short trace id into structlog's context so one
extraction can be followed across the cascades it ran. Components log
through ``LayerLogger``, which tags each event with the component name.
"""
import logging
import uuid
from typing import Any, List, Optional

import structlog

from price_collector.config import config


TRACE_ID_KEY = "trace_id"


def _new_trace_id() -> str:
    return uuid.uuid4().hex[:8]


def get_trace_id() -> str:
    """Trace id bound to the current context; one is bound if missing."""
    trace_id = structlog.contextvars.get_contextvars().get(TRACE_ID_KEY)
    if not trace_id:
        trace_id = set_trace_id()
    return trace_id


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Start a fresh logging context for one request."""
    trace_id = trace_id or _new_trace_id()
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{TRACE_ID_KEY: trace_id})
    return trace_id


def _log_level() -> int:
    level = logging.getLevelName(config.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging():
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.LOG_FORMAT == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=config.DEBUG))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


class LayerLogger:
    """
    Logger bound to one pipeline component.

    Event names are fixed per method so log queries can filter on them:
    ``decision_made``, ``action_<status>``, ``cascade_step``,
    ``fallback_triggered``, ``error_occurred``, ``http_probe`` and
    ``product_extracted``.
    """

    def __init__(self, layer_name: str):
        self.layer_name = layer_name
        self.logger = get_logger(layer_name).bind(layer=layer_name)

    def log_decision(self, decision: str, reason: str, url: Optional[str] = None, **extra):
        self.logger.info("decision_made", decision=decision, reason=reason, url=url, **extra)

    def log_action(self, action: str, status: str = "started", **extra):
        self.logger.info(f"action_{status}", action=action, **extra)

    def log_step(self, step: str, result: str, **extra):
        """Cascade steps are frequent, so they log at debug level."""
        self.logger.debug("cascade_step", step=step, result=result, **extra)

    def log_fallback(self, from_source: str, to_source: str, reason: str, **extra):
        self.logger.warning(
            "fallback_triggered",
            from_source=from_source,
            to_source=to_source,
            reason=reason,
            **extra
        )

    def log_error(self, error: str, error_type: str = "unknown", **extra):
        self.logger.error("error_occurred", error=error, error_type=error_type, **extra)

    def log_http_probe(self, url: str, endpoint: str, status_code: Optional[int], result: str, **extra):
        """One outbound HTTP call: page fetch or remote API."""
        self.logger.info(
            "http_probe",
            url=url,
            endpoint=endpoint,
            status_code=status_code,
            result=result,
            **extra
        )

    def log_extraction(self, site: str, fields_present: list, fields_missing: list, **extra):
        self.logger.info(
            "product_extracted",
            site=site,
            fields_present=fields_present,
            fields_missing=fields_missing,
            **extra
        )


configure_logging()
