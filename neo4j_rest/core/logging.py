"""Structured logging for neo4j-rest.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers themselves. Applications that want JSON lines call
setup_structured_logging() once.

Request records emitted by the REST client carry ``http_method``,
``url``, ``status_code`` and ``elapsed_ms`` as extras; JSONFormatter
lifts them into the JSON object so a request can be traced without
parsing the message. The correlation ID set here is also what the
client sends to the server as X-Request-ID.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, TextIO


SERVICE_NAME = "neo4j-rest"
PACKAGE_LOGGER = "neo4j_rest"
LOG_LEVEL_ENV = "NEO4J_REST_LOG_LEVEL"

# Extras attached to request records by RestClient
REQUEST_FIELDS = ("http_method", "url", "status_code", "elapsed_ms")

_correlation_id: ContextVar[str | None] = ContextVar("neo4j_rest_correlation_id", default=None)


def set_correlation_id(correlation_id: str) -> None:
    """Tag requests made from the current context with correlation_id."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current correlation ID ("-" if unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including REST request context."""

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "message": record.getMessage(),
        }
        for field in REQUEST_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def get_log_level_from_env(default: int = logging.INFO) -> int:
    """Read NEO4J_REST_LOG_LEVEL; unknown names fall back to default."""
    level = getattr(logging, os.environ.get(LOG_LEVEL_ENV, "").upper(), None)
    return level if isinstance(level, int) else default


def setup_structured_logging(
    log_level: int | None = None,
    stream: TextIO | None = None,
    service_name: str = SERVICE_NAME,
) -> logging.Logger:
    """Send the package's records to stream as JSON lines.

    Replaces any handlers previously installed on the ``neo4j_rest``
    logger, so calling it twice does not duplicate output.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(get_log_level_from_env() if log_level is None else log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter(service_name))
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
