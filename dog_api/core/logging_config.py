# dog_api/core/logging_config.py
"""
Logging setup for the dog service.

Two output formats are supported:
- console: human readable lines for local development
- json: one JSON object per line, using the field names Cloud Logging
  understands (severity, logging.googleapis.com/trace, ...)

The AppLogger handle is created once at startup and passed to the services that
need it. Request handlers derive a trace-correlated adapter from it with
with_trace_context().
"""

import logging
import sys
from typing import Optional

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

CONSOLE_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'
JSON_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s %(module)s %(funcName)s %(lineno)d'

TRACE_KEY = 'logging.googleapis.com/trace'
SPAN_ID_KEY = 'logging.googleapis.com/spanId'
TRACE_SAMPLED_KEY = 'logging.googleapis.com/trace_sampled'


class CloudLoggingJsonFormatter(JsonFormatter):
    """JsonFormatter that renames levelname to the 'severity' key Cloud Logging reads."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['severity'] = log_record.pop('levelname', record.levelname)


def setup_logging(level: str = 'INFO', fmt: str = 'console') -> logging.Handler:
    """Installs a single stdout handler on the root logger and returns it."""
    handler = logging.StreamHandler(sys.stdout)
    if fmt == 'json':
        handler.setFormatter(CloudLoggingJsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
    return handler


class AppLogger:
    """Logging handle injected into services at construction time."""

    def __init__(self, logger: logging.Logger, project_id: str):
        self.logger = logger
        self.project_id = project_id

    @classmethod
    def for_project(cls, project_id: str) -> "AppLogger":
        return cls(logging.getLogger('dog_api'), project_id)

    @classmethod
    def for_tests(cls) -> "AppLogger":
        logger = logging.getLogger('dog_api.tests')
        logger.setLevel(logging.DEBUG)
        return cls(logger, 'fake')

    def with_trace_context(self, span: Optional[trace.Span] = None) -> logging.LoggerAdapter:
        """Returns an adapter whose records carry the trace/span ids of ``span``
        (the current span when omitted). Without a valid span context the
        adapter adds nothing.
        """
        span = span or trace.get_current_span()
        span_context = span.get_span_context()
        extra = {}
        if span_context.is_valid:
            trace_id = trace.format_trace_id(span_context.trace_id)
            extra = {
                TRACE_KEY: f"projects/{self.project_id}/traces/{trace_id}",
                SPAN_ID_KEY: trace.format_span_id(span_context.span_id),
                TRACE_SAMPLED_KEY: span_context.trace_flags.sampled,
            }
        return logging.LoggerAdapter(self.logger, extra)

    def close(self):
        """Flushes every handler reachable from this logger."""
        logger = self.logger
        while logger:
            for handler in logger.handlers:
                handler.flush()
            logger = logger.parent if logger.propagate else None
