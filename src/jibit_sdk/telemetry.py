"""Logging and tracing for the Jibit Identity SDK.

Structured logs go through structlog and token and request operations
are wrapped in OpenTelemetry spans. Credentials and tokens are masked
before any log line is rendered.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .errors import JibitError

if TYPE_CHECKING:
    from collections.abc import Generator, MutableMapping

    from .config import TelemetryConfig

SERVICE_NAME = "jibit-sdk"
SDK_VERSION = "0.1.0"

REDACTED = "***"
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "accesstoken",
        "refresh_token",
        "refreshtoken",
        "api_secret",
        "apisecret",
        "secretkey",
        "authorization",
    }
)

_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SERVICE_NAME, SDK_VERSION)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SERVICE_NAME)
    return _logger


def redact_sensitive(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking token and secret fields."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def configure_telemetry(config: TelemetryConfig) -> None:
    """Install the SDK logging pipeline and tracer.

    Logs are rendered as JSON lines on stderr, filtered at
    ``config.log_level``. With telemetry disabled, spans become no-ops
    and the logging setup is left untouched.

    Args:
        config: Telemetry configuration.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_sensitive,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_parse_level(config.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _tracer = trace.get_tracer(config.service_name, SDK_VERSION)
    _logger = structlog.get_logger(config.service_name)


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run a block inside a span.

    SDK errors raised from the block tag the span with their error code
    and status before propagating.

    Args:
        name: Span name, e.g. ``jibit.tokens.refresh``.
        attributes: Optional span attributes.
    """
    with get_tracer().start_as_current_span(name, attributes=attributes) as span:
        try:
            yield span
        except Exception as e:
            if isinstance(e, JibitError):
                span.set_attribute("jibit.error.code", e.code)
                if e.status_code is not None:
                    span.set_attribute("http.status_code", e.status_code)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
