"""
Logging setup for the relay.

Entries are rendered by structlog: JSON lines in containers, console output
in development. Request-scoped fields are bound through structlog's
contextvars support. Whatever is bound while a request is in flight
(``trace_id``, ``request_id``, and ``affiliate_method`` during an upstream
call) is merged into every entry logged in that scope.
"""
import logging
import sys
import uuid
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars, unbind_contextvars

SERVICE_NAME = "storefront_relay"

REQUEST_CONTEXT_KEYS = ("trace_id", "request_id")


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    service_name: Optional[str] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger it writes through.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_output: JSON lines when True, human-readable console output otherwise
        service_name: value of the ``service`` field (defaults to SERVICE_NAME)
    """
    global SERVICE_NAME
    if service_name:
        SERVICE_NAME = service_name

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_service_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def new_id() -> str:
    """UUID4 string used for generated trace and request IDs."""
    return str(uuid.uuid4())


def bind_request_context(trace_id: str, request_id: str) -> None:
    bind_contextvars(trace_id=trace_id, request_id=request_id)


def clear_request_context() -> None:
    unbind_contextvars(*REQUEST_CONTEXT_KEYS)


def get_trace_id() -> Optional[str]:
    """Trace ID bound for the current request, if any."""
    return get_contextvars().get("trace_id")
