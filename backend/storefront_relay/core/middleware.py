"""
Request context middleware.

Every request gets a trace ID and a request ID, bound into the logging
context for the lifetime of the request and echoed back as ``X-Trace-ID``
and ``X-Request-ID``. The trace ID is also kept on ``request.state`` so the
exception handlers in ``main`` can still read it after the logging context
has been cleared.

Trace ID priority: X-Trace-ID > X-Request-ID > W3C traceparent > generated.
"""
import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import bind_request_context, clear_request_context, get_logger, new_id
from .metrics import record_http_request
from .tracing import record_exception, set_span_attribute

logger = get_logger(__name__)


def trace_id_from_traceparent(header: Optional[str]) -> Optional[str]:
    """
    Reformat the trace ID of a ``traceparent`` header as a UUID.

    >>> trace_id_from_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
    '4bf92f35-77b3-4da6-a3ce-929d0e0e4736'
    """
    if not header:
        return None
    parts = header.split("-")
    if len(parts) != 4 or len(parts[1]) != 32 or set(parts[1]) == {"0"}:
        return None
    hex_id = parts[1].lower()
    try:
        int(hex_id, 16)
    except ValueError:
        return None
    return f"{hex_id[:8]}-{hex_id[8:12]}-{hex_id[12:16]}-{hex_id[16:20]}-{hex_id[20:]}"


def resolve_trace_id(request: Request) -> str:
    return (
        request.headers.get("X-Trace-ID")
        or request.headers.get("X-Request-ID")
        or trace_id_from_traceparent(request.headers.get("traceparent"))
        or new_id()
    )


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Binds request context, logs each request and records RED metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = resolve_trace_id(request)
        request_id = new_id()
        request.state.trace_id = trace_id
        request.state.request_id = request_id
        bind_request_context(trace_id, request_id)

        set_span_attribute("relay.trace_id", trace_id)
        start_time = time.time()
        logger.info("request_started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as exc:
            duration = time.time() - start_time
            record_exception(exc)
            record_http_request(request.method, request.url.path, 500, duration)
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
                latency_ms=int(duration * 1000),
            )
            raise
        else:
            duration = time.time() - start_time
            record_http_request(request.method, request.url.path, response.status_code, duration)
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                latency_ms=int(duration * 1000),
            )
        finally:
            clear_request_context()

        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Request-ID"] = request_id
        return response
