from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, load_environment
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import TraceIDMiddleware
from .core.tracing import (
    configure_tracing,
    instrument_fastapi,
    shutdown_tracing,
    get_trace_id_from_context,
    record_exception,
    set_span_status,
    StatusCode,
)
from .routes import health, metrics, search, sku, checkout

load_environment()
settings = get_settings()

# JSON output in containers, console output in development
configure_logging(log_level=settings.log_level, json_output=settings.log_json)

logger = get_logger(__name__)

configure_tracing()

app = FastAPI(
    title="Storefront Relay API",
    description="AliExpress affiliate search, SKU enrichment and checkout relay",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(TraceIDMiddleware)

instrument_fastapi(app)


@app.on_event("startup")
async def startup_event():
    """Report which upstream credentials were found."""
    logger.info("app_startup_started")
    for name, status in get_settings().credential_status().items():
        if status == "OK":
            logger.info("credential_loaded", credential=name, status=status)
        else:
            logger.warning("credential_missing", credential=name, status=status)
    logger.info("app_startup_completed", port=settings.port)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("app_shutdown_started")
    shutdown_tracing()
    logger.info("app_shutdown_completed")


def _request_trace_id(request: Request) -> Optional[str]:
    # Unhandled exceptions arrive after the middleware cleared the logging context
    return getattr(request.state, "trace_id", None) or get_trace_id() or get_trace_id_from_context()


def _error_response(status_code: int, message, trace_id: Optional[str], **extra) -> JSONResponse:
    content = {
        "error": message,
        "detail": message,
        "status_code": status_code,
        "trace_id": trace_id,
    }
    content.update(extra)
    response = JSONResponse(status_code=status_code, content=content)
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    trace_id = _request_trace_id(request)

    set_span_status(StatusCode.ERROR if exc.status_code >= 500 else StatusCode.OK, str(exc.detail))

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    return _error_response(exc.status_code, exc.detail, trace_id)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed request bodies and query parameters."""
    trace_id = _request_trace_id(request)
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        method=request.method,
        errors=errors,
    )
    return _error_response(422, "Invalid request", trace_id, errors=errors)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    trace_id = _request_trace_id(request)

    record_exception(exc)
    set_span_status(StatusCode.ERROR, str(exc))

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return _error_response(500, "Internal server error", trace_id)


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
app.include_router(search.router, prefix="/api", tags=["Search"])
app.include_router(sku.router, prefix="/api", tags=["Catalog"])
app.include_router(checkout.router, prefix="/api", tags=["Checkout"])


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    uvicorn.run("storefront_relay.main:app", host="0.0.0.0", port=settings.port)
