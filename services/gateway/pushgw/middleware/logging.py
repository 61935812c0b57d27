"""Structured logging middleware with device token redaction."""

import logging
import re
import time
import uuid
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# FCM registration tokens: long runs of base64url characters, often with a ':' separator
TOKEN_PATTERN = re.compile(r"\b([A-Za-z0-9_-]{8})[A-Za-z0-9_:-]{92,}")


def redact_token(token: str | None) -> str:
    """Shorten a device token to a loggable prefix."""
    if not token:
        return ""
    return f"{token[:8]}..." if len(token) > 8 else token


def redact_tokens(text: str) -> str:
    """Redact anything that looks like an FCM token from free text."""
    return TOKEN_PATTERN.sub(r"\1...", text)


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for JSON output."""
    log_level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
    )


# Liveness and scrape endpoints are polled constantly and stay out of the request log
QUIET_PATHS = frozenset({"/health", "/health/ready", "/metrics"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each gateway request with a short request id.

    The id is bound into structlog's context vars for the whole request, so
    registry events (token_registered, token_evicted, ...) emitted while the
    request runs carry the same ``request_id`` as the request log lines.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        path = request.url.path

        if path in QUIET_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        logger = structlog.get_logger()
        # /devices/... mutates the registry, /notifications/... dispatches
        area = path.strip("/").split("/", 1)[0] or "root"
        start_time = time.time()

        with structlog.contextvars.bound_contextvars(request_id=request_id, area=area):
            await logger.ainfo(
                "request_started",
                method=request.method,
                path=redact_tokens(path),
                client=request.client.host if request.client else "unknown",
            )

            response = await call_next(request)

            await logger.ainfo(
                "request_completed",
                method=request.method,
                path=redact_tokens(path),
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response
