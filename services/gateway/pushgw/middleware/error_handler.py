"""Global error handling middleware and gateway exception handlers."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pushgw.exceptions import InvalidRequest, NoTokensForUser, ProviderError
from pushgw.middleware.logging import redact_tokens

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch unhandled exceptions and return safe error responses."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            error_msg = redact_tokens(str(exc))
            tb = traceback.format_exc()

            logger.error(
                "Unhandled exception: %s\n%s",
                error_msg,
                redact_tokens(tb),
            )

            return JSONResponse(
                status_code=500,
                content={
                    "ok": False,
                    "error": "An internal error occurred. Please try again later.",
                    "error_type": type(exc).__name__,
                },
            )


async def invalid_request_handler(request: Request, exc: InvalidRequest) -> JSONResponse:
    return JSONResponse(status_code=400, content={"ok": False, "error": str(exc)})


async def no_tokens_handler(request: Request, exc: NoTokensForUser) -> JSONResponse:
    return JSONResponse(status_code=404, content={"ok": False, "error": str(exc)})


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    logger.warning("Provider error (code=%s): %s", exc.code, redact_tokens(str(exc)))
    return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidRequest, invalid_request_handler)
    app.add_exception_handler(NoTokensForUser, no_tokens_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
