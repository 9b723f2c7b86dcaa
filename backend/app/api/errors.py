"""
Exception handlers rendering every failure as the response envelope.
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.validation import format_validation_errors
from app.core.config import settings
from app.core.errors import ErrorKind
from app.schemas.common import format_response

logger = logging.getLogger(__name__)

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
}


def _envelope(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=format_response(False, message, data),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        # Starlette's own 404 for an unknown route
        return _envelope(404, f"Route {request.url.path} not found")

    detail = exc.detail
    data = None
    if isinstance(detail, dict):
        message = detail.get("message", "Request failed")
        data = {key: value for key, value in detail.items() if key != "message"} or None
    else:
        message = str(detail)

    kind = getattr(exc, "kind", None) or _STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL)
    logger.info(
        f"{request.method} {request.url.path} -> {exc.status_code}: {message}",
        extra={"error_kind": kind.value},
    )
    return _envelope(exc.status_code, message, data, getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = format_validation_errors(exc.errors())
    return _envelope(400, "Validation failed", {"errors": errors})


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _envelope(429, f"Rate limit exceeded: {exc.detail}")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Error: {exc}",
        exc_info=exc,
        extra={
            "error_kind": ErrorKind.INTERNAL.value,
            "url": str(request.url),
            "request_method": request.method,
            "request_path": request.url.path,
        },
    )

    if settings.is_development:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return _envelope(500, str(exc) or "Internal server error", {"stack": stack})
    return _envelope(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
