"""Global error handling middleware."""

import traceback
from typing import Any, Callable, Dict, cast

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from utm_connect.core.exceptions import (
    AuthError,
    InternalError,
    UTMConnectError,
    ValidationError,
)

PROBLEM_JSON = "application/problem+json"
GENERIC_ERROR_DETAIL = "An unexpected error occurred. Please try again later."


def problem_response(error: UTMConnectError, request: Request) -> JSONResponse:
    """Render a domain error as an RFC 7807 problem document."""
    status_code = error._get_http_status()
    content: Dict[str, Any] = {
        "type": error.error_type_uri,
        "title": error.title,
        "status": status_code,
        "detail": error.message,
        "instance": request.url.path,
    }
    headers: Dict[str, str] = {}

    if isinstance(error, InternalError):
        # Never leak internals; full details were logged server-side
        logger.error(
            f"{error.__class__.__name__}: {error.message} details={error.details}",
        )
        content["detail"] = GENERIC_ERROR_DETAIL
        content["recoverable"] = error.recoverable
    elif isinstance(error, ValidationError):
        logger.warning(f"Validation error on {request.url.path}: {error.message}")
        content["violations"] = error.violations
        if error.field:
            content["field"] = error.field
    elif isinstance(error, AuthError):
        logger.info(f"Authentication error on {request.url.path}: {error.message}")
        headers["WWW-Authenticate"] = "Bearer"
    else:
        logger.info(f"{error.__class__.__name__} on {request.url.path}: {error.message}")

    return JSONResponse(
        status_code=status_code, content=content, headers=headers, media_type=PROBLEM_JSON
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware with consistent JSON responses.

    Catches anything that escaped the route-level exception handlers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            response = await call_next(request)
            return cast(Response, response)
        except UTMConnectError as e:
            return problem_response(e, request)
        except Exception as e:
            return self._handle_unexpected_error(e, request)

    def _handle_unexpected_error(self, error: Exception, request: Request) -> JSONResponse:
        """Handle unexpected errors with RFC 7807 format. Must not leak internal details."""
        logger.error(
            f"Unexpected error on {request.url.path}: {error!r}\n{traceback.format_exc()}"
        )
        content = {
            "type": InternalError.error_type_uri,
            "title": InternalError.title,
            "status": 500,
            "detail": GENERIC_ERROR_DETAIL,
            "instance": request.url.path,
        }
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
            media_type=PROBLEM_JSON,
        )
