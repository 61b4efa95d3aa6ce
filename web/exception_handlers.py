"""Exception handlers that render every failure as application/problem+json."""

from http import HTTPStatus
from typing import Tuple

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from utm_connect.core.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UTMConnectError,
    ValidationError,
)
from utm_connect.middleware.error_handler import PROBLEM_JSON, problem_response

# Framework-raised statuses reuse the matching domain error's type and title
_DOMAIN_ERRORS = {
    error.http_status: error
    for error in (
        ValidationError,
        AuthError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        InternalError,
    )
}


def problem_type(status_code: int) -> Tuple[str, str]:
    """Return the (type URI, title) pair for an HTTP status."""
    error = _DOMAIN_ERRORS.get(status_code)
    if error is not None:
        return error.error_type_uri, error.title
    try:
        title = HTTPStatus(status_code).phrase
    except ValueError:
        title = "Error"
    return f"urn:utmconnect:error:http-{status_code}", title


async def domain_exception_handler(request: Request, exc: UTMConnectError) -> JSONResponse:
    """Render application errors raised from routes and services."""
    return problem_response(exc, request)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render routing and framework HTTP errors (404, 405, ...)."""
    type_uri, title = problem_type(exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": type_uri,
            "title": title,
            "status": exc.status_code,
            "detail": exc.detail if isinstance(exc.detail, str) else str(exc.detail),
            "instance": request.url.path,
        },
        headers=getattr(exc, "headers", None) or {},
        media_type=PROBLEM_JSON,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Collapse pydantic request errors into one 400 document keyed by field path."""
    errors = {
        ".".join(str(loc) for loc in error["loc"] if loc != "body"): error["msg"]
        for error in exc.errors()
    }
    return JSONResponse(
        status_code=ValidationError.http_status,
        content={
            "type": ValidationError.error_type_uri,
            "title": ValidationError.title,
            "status": ValidationError.http_status,
            "detail": "Request validation failed",
            "instance": request.url.path,
            "errors": errors,
        },
        media_type=PROBLEM_JSON,
    )
