"""Application configuration helpers for the FastAPI app factory.

Middleware configuration, CORS origin validation, router registration,
OpenAPI metadata and exception handlers live here so create_app() stays short.
"""

import re
from typing import Dict, List

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from utm_connect.core.environment import Environment
from utm_connect.core.exceptions import UTMConnectError
from utm_connect.core.settings import AppSettings
from utm_connect.middleware import CorrelationMiddleware, ErrorHandlerMiddleware
from web.exception_handlers import (
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from web.middleware import SecurityHeadersMiddleware
from web.rate_limit import limiter
from web.routes import (
    auth_router,
    campaigns_router,
    friends_router,
    groups_router,
    health_router,
    links_router,
    messages_router,
    posts_router,
    uploads_router,
    users_router,
)

# localhost, loopback and unspecified addresses, with optional port and path
_LOCALHOST_PATTERN = re.compile(
    r"^https?://"
    r"(localhost(\.[^/:]*)?|127\.0\.0\.1|\[::1\]|0\.0\.0\.0)"
    r"(:\d+)?"
    r"(/.*)?$",
    re.IGNORECASE,
)


def _is_localhost_origin(origin: str) -> bool:
    """Check if origin is a localhost variant (including IPv6 and *.localhost)."""
    if "://" in origin:
        hostname = origin.split("://", 1)[1].split(":")[0].split("/")[0].lower()
        if hostname.startswith("localhost.") or hostname.endswith(".localhost"):
            return True
    return bool(_LOCALHOST_PATTERN.match(origin))


def validate_cors_origins(origins: List[str], env: str) -> List[str]:
    """
    Validate CORS origins, blocking wildcard and localhost outside development.

    Args:
        origins: Configured origins
        env: Environment name

    Returns:
        List of accepted origins

    Raises:
        ValueError: If wildcard is used in production environment
    """
    if env == Environment.PRODUCTION and "*" in origins:
        raise ValueError("Wildcard CORS origin ('*') not allowed in production")

    if Environment.is_relaxed(env):
        return origins

    invalid = [o for o in origins if o == "*" or _is_localhost_origin(o)]
    if invalid:
        logger.warning(f"Removing insecure CORS origins in {env}: {invalid}")
        origins = [o for o in origins if o not in invalid]
        if not origins:
            logger.error("All CORS origins were insecure and removed. Using empty list.")
    return origins


def get_openapi_tags() -> List[Dict[str, str]]:
    """
    Return the OpenAPI tag definitions for the API documentation.

    Returns:
        List of tag definition dicts with 'name' and 'description' keys
    """
    return [
        {"name": "auth", "description": "Registration, login and session tokens"},
        {"name": "users", "description": "User profiles"},
        {"name": "friends", "description": "Friend requests and friendships"},
        {"name": "groups", "description": "University groups"},
        {"name": "posts", "description": "Posts, likes and comments"},
        {"name": "messages", "description": "Direct conversations between two users"},
        {"name": "links", "description": "Short links with click analytics"},
        {"name": "campaigns", "description": "Campaigns grouping short links"},
        {"name": "uploads", "description": "Avatar and post images"},
        {"name": "health", "description": "Service health and monitoring"},
    ]


def configure_middleware(app: FastAPI, settings: AppSettings, env: str) -> None:
    """
    Add middleware in order. Starlette runs the last added one first,
    so CORS sees requests before anything else.

    Raises:
        RuntimeError: No usable CORS origin outside development
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationMiddleware)

    allowed_origins = validate_cors_origins(settings.get_cors_origins(), env)
    if not allowed_origins and not Environment.is_relaxed(env):
        raise RuntimeError(
            "CRITICAL: No valid CORS origins configured for production. "
            "Set CORS_ALLOWED_ORIGINS in .env (e.g., 'https://yourdomain.com')."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Accept-Language",
            "Content-Type",
            "Authorization",
            "X-Requested-With",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )


def configure_rate_limiting(app: FastAPI, settings: AppSettings) -> None:
    """Attach the shared slowapi limiter; disabled limits are skipped by slowapi itself."""
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register RFC 7807 Problem Details exception handlers on the application.

    Args:
        app: FastAPI application instance
    """
    app.exception_handler(UTMConnectError)(domain_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)


def register_routers(app: FastAPI) -> None:
    for router in (
        auth_router,
        users_router,
        friends_router,
        groups_router,
        posts_router,
        messages_router,
        links_router,
        campaigns_router,
        uploads_router,
        health_router,
    ):
        app.include_router(router)


def mount_uploads(app: FastAPI, settings: AppSettings) -> None:
    """Serve stored images under /uploads; URLs in the database point here."""
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )
