"""FastAPI application factory for UTM Connect."""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from utm_connect import __version__
from utm_connect.core.environment import Environment
from utm_connect.core.settings import get_settings
from utm_connect.models.db_factory import DatabaseFactory
from utm_connect.utils import mask_database_url
from web.app_config import (
    configure_middleware,
    configure_rate_limiting,
    get_openapi_tags,
    mount_uploads,
    register_exception_handlers,
    register_routers,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Handles:
    - Database connection on startup
    - Database cleanup on shutdown
    """
    logger.info("FastAPI application starting up...")
    try:
        await DatabaseFactory.ensure_connected()
        logger.info(
            f"Database connection established: {mask_database_url(get_settings().database_url)}"
        )
    except Exception as e:
        logger.error(f"Failed to connect database during startup: {e}")
        raise

    yield

    logger.info("FastAPI application shutting down...")
    try:
        await asyncio.wait_for(DatabaseFactory.close_instance(), timeout=10)
        logger.info("DatabaseFactory instance closed successfully")
    except asyncio.TimeoutError:
        logger.error("DatabaseFactory close timed out after 10s")


def log_security_warnings() -> None:
    """Warn about settings that are acceptable locally but not in production."""
    settings = get_settings()
    if not settings.is_production():
        return
    if not settings.rate_limit_enabled:
        logger.warning("SECURITY: rate limiting is disabled in production")
    if settings.bcrypt_rounds < 10:
        logger.warning(f"SECURITY: bcrypt cost factor {settings.bcrypt_rounds} is below 10")
    if settings.jwt_access_expire_minutes > 60:
        logger.warning("SECURITY: access tokens live longer than one hour")


def create_app(
    run_security_validation: bool = True, env_override: Optional[str] = None
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        run_security_validation: Whether to log security warnings (default: True)
        env_override: Override environment name for testing (default: None)

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    env = env_override if env_override is not None else Environment.current()
    is_dev = Environment.is_relaxed(env)

    app = FastAPI(
        title="UTM Connect API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
        description="""
## UTM Connect

Student social network with campaign short links.

### Authentication

Protected endpoints require a Bearer access token:

```
Authorization: Bearer <access-token>
```

Obtain one from `/api/auth/login` or `/api/auth/register`. The refresh token
is set as an HttpOnly cookie and exchanged at `/api/auth/refresh`.
        """,
        openapi_tags=get_openapi_tags(),
    )

    if run_security_validation:
        log_security_warnings()

    configure_middleware(app, settings, env)
    configure_rate_limiting(app, settings)
    register_exception_handlers(app)
    register_routers(app)
    mount_uploads(app, settings)

    return app
