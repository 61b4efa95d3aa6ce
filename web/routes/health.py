"""Health check routes for UTM Connect web application."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Response
from loguru import logger

from utm_connect import __version__
from utm_connect.core.exceptions import InternalError
from utm_connect.models.db_factory import DatabaseFactory
from utm_connect.services.auth_service import DATASTORE_ERRORS

router = APIRouter(tags=["health"])


async def check_database() -> Dict[str, Any]:
    """Ping the database; failures are reported, not raised."""
    try:
        db = await DatabaseFactory.ensure_connected()
        latency_ms = await db.ping()
    except (InternalError,) + DATASTORE_ERRORS as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "latency_ms": 0}
    return {"status": "healthy", "latency_ms": round(latency_ms, 2)}


@router.get("/health")
async def health_check(response: Response) -> Dict[str, Any]:
    """
    Health check endpoint for monitoring and container orchestration.

    Returns 503 while the database is unreachable.
    """
    database = await check_database()
    healthy = database["status"] == "healthy"
    if not healthy:
        response.status_code = 503
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "components": {"database": database},
    }


@router.get("/health/live")
async def liveness() -> Dict[str, str]:
    """Liveness check; always 200 while the process serves requests."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}
