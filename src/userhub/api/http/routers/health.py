"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.userhub.api.http.app_data import ApplicationDependencies
from src.userhub.core.storage.session_storage import RedisSessionStorage

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe; does not touch any dependency."""
    return {"status": "healthy", "service": "userhub"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    The database is critical and turns the response into a 503. The
    session store is reported but never fails the check, since it falls
    back to memory outside production.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies

    db_healthy = app_deps.database_service.health_check()
    storage = app_deps.session_storage
    checks = {
        "database": {"status": "healthy" if db_healthy else "unhealthy"},
        "sessions": {
            "status": "healthy" if storage.is_available() else "degraded",
            "type": "redis" if isinstance(storage, RedisSessionStorage) else "in-memory",
        },
    }

    if not db_healthy:
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
    return {"status": "ready", "checks": checks}
