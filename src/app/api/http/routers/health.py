"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from loguru import logger
from starlette.responses import JSONResponse

from src.app.api.http.app_data import ApplicationDependencies
from src.app.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness check; returns 200 as long as the process is running."""
    return {"status": "healthy", "service": "book-registry"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check: 200 when the registry store answers, 503 otherwise."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()
    store = app_deps.registry_service.store

    try:
        store_healthy = store.health_check()
        checks = {
            "store": {
                "status": "healthy" if store_healthy else "unhealthy",
                "type": config.registry.store,
            }
        }
        if store_healthy:
            checks["store"]["records"] = app_deps.registry_service.count()
    except Exception as e:
        logger.bind(error_type=type(e).__name__).error("Readiness check failed: {}", e)
        store_healthy = False
        checks = {"store": {"status": "unhealthy", "error": str(e)}}

    body = {
        "status": "ready" if store_healthy else "not_ready",
        "checks": checks,
    }
    if not store_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
