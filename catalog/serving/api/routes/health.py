"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from catalog.core.service import CatalogService
from catalog.serving.api.dependencies import get_catalog

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request, catalog: CatalogService = Depends(get_catalog)) -> HealthResponse:
    """
    Health check endpoint.

    Reports the size of the catalog and how many live-update listeners
    are attached to the event bus.
    """
    checks = {
        "store": {"status": "healthy", "products": len(catalog.store)},
        "events": {"status": "healthy", "subscribers": catalog.bus.subscriber_count()},
    }
    settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """
    Readiness probe endpoint.

    Returns 503 until the catalog has been built by the app lifespan.
    """
    if getattr(request.app.state, "catalog", None) is None:
        response.status_code = 503
        return {"status": "not_ready", "reason": "catalog_unavailable"}
    return {"status": "ready"}
