"""Health check endpoint. Needs no authentication."""

from datetime import UTC, datetime

from fastapi import APIRouter

from lodge_api.models import HealthStatus

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness check")
async def health() -> HealthStatus:
    return HealthStatus(timestamp=datetime.now(UTC).isoformat())
