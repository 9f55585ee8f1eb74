"""FastAPI application for the lodge admin REST API.

Routes, all under /api:
- health and ping
- cabin availability
- bookings and dashboard counters
- cabins, including bulk actions
- customer booking totals
"""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from lodge import __version__
from lodge.services import DynamoDBService
from lodge.utils.logging import configure_logging, get_logger
from lodge_api.exceptions import register_exception_handlers
from lodge_api.middleware import CorrelationIdMiddleware
from lodge_api.rate_limit import RateLimiter
from lodge_api.routes.availability import router as availability_router
from lodge_api.routes.bookings import router as bookings_router
from lodge_api.routes.cabins import router as cabins_router
from lodge_api.routes.customers import router as customers_router
from lodge_api.routes.health import router as health_router
from lodge_api.security import get_current_subject

logger = get_logger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(db: DynamoDBService | None = None) -> FastAPI:
    """Build the API application.

    Args:
        db: DynamoDB handle shared by every request. Defaults to one built
            from the environment (ENVIRONMENT, DYNAMODB_TABLE_PREFIX,
            AWS_DEFAULT_REGION).

    Returns:
        Configured FastAPI app
    """
    configure_logging()

    app = FastAPI(
        title="Lodge Admin API",
        description="REST API for cabin, booking and customer administration",
        version=__version__,
    )
    app.state.db = db or DynamoDBService()
    app.state.rate_limiter = RateLimiter()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    # Everything under /api except health needs a forwarded identity
    protected = APIRouter(dependencies=[Depends(get_current_subject)])
    protected.include_router(availability_router)
    protected.include_router(bookings_router)
    protected.include_router(cabins_router)
    protected.include_router(customers_router)

    app.include_router(health_router, prefix="/api")
    app.include_router(protected, prefix="/api")

    @app.get("/api/ping")
    async def ping() -> dict[str, Any]:
        """Liveness check outside the health router."""
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "service": "lodge-api",
        }

    logger.info(
        "app_created",
        extra={"table_prefix": app.state.db.name_prefix, "region": app.state.db.region},
    )
    return app


app = create_app()

# API Gateway entrypoint
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False) -> None:
    """Serve the app with uvicorn (local development).

    Args:
        host: Bind address
        port: Listen port
        reload: Restart on source changes
    """
    import uvicorn

    if reload:
        # reload needs an import string, not the app object
        uvicorn.run("lodge_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
