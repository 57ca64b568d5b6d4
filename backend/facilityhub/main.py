# backend/facilityhub/main.py
"""
FacilityHub API application.

Run locally with:
    uvicorn facilityhub.main:app --reload
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_V1_PREFIX, API_VERSION
from .core.exceptions import DomainException
from .database import init_db
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import bookings as bookings_v1, inventory as inventory_v1

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")

    if settings.auto_create_schema:
        logger.info("AUTO_CREATE_SCHEMA enabled, creating tables")
        init_db()
    if not settings.redis_url:
        logger.info("REDIS_URL not set, facility locks are process-local")

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Domain errors that escaped a route keep their status code and envelope."""
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


# Create API v1 router
api_v1 = APIRouter(prefix=API_V1_PREFIX)
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(inventory_v1.router, prefix="/inventory")
app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health_check() -> Dict[str, str]:
    return {
        "status": "healthy",
        "service": "facilityhub-api",
        "version": API_VERSION,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@app.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Prometheus exposition of the service metrics registry."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


fastapi_app = app
