"""
FastAPI Application Entry Point

QR Restaurant Ordering - customers order from the table, cashiers scan
and take payment, admins manage the catalog and read the reports.
Supports in-process services (development) and Redis plus a network
receipt printer (staging/production).

Endpoints:
    - /api/...: customer router (restaurants, menu, cart, orders)
    - /api/cashier/...: cashier router (login, scan, confirm, receipts)
    - /api/admin/...: admin router (catalog, dashboard, exports)
    - /uploads/...: uploaded logos and menu images
    - GET /health: System health check

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import redis
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.config import get_settings, setup_logging
from qr_ordering.core.exceptions import QROrderingError
from qr_ordering.database import get_db, init_db, engine
from qr_ordering.routers import admin_router, cashier_router, customer_router
from qr_ordering.schemas import HealthResponse
from qr_ordering.services.printer import get_printer_service
from qr_ordering.services.storage import get_storage_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()
    logger.info("✅ Database initialized")

    # Log service configuration
    storage_service = get_storage_service()
    printer_service = get_printer_service()
    logger.info(f"✅ Storage Service: {storage_service.provider_name}")
    logger.info(f"✅ Printer Service: {printer_service.provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await get_storage_service().close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Table-side QR ordering: customer cart and checkout, cashier scan and "
        "payment, admin catalog management and sales reports."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customer_router)
app.include_router(cashier_router)
app.include_router(admin_router)

upload_path = Path(settings.upload_directory)
upload_path.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(upload_path)), name="uploads")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍜 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "restaurants": "/api/restaurants",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check storage
    storage_service = get_storage_service()
    storage_status = "healthy" if await storage_service.health_check() else "unhealthy"

    # Check Celery broker
    broker_status = "healthy"
    if not settings.celery_task_always_eager:
        try:
            r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
            r.ping()
            r.close()
        except redis.RedisError as e:
            broker_status = f"unhealthy: {str(e)}"
            logger.error(f"Broker health check failed: {e}")

    # Check printer
    printer_service = get_printer_service()
    printer_status = "healthy" if await printer_service.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, storage_status, broker_status, printer_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        environment=settings.env_mode.value,
        database=db_status,
        storage=storage_status,
        broker=broker_status,
        printer=printer_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(QROrderingError)
async def domain_exception_handler(request: Request, exc: QROrderingError) -> JSONResponse:
    """Expected failures raised by the services."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.status_code} {exc.error} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
