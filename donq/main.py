"""DONQ — FastAPI Application Entry Point.

Donation moderation queue for Extra Life streams.
"""

import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from donq.database import test_connection, db_url, _mask_url
from donq.dependencies import get_donation_service
from donq.scheduler.jobs import start_scheduler, stop_scheduler
from donq.api.donation_routes import router as donation_router
from donq.api.settings_routes import router as settings_router
from donq.api.live_routes import router as live_router
from donq.core.errors import StorageError
from donq.core.logging import get_logger
from donq.services.donation_service import DonationService

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 DONQ starting up...")
    if not test_connection():
        logger.error("❌ Database NOT connected — endpoints will fail")
    # Fails fast on malformed export settings
    service = app.dependency_overrides.get(
        get_donation_service, get_donation_service
    )()
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    await service.close()
    logger.info("DONQ shut down")


app = FastAPI(
    title="DONQ",
    description="Donation moderation queue: pull Extra Life donations, moderate them, export and push approved ones on air.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(donation_router)
app.include_router(settings_router)
app.include_router(live_router)


@app.get("/health", tags=["System"])
async def health_check(service: DonationService = Depends(get_donation_service)):
    """Health check endpoint with per-state donation counts."""
    try:
        counts = service.stats()
    except StorageError as e:
        return {"status": "degraded", "service": "donq", "error": str(e)}
    return {
        "status": "healthy",
        "service": "donq",
        "version": "1.0.0",
        "donations": counts,
        "viewers": service.channel.subscriber_count,
    }


@app.get("/debug/db", tags=["System"])
async def debug_db():
    """Debug endpoint — check database connectivity."""
    backend = "postgresql" if db_url.startswith("postgresql") else "sqlite"
    return {
        "connected": test_connection(),
        "backend": backend,
        "url": _mask_url(db_url),
        "environment": "serverless" if IS_SERVERLESS else "local",
    }
