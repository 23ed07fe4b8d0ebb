"""
Hike Tracker API

FastAPI application for live hike tracking and safety monitoring.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.session import init_db, AsyncSessionLocal
from app.api.v1.router import api_router
from app.features.tracking import (
    SessionRegistry,
    SqlHikeRecordStore,
    SqlShareStore,
    get_alert_dispatcher,
)


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


def build_registry(session_factory=AsyncSessionLocal) -> SessionRegistry:
    """Wire the live session registry to the database and alert gateways."""
    return SessionRegistry(
        record_store=SqlHikeRecordStore(session_factory),
        share_store=SqlShareStore(session_factory),
        dispatcher=get_alert_dispatcher(),
    )


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting Hike Tracker API...")
    await init_db()
    logger.info("Database initialized")

    registry = build_registry()
    app.state.registry = registry

    # Resume location shares that were active before the restart
    try:
        await registry.restore_active_sharing()
    except Exception as e:
        logger.error(f"Failed to restore active location shares: {e}")

    yield

    # Shutdown
    await registry.shutdown()
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="Hike Tracker API",
    description="Live hike tracking, location sharing and emergency alerts",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
