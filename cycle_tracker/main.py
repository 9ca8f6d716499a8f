"""Cycle Tracker API — FastAPI application entry point.

Run locally:
    uvicorn cycle_tracker.main:create_app --factory --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cycle_tracker.config import Settings, get_settings
from cycle_tracker.engine.config_loader import get_prediction_config
from cycle_tracker.middleware.auth import SupabaseAuthMiddleware
from cycle_tracker.routers import cycles, google, health
from cycle_tracker.services.supabase import Database

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("cycle_tracker")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting Cycle Tracker API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    get_prediction_config()
    app.state.db = await Database.connect(settings)
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        await app.state.db.close()
        app.state.db = None
        logger.info("Cycle Tracker API shut down")


# ---------- App factory ----------

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Cycle Tracker API",
        description="Personal menstrual cycle tracking with period, PMS and ovulation predictions.",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = None
    app.state.http_client = None

    # ---------- Middleware (last added runs first) ----------

    # Supabase JWT authentication
    app.add_middleware(SupabaseAuthMiddleware, settings=settings)

    # CORS wraps auth so preflight requests are answered before token checks
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Health check (always at /health, outside the v1 prefix) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(cycles.router, prefix=v1_prefix)
    app.include_router(google.router, prefix=v1_prefix)

    return app
