"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["system"])
logger = logging.getLogger("cycle_tracker.health")


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also performs a lightweight DB connectivity check.
    """
    settings = request.app.state.settings
    db_ok = False
    db = getattr(request.app.state, "db", None)
    if db is not None:
        try:
            await db.fetchval("SELECT 1")
            db_ok = True
        except Exception as exc:
            logger.warning("Health check DB probe failed: %s", exc)

    return {
        "status": "healthy" if db_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if db_ok else "unreachable",
        "calendar_sync": "enabled" if settings.calendar_sync_enabled else "disabled",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
