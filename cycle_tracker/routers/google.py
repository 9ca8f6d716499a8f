"""Google Calendar OAuth endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from cycle_tracker.dependencies import AppSettings, CalendarClient, CurrentUser
from cycle_tracker.models.cycles import OAuthCallbackRequest, OAuthUrlResponse
from cycle_tracker.services.google_calendar import CalendarSyncError

router = APIRouter(prefix="/google", tags=["google"])
logger = logging.getLogger("cycle_tracker.routers.google")


def _require_configured(settings) -> None:
    if not settings.calendar_sync_enabled:
        raise HTTPException(status_code=404, detail="Google Calendar sync is not configured")


@router.get("/oauth/url", response_model=OAuthUrlResponse)
async def get_oauth_url(
    user: CurrentUser,
    settings: AppSettings,
    calendar: CalendarClient,
    redirect_uri: str | None = Query(default=None),
) -> Any:
    _require_configured(settings)
    return OAuthUrlResponse(url=calendar.oauth_url(redirect_uri))


@router.post("/oauth/callback", status_code=204)
async def oauth_callback(
    user: CurrentUser,
    settings: AppSettings,
    calendar: CalendarClient,
    body: OAuthCallbackRequest,
) -> None:
    _require_configured(settings)
    try:
        await calendar.exchange_code(user.user_id, body.code, body.redirect_uri)
    except CalendarSyncError as exc:
        logger.warning("Google OAuth callback failed for user %s: %s", user.user_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))
