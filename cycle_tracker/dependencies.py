"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from cycle_tracker.config import Settings
from cycle_tracker.services.google_calendar import GoogleCalendarClient
from cycle_tracker.services.supabase import Database


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user context extracted from the Supabase JWT."""

    user_id: uuid.UUID
    email: str | None = None
    session_id: str | None = None
    role: str | None = None


async def get_current_user(request: Request) -> AuthContext:
    """Extract the authenticated user from the request state.

    The auth middleware sets ``request.state.auth`` before routes run.
    """
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    db: Database | None = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not available")
    return db


def get_calendar_client(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    db: Annotated[Database, Depends(get_database)],
) -> GoogleCalendarClient:
    return GoogleCalendarClient(settings, db, getattr(request.app.state, "http_client", None))


# Annotated shortcuts for route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Db = Annotated[Database, Depends(get_database)]
CalendarClient = Annotated[GoogleCalendarClient, Depends(get_calendar_client)]
