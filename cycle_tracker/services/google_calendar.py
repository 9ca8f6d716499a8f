"""Google Calendar sync for predicted cycles.

After a period is logged, two all-day events are created for the next
predicted cycle: a PMS event covering the three days before the period and
a period event covering the five period days.  Google treats the ``end``
date of an all-day event as exclusive, so it is always the day after the
last covered day.

Tokens are kept in the ``google_auth_tokens`` table; a fresh access token
is obtained from the stored refresh token on every sync.

Endpoints used:
    https://accounts.google.com/o/oauth2/v2/auth  consent screen
    https://oauth2.googleapis.com/token           code exchange and refresh
    /calendar/v3/calendars/{calendarId}/events    event creation
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, AsyncIterator
from urllib.parse import quote, urlencode
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from cycle_tracker.config import Settings
from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import add_days, format_date
from cycle_tracker.services.supabase import Database

logger = logging.getLogger("cycle_tracker.services.google_calendar")

_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"

PMS_EVENT_SUMMARY = "🧘‍♀️ 8 days before bleeding"
PMS_EVENT_DESCRIPTION = "PMS window - prepare for upcoming period"
PERIOD_EVENT_SUMMARY = "🩸 Bleeding"
PERIOD_EVENT_DESCRIPTION = "Menstrual period - bleeding phase"


class CalendarSyncError(Exception):
    """Any failure talking to Google or reading stored tokens."""


@dataclass(frozen=True)
class GoogleAuthTokens:
    user_id: UUID
    refresh_token: str
    access_token: str | None = None


@dataclass(frozen=True)
class CalendarEvent:
    """An all-day event covering ``first_day`` through ``last_day`` inclusive."""

    summary: str
    description: str
    first_day: date
    last_day: date
    timezone: str

    @property
    def end_exclusive(self) -> date:
        return add_days(self.last_day, 1)

    def to_payload(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "description": self.description,
            "start": {"date": format_date(self.first_day), "timeZone": self.timezone},
            "end": {"date": format_date(self.end_exclusive), "timeZone": self.timezone},
        }


def build_cycle_events(
    next_period_start: date,
    tz_name: str,
    config: PredictionConfig | None = None,
) -> list[CalendarEvent]:
    """Return the PMS and period events for a predicted cycle start.

    Raises:
        CalendarSyncError: If ``tz_name`` is not a known IANA time zone.
    """
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise CalendarSyncError(f"Unknown time zone: {tz_name!r}") from exc

    cal = (config or get_prediction_config()).calendar
    pms_last = add_days(next_period_start, -1)
    return [
        CalendarEvent(
            summary=PMS_EVENT_SUMMARY,
            description=PMS_EVENT_DESCRIPTION,
            first_day=add_days(pms_last, -(cal.pms_event_days - 1)),
            last_day=pms_last,
            timezone=tz_name,
        ),
        CalendarEvent(
            summary=PERIOD_EVENT_SUMMARY,
            description=PERIOD_EVENT_DESCRIPTION,
            first_day=next_period_start,
            last_day=add_days(next_period_start, cal.period_event_days - 1),
            timezone=tz_name,
        ),
    ]


class GoogleCalendarClient:
    """Google Calendar OAuth + event creation for one deployment.

    Args:
        settings:    App settings (client id/secret, calendar id, timeout).
        db:          Database handle for token storage.
        http_client: Optional shared httpx client (for connection reuse or tests).
    """

    def __init__(
        self,
        settings: Settings,
        db: Database,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._db = db
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
            yield client

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def oauth_url(self, redirect_uri: str | None = None) -> str:
        """Consent URL requesting offline calendar access."""
        params = {
            "client_id": self._settings.google_client_id,
            "redirect_uri": redirect_uri or self._settings.google_redirect_uri,
            "response_type": "code",
            "scope": _CALENDAR_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(
        self, user_id: UUID, code: str, redirect_uri: str | None = None
    ) -> GoogleAuthTokens:
        """Exchange an authorization code and store the resulting tokens."""
        logger.info("Google: exchanging authorization code for user %s", user_id)
        data = await self._token_request(
            {
                "client_id": self._settings.google_client_id,
                "client_secret": self._settings.google_client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri or self._settings.google_redirect_uri,
            }
        )
        refresh_token = data.get("refresh_token")
        access_token = data.get("access_token")
        if not refresh_token or not access_token:
            raise CalendarSyncError("No refresh token received from Google")

        await self.store_tokens(user_id, refresh_token, access_token)
        return GoogleAuthTokens(user_id=user_id, refresh_token=refresh_token, access_token=access_token)

    async def get_tokens(self, user_id: UUID) -> GoogleAuthTokens | None:
        row = await self._db.fetchrow(
            "SELECT user_id, refresh_token FROM google_auth_tokens WHERE user_id = $1",
            user_id,
            user_id=user_id,
        )
        if row is None:
            return None
        return GoogleAuthTokens(user_id=row["user_id"], refresh_token=row["refresh_token"])

    async def store_tokens(self, user_id: UUID, refresh_token: str, access_token: str) -> None:
        token_blob = json.dumps(
            {"refresh_token": refresh_token, "access_token": access_token}
        ).encode("utf-8")
        await self._db.execute(
            """
            INSERT INTO google_auth_tokens (user_id, refresh_token, token_pickle, updated_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id) DO UPDATE
            SET refresh_token = EXCLUDED.refresh_token,
                token_pickle = EXCLUDED.token_pickle,
                updated_at = EXCLUDED.updated_at
            """,
            user_id,
            refresh_token,
            token_blob,
            datetime.now(timezone.utc),
            user_id=user_id,
        )
        logger.info("Stored Google tokens for user %s", user_id)

    async def _token_request(self, form: dict[str, str]) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(_GOOGLE_TOKEN_URL, data=form)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CalendarSyncError(f"Google token request failed: {exc}") from exc
        if not isinstance(data, dict):
            raise CalendarSyncError("Google token response was not a JSON object")
        return data

    async def access_token(self, user_id: UUID) -> str:
        """Refresh and return a valid access token for the user."""
        tokens = await self.get_tokens(user_id)
        if tokens is None:
            raise CalendarSyncError("No Google auth tokens found for user")

        data = await self._token_request(
            {
                "client_id": self._settings.google_client_id,
                "client_secret": self._settings.google_client_secret,
                "refresh_token": tokens.refresh_token,
                "grant_type": "refresh_token",
            }
        )
        if "access_token" not in data:
            raise CalendarSyncError("Google token refresh returned no access token")
        return data["access_token"]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def create_event(self, access_token: str, event: CalendarEvent) -> dict[str, Any]:
        calendar_id = quote(self._settings.google_cycle_calendar_id, safe="")
        url = f"{_GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events"
        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    json=event.to_payload(),
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                created = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CalendarSyncError(f"Failed to create {event.summary!r} event: {exc}") from exc

        logger.info(
            "Created calendar event %r from %s to %s",
            event.summary, event.first_day, event.last_day,
        )
        return created

    async def create_cycle_events(
        self,
        user_id: UUID,
        next_period_start: date,
        tz_name: str | None = None,
    ) -> list[dict[str, Any]]:
        """Create the PMS and period events for the next predicted cycle.

        Raises:
            CalendarSyncError: If sync is not configured or any step fails.
        """
        if not self._settings.calendar_sync_enabled:
            raise CalendarSyncError("Google Calendar sync is not configured")

        events = build_cycle_events(next_period_start, tz_name or self._settings.default_timezone)
        token = await self.access_token(user_id)
        created = await asyncio.gather(*(self.create_event(token, e) for e in events))
        logger.info("Created cycle events for user %s starting %s", user_id, next_period_start)
        return list(created)
