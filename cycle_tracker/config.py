"""Application configuration loaded from environment variables."""

from functools import lru_cache
from uuid import UUID

from pydantic import ValidationError
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""

    def __init__(self, missing: list[str], invalid: list[str] | None = None) -> None:
        self.missing = missing
        self.invalid = invalid or []
        lines = []
        if self.missing:
            lines.append("Missing required settings: " + ", ".join(self.missing))
        if self.invalid:
            lines.append("Invalid settings: " + "; ".join(self.invalid))
        super().__init__("\n".join(lines))


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Cycle Tracker"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Supabase ---
    supabase_url: str
    supabase_db_url: str  # direct postgres connection string for asyncpg
    supabase_jwt_secret: str  # HS256 secret that signs Supabase access tokens
    supabase_jwt_audience: str = "authenticated"

    # --- Google Calendar ---
    google_client_id: str = ""
    google_client_secret: str = ""
    google_cycle_calendar_id: str = ""
    google_redirect_uri: str = "http://localhost:3000/oauth/callback"

    # --- Time zones ---
    default_timezone: str = "UTC"  # "today" for period logging and calendar events
    backfill_timezone: str = "UTC"  # "yesterday" for the daily backfill

    # --- Backfill ---
    backfill_user_id: UUID | None = None

    # --- Outbound HTTP ---
    http_timeout_seconds: float = 10.0

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def calendar_sync_enabled(self) -> bool:
        return bool(
            self.google_client_id
            and self.google_client_secret
            and self.google_cycle_calendar_id
        )


def load_settings(**overrides) -> Settings:
    """Build Settings and fail fast with every missing key listed.

    Raises:
        ConfigurationError: If any required setting is absent or malformed.
    """
    try:
        return Settings(**overrides)  # type: ignore[call-arg]
    except ValidationError as exc:
        missing: list[str] = []
        invalid: list[str] = []
        for error in exc.errors():
            key = ".".join(str(part) for part in error["loc"]).upper()
            if error["type"] == "missing":
                missing.append(key)
            else:
                invalid.append(f"{key}: {error['msg']}")
        raise ConfigurationError(missing, invalid) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
