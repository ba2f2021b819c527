"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    week_start: str = "monday"
    timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_week_start(raw: str | int) -> int:
    """Parse a week start day into a ``date.weekday()`` number (Monday is 0)."""
    if isinstance(raw, int):
        value = raw
    else:
        cleaned = raw.strip().lower()
        if cleaned.isdigit():
            value = int(cleaned)
        else:
            for index, name in enumerate(WEEKDAY_NAMES):
                if cleaned in {name, name[:3]}:
                    return index
            raise ValueError(f"Unknown week start day: {raw!r}")
    if not 0 <= value <= len(WEEKDAY_NAMES) - 1:
        raise ValueError(f"Week start day out of range: {raw!r}")
    return value
