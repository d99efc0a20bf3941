"""Environment-driven configuration for the work hours tracker.

Every setting the service reads lives on ``AppSettings``. Values come from the
process environment first and ``.env`` files second, so a development checkout
boots without any extra setup while a deployment only has to export the
variables it wants to change.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Work Hours Tracker"
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    # Display timezone for summary dates; storage is always UTC.
    TZ: str = "Europe/Brussels"
    LOG_LEVEL: str = "INFO"

    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))
    STORAGE_BACKEND: str = Field(default="sql", pattern="^(sql|memory)$")

    # Single-owner deployment: every record is scoped to this user id.
    OWNER_ID: str = "owner"
    OWNER_NAME: str = "Owner"

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))

    # Label substring -> kilometers. Order matters: the first match wins.
    LOCATION_DISTANCES: Annotated[dict[str, int], NoDecode] = Field(default_factory=lambda: {"Brakel": 18})
    DEFAULT_DISTANCE_KM: int = Field(default=50, ge=0)

    # Outbound sync is disabled while no remote URL is configured.
    SYNC_REMOTE_URL: str = ""
    SYNC_TIMEOUT: float = 10.0

    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)
    HOST: str = "0.0.0.0"
    PORT: int = 8089

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'worklog.db'}"

    @property
    def sync_enabled(self) -> bool:
        return bool(self.SYNC_REMOTE_URL.strip())

    @field_validator("LOCATION_DISTANCES", mode="before")
    @classmethod
    def parse_location_distances(cls, value: Any) -> dict[str, int]:
        if value in (None, "", {}):
            return {}
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("{"):
                value = json.loads(text)
            else:
                # "Brakel=18,Gent=50"
                pairs = [item.split("=", 1) for item in text.split(",") if item.strip()]
                try:
                    return {label.strip(): int(km) for label, km in pairs}
                except ValueError as exc:
                    raise ValueError("LOCATION_DISTANCES must look like 'Label=km,Label=km'") from exc
        if isinstance(value, dict):
            return {str(label): int(km) for label, km in value.items()}
        raise TypeError("LOCATION_DISTANCES must be a JSON object or 'Label=km' pairs")

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if not settings.DB_URL:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
