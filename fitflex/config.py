"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PLACEHOLDER_VALUES = {"", "change-me", "changeme"}
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    strava_client_id: str
    strava_client_secret: str
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key. Coach endpoints report 'not configured' without it.",
    )
    anthropic_model: str = Field(default="claude-sonnet-4-5-20250929")
    anthropic_summary_model: str = Field(default="claude-haiku-4-5-20251001")

    base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL used to build the Strava OAuth redirect.",
    )
    database_url: str = Field(
        default="sqlite:///./data/fitflex.db",
        description="SQLAlchemy-compatible database URL.",
    )
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)

    debug: bool = Field(default=False)
    cookie_secure: bool = Field(default=False)
    demo_user_id: str = Field(
        default="123e4567-e89b-12d3-a456-426614174000",
        description="Identity used for every request until real auth exists.",
    )

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    prompt_config_path: Path = Field(
        default=Path(__file__).resolve().parent / "prompts" / "coach.yaml",
    )

    calories_per_km: float = Field(default=65.0, gt=0)
    exclude_missing_heartrate: bool = Field(
        default=False,
        description="Leave runs without heart rate out of the average heart rate.",
    )
    fitness_summary_ttl_days: int = Field(default=7, ge=0)

    sync_page_size: int = Field(default=200, ge=1, le=200)
    sync_max_pages: int = Field(default=100, ge=1)
    sync_page_delay_seconds: float = Field(default=0.1, ge=0)
    sync_batch_size: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("strava_client_id", "strava_client_secret")
    @classmethod
    def reject_placeholder_credentials(cls, value: str) -> str:
        if value.strip().lower() in PLACEHOLDER_VALUES:
            raise ValueError(
                "STRAVA_CLIENT_ID and STRAVA_CLIENT_SECRET are required. "
                "Copy them from https://www.strava.com/settings/api into your .env file."
            )
        return value

    @field_validator("anthropic_api_key")
    @classmethod
    def blank_api_key_means_unset(cls, value: str | None) -> str | None:
        if value is None or value.strip().lower() in PLACEHOLDER_VALUES:
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return upper

    @property
    def strava_redirect_uri(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/strava/callback"


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; every caller shares the same instance."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
