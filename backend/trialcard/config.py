"""Application settings loaded once from the environment."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Request
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable process-wide configuration.

    ``JWT_SECRET`` has no default: constructing settings without it raises, so the
    application refuses to start rather than signing tokens with a guessable key.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Digital Trial Card API"
    testing: bool = False

    jwt_secret: str = Field(min_length=1)
    refresh_token_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24
    refresh_token_expire_days: int = 7

    database_url: str = "sqlite:///./trialcard.db"

    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    mail_sender_name: str = "Digital Trial Card"

    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"
    log_format: str = "text"
    sentry_dsn: str | None = None
    celery_broker_url: str = "memory://"

    @property
    def refresh_secret(self) -> str:
        return self.refresh_token_secret or f"{self.jwt_secret}_refresh"

    @property
    def access_token_expires_in(self) -> str:
        return f"{self.access_token_expire_hours}h"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def current_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings bound to the running app."""

    return request.app.state.settings
