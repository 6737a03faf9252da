"""Webhook receiver configuration."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the webhook receiver.

    ``port`` and ``public_url`` also honour the plain ``PORT`` and
    ``RAILWAY_STATIC_URL`` variables set by hosting platforms.
    """

    host: str = "0.0.0.0"
    port: int = Field(
        default=4000,
        validation_alias=AliasChoices("WEBHOOK_RECEIVER_PORT", "PORT"),
    )
    log_level: str = "INFO"

    # Only shown in the startup banner
    public_url: str = Field(
        default="",
        validation_alias=AliasChoices("WEBHOOK_RECEIVER_PUBLIC_URL", "RAILWAY_STATIC_URL"),
    )

    model_config = {
        "env_prefix": "WEBHOOK_RECEIVER_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def base_url(self) -> str:
        return self.public_url or f"http://localhost:{self.port}"


def get_settings() -> Settings:
    """Load settings from the environment (and ``.env`` if present)."""
    return Settings()
