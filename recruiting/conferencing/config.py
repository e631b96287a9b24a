"""
Conferencing Configuration

Zoom OAuth app credentials and API endpoints.
All settings can be overridden via ZOOM_* environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZoomConfig(BaseSettings):
    """
    Zoom OAuth app and meetings API configuration.

    Environment variables are prefixed with ZOOM_.
    Example: ZOOM_CLIENT_ID=abc123
    """

    model_config = SettingsConfigDict(
        env_prefix="ZOOM_",
        env_file=[".env.local", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OAuth app
    client_id: str = Field(default="", description="OAuth client id")
    client_secret: SecretStr = Field(default=SecretStr(""), description="OAuth client secret")
    redirect_uri: str = Field(
        default="http://localhost:8000/zoom/auth/callback",
        description="Registered OAuth redirect URI",
    )
    scopes: str | None = Field(
        default=None,
        description="Space-separated scopes requested at authorization (app defaults if unset)",
    )

    # Endpoints
    authorize_url: str = Field(default="https://zoom.us/oauth/authorize")
    token_url: str = Field(default="https://zoom.us/oauth/token")
    api_base_url: str = Field(default="https://api.zoom.us/v2")

    # Behavior
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for every outbound Zoom call",
    )
    refresh_margin_seconds: int = Field(
        default=300,
        ge=0,
        description="Refresh access tokens expiring within this many seconds",
    )
    state_ttl_seconds: int = Field(
        default=600,
        gt=0,
        description="Lifetime of an OAuth state value",
    )
    default_meeting_duration: int = Field(
        default=60,
        ge=1,
        le=1440,
        description="Meeting length in minutes when not specified",
    )
    default_timezone: str = Field(
        default="Asia/Manila",
        description="Meeting timezone when not specified",
    )
    passcode_length: int = Field(default=6, ge=1, le=10)

    # Meeting settings defaults
    host_video: bool = Field(default=True)
    participant_video: bool = Field(default=True)
    mute_on_entry: bool = Field(default=True)
    waiting_room: bool = Field(default=True)
    join_before_host: bool = Field(default=False)
    auto_recording: Literal["none", "local", "cloud"] = Field(default="none")

    @property
    def is_configured(self) -> bool:
        """True once client credentials are present."""
        return bool(self.client_id and self.client_secret.get_secret_value())


@lru_cache(maxsize=1)
def get_zoom_config() -> ZoomConfig:
    """Get cached Zoom configuration."""
    return ZoomConfig()
