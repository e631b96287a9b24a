"""
Recruiting Backend Settings

Process-wide options read from RECRUITING_* environment variables or a
local .env file. Conferencing and notification options live beside
their modules (ZoomConfig, NotificationConfig).
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Endpoint value that means "talk to moto, not a real endpoint"
MOCK_ENDPOINT = "mock"


def _aws_client_kwargs(region: str, endpoint_url: str | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"region_name": region}
    if endpoint_url and endpoint_url != MOCK_ENDPOINT:
        kwargs["endpoint_url"] = endpoint_url
    return kwargs


class Settings(BaseSettings):
    """
    Recruiting backend settings.

    Example: RECRUITING_TABLE_NAME=RecruitingRecords-prod
    """

    model_config = SettingsConfigDict(
        env_prefix="RECRUITING_",
        env_file=[".env.local", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Records table =====
    table_name: str = Field(
        default="RecruitingRecords",
        description="Single table holding recruit and operator items",
    )
    index_name: str = Field(
        default="GSI1",
        description="Secondary index keyed by owner (recruits) and role (operators)",
    )
    dynamodb_endpoint_url: str | None = Field(
        default=None,
        description="Override for DynamoDB Local; 'mock' under moto",
    )

    # ===== Outbound mail =====
    sender_address: str = Field(
        default="hr@recruiting.example.com",
        description="Verified SES identity candidate mail is sent from",
    )
    sender_name: str = Field(
        default="HR Team",
        description="Display name used when the acting operator has none",
    )
    mail_domain: str = Field(
        default="recruiting.example.com",
        description="Domain for List-Unsubscribe when none is configured",
    )
    ses_configuration_set: str | None = Field(
        default=None,
        description="SES configuration set attached to every send",
    )
    ses_endpoint_url: str | None = Field(
        default=None,
        description="Override for a local SES endpoint; 'mock' under moto",
    )

    # ===== Runtime =====
    aws_region: str = "us-west-2"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Where the OAuth callback sends the operator's browser",
    )
    default_timezone: str = Field(
        default="Asia/Manila",
        description="Zone interview dates and times are entered in",
    )

    @property
    def dynamodb_config(self) -> dict[str, Any]:
        return _aws_client_kwargs(self.aws_region, self.dynamodb_endpoint_url)

    @property
    def ses_config(self) -> dict[str, Any]:
        return _aws_client_kwargs(self.aws_region, self.ses_endpoint_url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings; call get_settings.cache_clear() after changing the environment."""
    return Settings()
