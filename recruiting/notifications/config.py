"""
Notification Configuration

Settings specific to outbound candidate email.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationConfig(BaseSettings):
    """
    Notification dispatcher configuration.

    These settings extend the base system settings; sender address
    and SES options come from the RECRUITING_* settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    company_name: str = Field(
        default="Recruiting Team",
        description="Organization name shown in email footers",
    )
    mailer_name: str = Field(
        default="Recruiting CRM",
        description="Value of the X-Mailer header",
    )
    unsubscribe_domain: str | None = Field(
        default=None,
        description="Domain for the List-Unsubscribe mailbox (default: RECRUITING_MAIL_DOMAIN)",
    )
    template_directory: str | None = Field(
        default=None,
        description="Directory containing email templates (default: bundled templates)",
    )
    send_result_emails: bool = Field(
        default=True,
        description="Allow interview outcome emails when a request asks for them",
    )
    default_meeting_duration: int = Field(
        default=60,
        ge=1,
        description="Duration shown when a meeting has none",
    )

    @property
    def template_path(self) -> Path:
        """Get absolute path to template directory."""
        if self.template_directory:
            return Path(self.template_directory)
        return Path(__file__).parent / "templates"


@lru_cache
def get_notification_config() -> NotificationConfig:
    """Get cached notification configuration."""
    return NotificationConfig()
