"""
Configuration Management

Pydantic-settings based configuration for the submission notifier.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from notifier.exceptions import ConfigError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with NOTIFIER_ and are case-insensitive.
    Delivery settings also accept the bare names used by the hosting
    platform (SENDGRID_API_KEY, FROM_EMAIL, TO_EMAIL, SHEETS_WEBHOOK_URL,
    SHEETS_SHARED_SECRET).
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFIER_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Email Provider Configuration
    email_provider: Literal["sendgrid", "ses"] = Field(
        default="sendgrid",
        description="Transactional email provider used for notifications",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFIER_SENDGRID_API_KEY", "SENDGRID_API_KEY"),
        description="SendGrid API key",
    )
    sendgrid_api_url: str = Field(
        default="https://api.sendgrid.com/v3/mail/send",
        description="SendGrid v3 mail/send endpoint",
    )
    from_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFIER_FROM_EMAIL", "FROM_EMAIL"),
        description="Verified sender address",
    )
    to_email: str = Field(
        default="",
        validation_alias=AliasChoices("NOTIFIER_TO_EMAIL", "TO_EMAIL"),
        description="Comma-separated recipient addresses",
    )

    # SES Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region",
    )
    ses_endpoint_url: str | None = Field(
        default=None,
        description="SES endpoint URL (for local development)",
    )
    ses_configuration_set: str | None = Field(
        default=None,
        description="SES configuration set for tracking",
    )

    # Backup Webhook Configuration
    backup_webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFIER_BACKUP_WEBHOOK_URL", "SHEETS_WEBHOOK_URL"),
        description="Endpoint that receives a JSON copy of every submission",
    )
    backup_shared_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFIER_BACKUP_SHARED_SECRET", "SHEETS_SHARED_SECRET"),
        description="Shared secret appended as ?secret= to the backup URL",
    )
    # AWS Lambda freezes the sandbox once the handler returns, so a detached
    # POST may stall until the next invocation or never finish. Set
    # NOTIFIER_BACKUP_DETACHED=false there; true suits long-lived processes.
    backup_detached: bool = Field(
        default=True,
        description="Return the response without waiting for the backup POST",
    )

    # Network Configuration
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to every outbound HTTP call",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="production",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def recipients(self) -> list[str]:
        """Recipient addresses parsed from the comma-separated TO_EMAIL."""
        return [addr.strip() for addr in self.to_email.split(",") if addr.strip()]

    @property
    def backup_enabled(self) -> bool:
        return bool(self.backup_webhook_url)

    @property
    def ses_config(self) -> dict:
        """SES client configuration."""
        config = {"region_name": self.aws_region}
        if self.ses_endpoint_url:
            config["endpoint_url"] = self.ses_endpoint_url
        return config

    def missing_delivery_settings(self) -> list[str]:
        """
        List the required delivery settings that are absent.

        SES authenticates through the execution role, so the API key is
        only required for SendGrid.
        """
        missing = []
        if self.email_provider == "sendgrid" and not self.sendgrid_api_key:
            missing.append("SENDGRID_API_KEY")
        if not (self.from_email or "").strip():
            missing.append("FROM_EMAIL")
        if not self.recipients:
            missing.append("TO_EMAIL")
        return missing

    def require_delivery_settings(self) -> None:
        """
        Raises:
            ConfigError: If any required delivery setting is absent
        """
        missing = self.missing_delivery_settings()
        if missing:
            raise ConfigError(missing=missing)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once per process.
    Call get_settings.cache_clear() in tests after changing the environment.
    """
    return Settings()
