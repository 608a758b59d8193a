"""SendGrid integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class SendGridSettings(IntegrationSettings):
    """SendGrid v3 mail API configuration.

    Environment Variables:
        SENDGRID_API_KEY: SendGrid API key
        SENDGRID_FROM_EMAIL: Verified sender address
        SENDGRID_FROM_NAME: Display name for the sender
        SENDGRID_API_HOST: API host used by the SendGrid client
        SENDGRID_ENABLED: Register SendGrid as an email provider
        SENDGRID_PRIORITY: Failover position for email (lower first)
        SENDGRID_TIMEOUT_SECONDS: Timeout for API calls
    """

    SENDGRID_API_KEY: str | None = Field(default=None, alias="SENDGRID_API_KEY")
    SENDGRID_FROM_EMAIL: str = Field(
        default="noreply@example.com", alias="SENDGRID_FROM_EMAIL"
    )
    SENDGRID_FROM_NAME: str = Field(default="", alias="SENDGRID_FROM_NAME")
    SENDGRID_API_HOST: str = Field(
        default="https://api.sendgrid.com", alias="SENDGRID_API_HOST"
    )
    SENDGRID_ENABLED: bool = Field(default=False, alias="SENDGRID_ENABLED")
    SENDGRID_PRIORITY: int = Field(default=1, alias="SENDGRID_PRIORITY")
    SENDGRID_TIMEOUT_SECONDS: float = Field(
        default=10.0, alias="SENDGRID_TIMEOUT_SECONDS"
    )
