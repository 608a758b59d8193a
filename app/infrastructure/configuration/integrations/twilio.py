"""Twilio integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class TwilioSettings(IntegrationSettings):
    """Twilio Programmable Messaging configuration.

    Environment Variables:
        TWILIO_ACCOUNT_SID: Account SID (basic auth username)
        TWILIO_AUTH_TOKEN: Auth token (basic auth password)
        TWILIO_FROM_NUMBER: Sending phone number in E.164 format
        TWILIO_API_URL: REST API base URL
        TWILIO_ENABLED: Register Twilio as an SMS provider
        TWILIO_PRIORITY: Failover position for SMS (lower first)
        TWILIO_TIMEOUT_SECONDS: HTTP timeout for API calls
    """

    TWILIO_ACCOUNT_SID: str | None = Field(default=None, alias="TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: str | None = Field(default=None, alias="TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: str | None = Field(default=None, alias="TWILIO_FROM_NUMBER")
    TWILIO_API_URL: str = Field(
        default="https://api.twilio.com/2010-04-01", alias="TWILIO_API_URL"
    )
    TWILIO_ENABLED: bool = Field(default=False, alias="TWILIO_ENABLED")
    TWILIO_PRIORITY: int = Field(default=1, alias="TWILIO_PRIORITY")
    TWILIO_TIMEOUT_SECONDS: float = Field(default=10.0, alias="TWILIO_TIMEOUT_SECONDS")
