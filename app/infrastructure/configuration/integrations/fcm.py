"""Firebase Cloud Messaging integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class FcmSettings(IntegrationSettings):
    """FCM HTTP API configuration.

    Environment Variables:
        FCM_SERVER_KEY: Server key used in the ``Authorization: key=`` header
        FCM_API_URL: Send endpoint
        FCM_ENABLED: Register FCM as a push provider
        FCM_PRIORITY: Failover position for push (lower first)
        FCM_TIMEOUT_SECONDS: HTTP timeout for API calls
    """

    FCM_SERVER_KEY: str | None = Field(default=None, alias="FCM_SERVER_KEY")
    FCM_API_URL: str = Field(
        default="https://fcm.googleapis.com/fcm/send", alias="FCM_API_URL"
    )
    FCM_ENABLED: bool = Field(default=False, alias="FCM_ENABLED")
    FCM_PRIORITY: int = Field(default=1, alias="FCM_PRIORITY")
    FCM_TIMEOUT_SECONDS: float = Field(default=10.0, alias="FCM_TIMEOUT_SECONDS")
