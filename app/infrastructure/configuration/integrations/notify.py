"""GC Notify integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class NotifySettings(IntegrationSettings):
    """GC Notify API configuration.

    GC Notify can back both the email and the SMS channel. Each channel has
    its own enabled flag, priority and template id because GC Notify sends
    through pre-registered templates with ``subject`` and ``body``
    personalisation fields.

    Environment Variables:
        NOTIFY_SERVICE_ID: GC Notify service id (JWT issuer)
        NOTIFY_API_SECRET: GC Notify API key secret
        NOTIFY_API_URL: GC Notify API endpoint URL
        NOTIFY_EMAIL_ENABLED: Register GC Notify as an email provider
        NOTIFY_EMAIL_PRIORITY: Failover position for email (lower first)
        NOTIFY_EMAIL_TEMPLATE_ID: Generic email template id
        NOTIFY_SMS_ENABLED: Register GC Notify as an SMS provider
        NOTIFY_SMS_PRIORITY: Failover position for SMS (lower first)
        NOTIFY_SMS_TEMPLATE_ID: Generic SMS template id
        NOTIFY_TIMEOUT_SECONDS: HTTP timeout for API calls

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        api_url = settings.notify.NOTIFY_API_URL
        service_id = settings.notify.NOTIFY_SERVICE_ID
        ```
    """

    NOTIFY_SERVICE_ID: str | None = Field(default=None, alias="NOTIFY_SERVICE_ID")
    NOTIFY_API_SECRET: str | None = Field(default=None, alias="NOTIFY_API_SECRET")
    NOTIFY_API_URL: str = Field(
        default="https://api.notification.canada.ca", alias="NOTIFY_API_URL"
    )
    NOTIFY_EMAIL_ENABLED: bool = Field(default=False, alias="NOTIFY_EMAIL_ENABLED")
    NOTIFY_EMAIL_PRIORITY: int = Field(default=2, alias="NOTIFY_EMAIL_PRIORITY")
    NOTIFY_EMAIL_TEMPLATE_ID: str | None = Field(
        default=None, alias="NOTIFY_EMAIL_TEMPLATE_ID"
    )
    NOTIFY_SMS_ENABLED: bool = Field(default=False, alias="NOTIFY_SMS_ENABLED")
    NOTIFY_SMS_PRIORITY: int = Field(default=2, alias="NOTIFY_SMS_PRIORITY")
    NOTIFY_SMS_TEMPLATE_ID: str | None = Field(
        default=None, alias="NOTIFY_SMS_TEMPLATE_ID"
    )
    NOTIFY_TIMEOUT_SECONDS: float = Field(default=10.0, alias="NOTIFY_TIMEOUT_SECONDS")
