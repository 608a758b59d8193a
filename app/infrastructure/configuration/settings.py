"""Notification dispatch engine configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Provider integration settings
from infrastructure.configuration.integrations import (
    FcmSettings,
    NotifySettings,
    SendGridSettings,
    TwilioSettings,
)

# Feature settings
from infrastructure.configuration.features import NotificationSettings


class Settings(BaseSettings):
    """Notification dispatch engine configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: Delivery provider credentials (GC Notify, SendGrid,
      Twilio, FCM)
    - **Features**: Engine tuning (batching, rate limits, timeouts)

    Environment Variables:
        PREFIX: Environment prefix for multi-tenant deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.configuration import settings

        window = settings.notifications.rate_limit_window_seconds
        api_url = settings.notify.NOTIFY_API_URL

        if settings.is_production:
            # Production-specific logic...
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    notify: NotifySettings
    sendgrid: SendGridSettings
    twilio: TwilioSettings
    fcm: FcmSettings

    # Feature settings
    notifications: NotificationSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "notify": NotifySettings,
            "sendgrid": SendGridSettings,
            "twilio": TwilioSettings,
            "fcm": FcmSettings,
            # Features
            "notifications": NotificationSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the singleton settings instance
settings = Settings()
