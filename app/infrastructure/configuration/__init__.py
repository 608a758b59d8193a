"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the
notification dispatch engine using Pydantic BaseSettings with domain-based
organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    NotificationSettings: Engine tuning settings class (for testing)

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    batch_size = settings.notifications.bulk_batch_size
    sendgrid_enabled = settings.sendgrid.SENDGRID_ENABLED

    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.features.notifications import (
    NotificationSettings,
)

__all__ = ["Settings", "settings", "NotificationSettings"]
