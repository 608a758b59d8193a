"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache

from infrastructure.configuration import Settings
from infrastructure.notifications.service import NotificationService


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the entire application.
    The @lru_cache decorator ensures only ONE instance is created per process,
    even if called from multiple packages.

    Usage:
        from infrastructure.services import get_settings
        settings = get_settings()

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_notification_service() -> NotificationService:
    """
    Get application-scoped notification service singleton.

    Providers, rate limit store and dispatchers are built once from the
    application settings. The in-memory stores are used until the host
    application passes its own persistence to NotificationService directly.

    Returns:
        NotificationService: Cached service wired from settings.

    Usage:
        service = get_notification_service()
        notification = service.send(intent)
        unread = service.get_unread_count("user-123")
    """
    return NotificationService(settings=get_settings())
