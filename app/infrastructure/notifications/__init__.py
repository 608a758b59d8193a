"""Multi-channel notification dispatch engine.

Delivers notification intents over email, SMS, push and in-app with:
- Channel routing by notification type
- Ordered provider failover per channel
- Per-recipient, per-type rate limiting
- Template rendering
- Bulk fan-out with per-recipient outcomes
- Audit through post-send hooks

Usage:
    from infrastructure.notifications import (
        BulkNotificationRequest,
        NotificationType,
    )
    from infrastructure.services import get_notification_service

    service = get_notification_service()

    notification = service.send(
        {
            "recipient_id": "user-123",
            "type": NotificationType.APPOINTMENT_REMINDER,
            "title": "Appointment tomorrow",
            "message": "Your appointment is at 10:00",
        }
    )
    logger.info("sent", status=notification.status.value)

    result = service.send_bulk(
        BulkNotificationRequest(
            recipient_ids=["user-1", "user-2"],
            type=NotificationType.ANNOUNCEMENT,
            title="Maintenance",
            message="Service will be down at 02:00",
        )
    )
    logger.info("bulk_sent", sent=result.sent, failed=result.failed)
"""

# Models
from infrastructure.notifications.models import (
    BulkNotificationRequest,
    BulkNotificationResult,
    BulkRecipientError,
    ChannelAttempt,
    ChannelStatus,
    Notification,
    NotificationChannel,
    NotificationIntent,
    NotificationPage,
    NotificationPriority,
    NotificationStats,
    NotificationStatus,
    NotificationType,
    RecipientProfile,
    Template,
)

# Errors
from infrastructure.notifications.exceptions import (
    ChannelDeliveryError,
    NoAddressOnFile,
    NoProvidersAvailable,
    NotificationError,
    NotificationNotFound,
    NotificationSendFailed,
    ProviderError,
    RateLimitExceeded,
    RecipientNotFound,
    TemplateNotFound,
    ValidationError,
)

# Engine components
from infrastructure.notifications.batch import BatchProcessor
from infrastructure.notifications.hooks import AuditHook, SendOutcome, hookimpl
from infrastructure.notifications.orchestrator import NotificationOrchestrator
from infrastructure.notifications.rate_limiting import (
    InMemoryRateLimitStore,
    RateLimiter,
    RedisRateLimitStore,
)
from infrastructure.notifications.router import ChannelRouter
from infrastructure.notifications.store import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
    InMemoryTemplateStore,
)
from infrastructure.notifications.templates import TemplateEngine
from infrastructure.notifications.tracker import DeliveryTracker

# Service facade
from infrastructure.notifications.service import NotificationService

# Export all public interfaces
__all__ = [
    # Models
    "BulkNotificationRequest",
    "BulkNotificationResult",
    "BulkRecipientError",
    "ChannelAttempt",
    "ChannelStatus",
    "Notification",
    "NotificationChannel",
    "NotificationIntent",
    "NotificationPage",
    "NotificationPriority",
    "NotificationStats",
    "NotificationStatus",
    "NotificationType",
    "RecipientProfile",
    "Template",
    # Errors
    "ChannelDeliveryError",
    "NoAddressOnFile",
    "NoProvidersAvailable",
    "NotificationError",
    "NotificationNotFound",
    "NotificationSendFailed",
    "ProviderError",
    "RateLimitExceeded",
    "RecipientNotFound",
    "TemplateNotFound",
    "ValidationError",
    # Engine components
    "AuditHook",
    "BatchProcessor",
    "ChannelRouter",
    "DeliveryTracker",
    "InMemoryNotificationStore",
    "InMemoryRateLimitStore",
    "InMemoryRecipientDirectory",
    "InMemoryTemplateStore",
    "NotificationOrchestrator",
    "RateLimiter",
    "RedisRateLimitStore",
    "SendOutcome",
    "TemplateEngine",
    "hookimpl",
    # Service facade
    "NotificationService",
]
