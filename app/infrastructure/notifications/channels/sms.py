"""SMS channel dispatcher."""

from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ChannelDispatcher,
)
from infrastructure.notifications.exceptions import NoAddressOnFile
from infrastructure.notifications.models import (
    Notification,
    NotificationChannel,
    RecipientProfile,
)
from infrastructure.notifications.providers.base import ProviderMessage
from infrastructure.notifications.providers.registry import ProviderRegistry

logger = get_module_logger()

DEFAULT_SMS_MAX_LENGTH = 1600


class SMSDispatcher(ChannelDispatcher):
    """Delivers notifications as a single SMS.

    The body is ``"{title}: {message}"``, truncated to ``max_length``
    characters with a trailing ellipsis.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        max_length: int = DEFAULT_SMS_MAX_LENGTH,
    ):
        super().__init__(registry, provider_timeout_seconds)
        self.max_length = max_length

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.SMS

    def format_body(self, notification: Notification) -> str:
        if notification.message:
            body = f"{notification.title}: {notification.message}"
        else:
            body = notification.title
        if len(body) > self.max_length:
            logger.warning(
                "sms_message_truncated",
                notification_id=notification.id,
                original_length=len(body),
                max_length=self.max_length,
            )
            body = body[: self.max_length - 3] + "..."
        return body

    def build_message(
        self, notification: Notification, recipient: RecipientProfile
    ) -> ProviderMessage:
        if not recipient.phone_number:
            raise NoAddressOnFile(self.channel.value, recipient.recipient_id)
        return ProviderMessage(
            addresses=[recipient.phone_number],
            body=self.format_body(notification),
            priority=notification.priority,
            reference=notification.id,
        )
