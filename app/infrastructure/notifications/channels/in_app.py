"""In-app channel dispatcher."""

from typing import Optional

from infrastructure.notifications.channels.base import ChannelDispatcher
from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    Notification,
    NotificationChannel,
    RecipientProfile,
    utc_now,
)
from infrastructure.notifications.providers.base import ProviderMessage
from infrastructure.notifications.providers.registry import ProviderRegistry

IN_APP_PROVIDER_ID = "notification_store"


class InAppDispatcher(ChannelDispatcher):
    """In-app delivery.

    The persisted notification record is what the recipient's inbox reads,
    so there is no external provider: once the record exists the channel is
    delivered, with the notification id as message id.
    """

    def __init__(self, registry: Optional[ProviderRegistry] = None):
        super().__init__(registry or ProviderRegistry())

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.IN_APP

    def build_message(
        self, notification: Notification, recipient: RecipientProfile
    ) -> ProviderMessage:
        return ProviderMessage(
            addresses=[recipient.recipient_id],
            subject=notification.title,
            body=notification.message,
            data=notification.data,
            priority=notification.priority,
            reference=notification.id,
        )

    def deliver(
        self, message: ProviderMessage, provider_id: Optional[str] = None
    ) -> ChannelAttempt:
        return ChannelAttempt(
            channel=self.channel,
            status=ChannelStatus.SENT,
            provider_id=IN_APP_PROVIDER_ID,
            message_id=message.reference,
            attempts=1,
            updated_at=utc_now(),
        )
