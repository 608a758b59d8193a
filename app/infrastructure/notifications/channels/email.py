"""Email channel dispatcher."""

from infrastructure.notifications.channels.base import ChannelDispatcher
from infrastructure.notifications.exceptions import NoAddressOnFile
from infrastructure.notifications.models import (
    Notification,
    NotificationChannel,
    RecipientProfile,
)
from infrastructure.notifications.providers.base import ProviderMessage


class EmailDispatcher(ChannelDispatcher):
    """Delivers notifications as email: title as subject, message as body."""

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def build_message(
        self, notification: Notification, recipient: RecipientProfile
    ) -> ProviderMessage:
        if not recipient.email:
            raise NoAddressOnFile(self.channel.value, recipient.recipient_id)
        return ProviderMessage(
            addresses=[str(recipient.email)],
            subject=notification.title,
            body=notification.message,
            data={"notification_id": notification.id, "type": notification.type.value},
            priority=notification.priority,
            reference=notification.id,
        )
