"""Channel routing.

Decides which channels a notification goes out on. An explicit channel
list on the intent always wins; otherwise the notification type picks the
channels from a static table.
"""

from typing import Dict, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    CANCELLATION_TYPES,
    REMINDER_TYPES,
    URGENT_TYPES,
    NotificationChannel,
    NotificationIntent,
    NotificationType,
    RecipientProfile,
)

logger = get_module_logger()


def build_default_routes() -> Dict[NotificationType, List[NotificationChannel]]:
    routes: Dict[NotificationType, List[NotificationChannel]] = {}
    for notification_type in CANCELLATION_TYPES:
        routes[notification_type] = [
            NotificationChannel.EMAIL,
            NotificationChannel.SMS,
            NotificationChannel.PUSH,
        ]
    for notification_type in REMINDER_TYPES:
        routes[notification_type] = [NotificationChannel.PUSH]
    for notification_type in URGENT_TYPES:
        routes[notification_type] = [
            NotificationChannel.EMAIL,
            NotificationChannel.SMS,
            NotificationChannel.PUSH,
            NotificationChannel.IN_APP,
        ]
    return routes


class ChannelRouter:
    """Resolves the channel set of a notification.

    Types without a route go in-app, plus email when the recipient has an
    address. Routed channels are not filtered by address availability: a
    missing address is reported per channel at dispatch time.
    """

    def __init__(
        self, routes: Optional[Dict[NotificationType, List[NotificationChannel]]] = None
    ):
        self.routes = routes if routes is not None else build_default_routes()

    def candidate_channels(self, intent: NotificationIntent) -> List[NotificationChannel]:
        """Channels the intent may resolve to before the recipient is known.

        Exact for explicit and routed intents; for unrouted types this is
        the widest default (in-app plus email).
        """
        if intent.channels:
            # Keep caller order, drop repeats
            return list(dict.fromkeys(intent.channels))

        routed = self.routes.get(intent.type)
        if routed is not None:
            return list(routed)

        return [NotificationChannel.IN_APP, NotificationChannel.EMAIL]

    def resolve_channels(
        self, intent: NotificationIntent, recipient: RecipientProfile
    ) -> List[NotificationChannel]:
        if intent.channels or intent.type in self.routes:
            return self.candidate_channels(intent)

        channels = [NotificationChannel.IN_APP]
        if recipient.email:
            channels.append(NotificationChannel.EMAIL)
        logger.debug(
            "channels_defaulted",
            notification_type=intent.type.value,
            channels=[c.value for c in channels],
        )
        return channels
