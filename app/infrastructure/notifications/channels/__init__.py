"""Channel dispatcher implementations."""

from infrastructure.notifications.channels.base import (
    ChannelDispatcher,
    ProviderDelivery,
)
from infrastructure.notifications.channels.email import EmailDispatcher
from infrastructure.notifications.channels.in_app import InAppDispatcher
from infrastructure.notifications.channels.push import PushDispatcher
from infrastructure.notifications.channels.sms import SMSDispatcher

__all__ = [
    "ChannelDispatcher",
    "EmailDispatcher",
    "InAppDispatcher",
    "ProviderDelivery",
    "PushDispatcher",
    "SMSDispatcher",
]
