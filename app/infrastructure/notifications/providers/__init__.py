"""Delivery providers and the provider registry."""

from infrastructure.notifications.providers.base import (
    ChannelProvider,
    ProviderKind,
    ProviderMessage,
)
from infrastructure.notifications.providers.fcm import FCMPushProvider
from infrastructure.notifications.providers.gc_notify import (
    GCNotifyEmailProvider,
    GCNotifySMSProvider,
)
from infrastructure.notifications.providers.registry import ProviderRegistry
from infrastructure.notifications.providers.sendgrid import SendGridEmailProvider
from infrastructure.notifications.providers.twilio import TwilioSMSProvider

__all__ = [
    "ChannelProvider",
    "FCMPushProvider",
    "GCNotifyEmailProvider",
    "GCNotifySMSProvider",
    "ProviderKind",
    "ProviderMessage",
    "ProviderRegistry",
    "SendGridEmailProvider",
    "TwilioSMSProvider",
]
