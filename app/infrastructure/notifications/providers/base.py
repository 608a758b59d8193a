"""Delivery provider abstract base class.

A provider is one concrete way to deliver on a channel (SendGrid for email,
Twilio for SMS, FCM for push). Dispatchers call providers in ascending
priority order and fail over to the next one on error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationPriority,
)
from infrastructure.operations import OperationResult


class ProviderKind(Enum):
    """Concrete provider implementations known to the engine."""

    SENDGRID = "sendgrid"
    GC_NOTIFY_EMAIL = "gc_notify_email"
    GC_NOTIFY_SMS = "gc_notify_sms"
    TWILIO = "twilio"
    FCM = "fcm"


@dataclass
class ProviderMessage:
    """Rendered message handed to a provider.

    Attributes:
        addresses: Email address, phone number, or device tokens
        subject: Title line (email subject, push title)
        body: Rendered body text
        data: Extra payload (push data, tracking ids)
        priority: Notification priority
        reference: Notification id, used as the provider reference
    """

    addresses: List[str]
    body: str
    subject: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.NORMAL
    reference: Optional[str] = None

    @property
    def address(self) -> str:
        """The single address of an email or SMS message."""
        return self.addresses[0]


class ChannelProvider(ABC):
    """Abstract base class for delivery providers.

    Implementations must not raise for delivery failures; they return an
    OperationResult instead. On success ``data`` carries ``message_id``
    (and for push ``success_count``/``failure_count``).

    Args:
        provider_id: Identifier unique within the channel
        priority: Failover position, lower values are tried first
        is_active: Inactive providers are skipped by failover
    """

    def __init__(self, provider_id: str, priority: int = 1, is_active: bool = True):
        self.provider_id = provider_id
        self.priority = priority
        self.is_active = is_active

    @property
    @abstractmethod
    def kind(self) -> ProviderKind:
        """Implementation kind of this provider."""
        pass

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """Channel this provider delivers on."""
        pass

    @abstractmethod
    def send(self, message: ProviderMessage) -> OperationResult:
        """Deliver one message.

        Returns:
            OperationResult
            - Success: data={"message_id": "..."}
            - Failure: TRANSIENT_ERROR/PERMANENT_ERROR with error_code
        """
        pass

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check that the provider is configured and reachable."""
        pass

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(provider_id={self.provider_id!r}, "
            f"priority={self.priority}, is_active={self.is_active})"
        )
