"""Notification engine exceptions.

Caller-facing errors (validation, rate limiting, missing templates or
recipients) propagate out of ``send``. Channel-level errors derive from
ChannelDeliveryError and are folded into the notification's per-channel
status by the dispatchers; they never reach the caller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional


class NotificationError(Exception):
    """Base class for notification engine errors.

    Attributes:
        error_code: Stable machine code used in audit records and bulk errors
    """

    error_code = "NOTIFICATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NotificationError):
    """The intent is malformed. Raised before any side effect."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class RateLimitExceeded(NotificationError):
    """The recipient exhausted its quota for this notification type."""

    error_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, retry_after_seconds: int, reset_at: datetime):
        super().__init__(message)
        self.remaining = 0
        self.retry_after_seconds = retry_after_seconds
        self.reset_at = reset_at


class TemplateNotFound(NotificationError):
    error_code = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str):
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class RecipientNotFound(NotificationError):
    error_code = "RECIPIENT_NOT_FOUND"

    def __init__(self, recipient_id: str):
        super().__init__(f"Recipient not found: {recipient_id}")
        self.recipient_id = recipient_id


class NotificationNotFound(NotificationError):
    """No notification with this id exists for the recipient."""

    error_code = "NOTIFICATION_NOT_FOUND"

    def __init__(self, notification_id: str):
        super().__init__(f"Notification not found: {notification_id}")
        self.notification_id = notification_id


class NotificationSendFailed(NotificationError):
    """Unexpected failure while processing an accepted intent."""

    error_code = "NOTIFICATION_SEND_FAILED"


class ChannelDeliveryError(NotificationError):
    """Base class for failures confined to one channel."""

    error_code = "CHANNEL_ERROR"


class NoProvidersAvailable(ChannelDeliveryError):
    error_code = "NO_PROVIDERS_AVAILABLE"

    def __init__(self, channel: str):
        super().__init__(f"No active providers configured for channel '{channel}'")
        self.channel = channel


class ProviderError(ChannelDeliveryError):
    """A provider (or every provider in the chain) failed.

    Attributes:
        provider_id: Provider whose error is reported (the last one tried)
        attempts: Number of providers tried
        provider_error_code: Error code returned by the provider, if any
    """

    error_code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        attempts: int = 1,
        provider_error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.provider_id = provider_id
        self.attempts = attempts
        self.provider_error_code = provider_error_code


class NoAddressOnFile(ChannelDeliveryError):
    error_code = "NO_ADDRESS_ON_FILE"

    def __init__(self, channel: str, recipient_id: str):
        super().__init__(
            f"Recipient '{recipient_id}' has no {channel} address on file"
        )
        self.channel = channel
        self.recipient_id = recipient_id
