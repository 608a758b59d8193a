"""GC Notify API client used by the GC Notify email and SMS providers."""

from .client import (
    EMAIL_ENDPOINT,
    SMS_ENDPOINT,
    epoch_seconds,
    create_jwt_token,
    create_authorization_header,
    post_notification,
)

__all__ = [
    "EMAIL_ENDPOINT",
    "SMS_ENDPOINT",
    "epoch_seconds",
    "create_jwt_token",
    "create_authorization_header",
    "post_notification",
]
