"""Integration settings __init__ - exports all delivery provider settings."""

from infrastructure.configuration.integrations.fcm import FcmSettings
from infrastructure.configuration.integrations.notify import NotifySettings
from infrastructure.configuration.integrations.sendgrid import SendGridSettings
from infrastructure.configuration.integrations.twilio import TwilioSettings

__all__ = [
    "FcmSettings",
    "NotifySettings",
    "SendGridSettings",
    "TwilioSettings",
]
