"""Unit tests for InAppDispatcher."""

import pytest

from infrastructure.notifications.channels import InAppDispatcher
from infrastructure.notifications.channels.in_app import IN_APP_PROVIDER_ID
from infrastructure.notifications.models import ChannelStatus, NotificationChannel


@pytest.mark.unit
class TestInAppDispatcher:
    def test_delivered_once_persisted(self, notification_factory, profile_factory):
        notification = notification_factory(channels=[NotificationChannel.IN_APP])

        attempt = InAppDispatcher().dispatch(notification, profile_factory())

        assert attempt.status == ChannelStatus.SENT
        assert attempt.provider_id == IN_APP_PROVIDER_ID
        assert attempt.message_id == notification.id
        assert attempt.attempts == 1

    def test_needs_no_address(self, notification_factory, profile_factory):
        notification = notification_factory(channels=[NotificationChannel.IN_APP])
        profile = profile_factory(email=None, phone_number=None, push_tokens=[])

        attempt = InAppDispatcher().dispatch(notification, profile)

        assert attempt.status == ChannelStatus.SENT
