"""Unit tests for SMSDispatcher."""

import pytest

from infrastructure.notifications.channels import SMSDispatcher
from infrastructure.notifications.models import ChannelStatus, NotificationChannel
from infrastructure.notifications.providers import ProviderRegistry

SMS = NotificationChannel.SMS


@pytest.mark.unit
class TestSMSFormatting:
    def test_body_joins_title_and_message(self, notification_factory):
        dispatcher = SMSDispatcher(ProviderRegistry())
        notification = notification_factory(title="Shift swap", message="Approved")

        assert dispatcher.format_body(notification) == "Shift swap: Approved"

    def test_title_only_when_message_empty(self, notification_factory):
        dispatcher = SMSDispatcher(ProviderRegistry())
        notification = notification_factory(title="Shift swap", message="")

        assert dispatcher.format_body(notification) == "Shift swap"

    def test_long_body_truncated_with_ellipsis(self, notification_factory):
        dispatcher = SMSDispatcher(ProviderRegistry())
        notification = notification_factory(title="T", message="x" * 2000)

        body = dispatcher.format_body(notification)

        assert len(body) == 1600
        assert body.endswith("...")
        assert body.startswith("T: xxx")

    def test_exact_limit_is_not_truncated(self, notification_factory):
        dispatcher = SMSDispatcher(ProviderRegistry(), max_length=20)
        notification = notification_factory(title="T", message="x" * 17)

        assert dispatcher.format_body(notification) == "T: " + "x" * 17


@pytest.mark.unit
class TestSMSDispatch:
    def test_sends_to_phone_number(
        self, provider_factory, notification_factory, profile_factory
    ):
        provider = provider_factory("twilio", SMS)
        dispatcher = SMSDispatcher(ProviderRegistry([provider]))

        attempt = dispatcher.dispatch(
            notification_factory(channels=[SMS]), profile_factory(phone_number="+15555550199")
        )

        assert attempt.status == ChannelStatus.SENT
        assert provider.calls[0].addresses == ["+15555550199"]
        assert provider.calls[0].subject is None

    def test_missing_phone_number(self, provider_factory, notification_factory, profile_factory):
        provider = provider_factory("twilio", SMS)
        dispatcher = SMSDispatcher(ProviderRegistry([provider]))

        attempt = dispatcher.dispatch(
            notification_factory(channels=[SMS]), profile_factory(phone_number=None)
        )

        assert attempt.error_code == "NO_ADDRESS_ON_FILE"
        assert provider.calls == []
