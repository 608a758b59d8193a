"""Unit tests for delivery tracking and status aggregation."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    NotificationChannel,
    NotificationStatus,
)
from infrastructure.notifications.store import InMemoryNotificationStore
from infrastructure.notifications.tracker import DeliveryTracker

EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS
PUSH = NotificationChannel.PUSH


def _attempt(channel, status):
    return ChannelAttempt(channel=channel, status=status)


@pytest.mark.unit
class TestAggregateStatus:
    def test_all_sent_is_sent(self):
        outcomes = [_attempt(EMAIL, ChannelStatus.SENT), _attempt(SMS, ChannelStatus.DELIVERED)]
        assert DeliveryTracker.aggregate_status(outcomes) == NotificationStatus.SENT

    def test_all_delivered_is_delivered(self):
        outcomes = [_attempt(EMAIL, ChannelStatus.DELIVERED)]
        assert DeliveryTracker.aggregate_status(outcomes) == NotificationStatus.DELIVERED

    def test_all_failed_is_failed(self):
        outcomes = [_attempt(EMAIL, ChannelStatus.FAILED), _attempt(SMS, ChannelStatus.FAILED)]
        assert DeliveryTracker.aggregate_status(outcomes) == NotificationStatus.FAILED

    def test_mixed_outcome_is_pending(self):
        outcomes = {
            EMAIL: _attempt(EMAIL, ChannelStatus.FAILED),
            PUSH: _attempt(PUSH, ChannelStatus.SENT),
        }
        assert DeliveryTracker.aggregate_status(outcomes) == NotificationStatus.PENDING

    def test_unsettled_channels_are_pending(self):
        outcomes = [_attempt(EMAIL, ChannelStatus.SENT), _attempt(SMS, ChannelStatus.SENDING)]
        assert DeliveryTracker.aggregate_status(outcomes) == NotificationStatus.PENDING

    def test_no_channels_is_failed(self):
        assert DeliveryTracker.aggregate_status([]) == NotificationStatus.FAILED
        assert DeliveryTracker.aggregate_status({}) == NotificationStatus.FAILED


@pytest.mark.unit
class TestDeliveryTracker:
    def test_mark_sending_then_record_attempt(self, notification_factory):
        store = InMemoryNotificationStore()
        notification = notification_factory(channels=[EMAIL, SMS])
        store.create(notification)
        tracker = DeliveryTracker(store)

        tracker.mark_sending(notification.id, EMAIL)
        assert store.get(notification.id).channel_status[EMAIL].status == ChannelStatus.SENDING

        tracker.record_attempt(
            notification.id,
            ChannelAttempt(
                channel=EMAIL,
                status=ChannelStatus.SENT,
                provider_id="sendgrid",
                message_id="m-1",
                attempts=1,
            ),
        )

        stored = store.get(notification.id).channel_status
        assert stored[EMAIL].status == ChannelStatus.SENT
        assert stored[EMAIL].message_id == "m-1"
        assert stored[SMS].status == ChannelStatus.PENDING

    def test_finalize_persists_aggregate(self, notification_factory):
        store = InMemoryNotificationStore()
        notification = notification_factory(channels=[EMAIL])
        store.create(notification)

        status = DeliveryTracker(store).finalize(
            notification.id, {EMAIL: _attempt(EMAIL, ChannelStatus.SENT)}
        )

        assert status == NotificationStatus.SENT
        assert store.get(notification.id).status == NotificationStatus.SENT
        assert store.get(notification.id).delivered_at is None

    def test_progress_write_failures_are_logged_not_raised(self):
        store = MagicMock()
        store.update.side_effect = RuntimeError("store unavailable")
        tracker = DeliveryTracker(store)

        with patch("infrastructure.notifications.tracker.logger") as mock_logger:
            tracker.mark_sending("n-1", EMAIL)
            tracker.record_attempt("n-1", _attempt(EMAIL, ChannelStatus.SENT))

        assert mock_logger.error.call_count == 2
        assert mock_logger.error.call_args.args == ("delivery_tracking_write_failed",)

    def test_finalize_write_failure_propagates(self):
        store = MagicMock()
        store.update.side_effect = RuntimeError("store unavailable")

        with pytest.raises(RuntimeError):
            DeliveryTracker(store).finalize("n-1", [_attempt(EMAIL, ChannelStatus.SENT)])

    def test_receipt_overwrites_channel_and_delivered_aggregate_is_stamped(
        self, notification_factory
    ):
        store = InMemoryNotificationStore()
        notification = notification_factory(channels=[EMAIL])
        store.create(notification)
        tracker = DeliveryTracker(store)
        delivered = ChannelAttempt(
            channel=EMAIL,
            status=ChannelStatus.DELIVERED,
            provider_id="sendgrid",
            message_id="sg-1",
        )

        tracker.record_receipt(notification.id, delivered)
        status = tracker.finalize(notification.id, {EMAIL: delivered})

        stored = store.get(notification.id)
        assert status == NotificationStatus.DELIVERED
        assert stored.channel_status[EMAIL].status == ChannelStatus.DELIVERED
        assert stored.channel_status[EMAIL].message_id == "sg-1"
        assert stored.delivered_at is not None

    def test_receipt_write_failure_propagates(self):
        store = MagicMock()
        store.update.side_effect = RuntimeError("store unavailable")

        with pytest.raises(RuntimeError):
            DeliveryTracker(store).record_receipt(
                "n-1", _attempt(EMAIL, ChannelStatus.DELIVERED)
            )
