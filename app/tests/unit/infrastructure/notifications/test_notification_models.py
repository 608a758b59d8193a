"""Unit tests for notification engine models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    BulkNotificationRequest,
    Notification,
    NotificationChannel,
    NotificationIntent,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    RecipientProfile,
    expiration_for,
)


@pytest.mark.unit
class TestNotificationIntent:
    def test_minimal_intent_defaults(self):
        intent = NotificationIntent(
            recipient_id="user-1", type=NotificationType.REPORT_READY, title="Ready"
        )

        assert intent.message == ""
        assert intent.channels == []
        assert intent.priority == NotificationPriority.NORMAL
        assert intent.issued_by == "system"
        assert intent.provider_id is None

    def test_accepts_enum_values_as_strings(self):
        intent = NotificationIntent.model_validate(
            {
                "recipient_id": "user-1",
                "type": "event_cancelled",
                "title": "Cancelled",
                "channels": ["sms", "email"],
                "priority": "high",
            }
        )

        assert intent.type == NotificationType.EVENT_CANCELLED
        assert intent.channels == [NotificationChannel.SMS, NotificationChannel.EMAIL]
        assert intent.priority == NotificationPriority.HIGH

    @pytest.mark.parametrize("field", ["recipient_id", "title"])
    def test_rejects_blank_required_text(self, field):
        payload = {"recipient_id": "user-1", "type": "report_ready", "title": "Ready"}
        payload[field] = "   "
        with pytest.raises(ValidationError):
            NotificationIntent.model_validate(payload)

    def test_rejects_unknown_type_and_channel(self):
        with pytest.raises(ValidationError):
            NotificationIntent.model_validate(
                {"recipient_id": "u", "type": "birthday", "title": "t"}
            )
        with pytest.raises(ValidationError):
            NotificationIntent.model_validate(
                {"recipient_id": "u", "type": "report_ready", "title": "t", "channels": ["fax"]}
            )


@pytest.mark.unit
class TestNotification:
    def test_from_intent_builds_pending_record(self):
        intent = NotificationIntent(
            recipient_id="user-1",
            type=NotificationType.SECURITY_ALERT,
            title="New sign-in",
            message="A new device signed in.",
            data={"device": "laptop"},
            priority=NotificationPriority.URGENT,
            issued_by="security-service",
        )
        channels = [NotificationChannel.EMAIL, NotificationChannel.IN_APP]

        notification = Notification.from_intent(intent, channels)

        assert notification.status == NotificationStatus.PENDING
        assert notification.channels == channels
        assert set(notification.channel_status) == set(channels)
        assert all(
            a.status == ChannelStatus.PENDING for a in notification.channel_status.values()
        )
        assert notification.read is False
        assert notification.issued_by == "security-service"
        assert notification.expires_at - notification.created_at == timedelta(days=30)

    def test_ids_are_unique(self):
        intent = NotificationIntent(
            recipient_id="user-1", type=NotificationType.REPORT_READY, title="Ready"
        )
        first = Notification.from_intent(intent, [NotificationChannel.IN_APP])
        second = Notification.from_intent(intent, [NotificationChannel.IN_APP])
        assert first.id != second.id

    def test_json_round_trip_keeps_channel_keys(self):
        intent = NotificationIntent(
            recipient_id="user-1", type=NotificationType.REPORT_READY, title="Ready"
        )
        notification = Notification.from_intent(intent, [NotificationChannel.PUSH])

        restored = Notification.model_validate(notification.model_dump(mode="json"))

        assert NotificationChannel.PUSH in restored.channel_status
        assert restored.created_at == notification.created_at


@pytest.mark.unit
class TestExpiration:
    @pytest.mark.parametrize(
        "priority,days",
        [
            (NotificationPriority.URGENT, 30),
            (NotificationPriority.HIGH, 14),
            (NotificationPriority.NORMAL, 7),
            (NotificationPriority.LOW, 7),
        ],
    )
    def test_expiration_by_priority(self, priority, days):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert expiration_for(priority, now) == now + timedelta(days=days)


@pytest.mark.unit
class TestChannelAttempt:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (ChannelStatus.SENT, True),
            (ChannelStatus.DELIVERED, True),
            (ChannelStatus.FAILED, False),
            (ChannelStatus.PENDING, False),
            (ChannelStatus.SENDING, False),
        ],
    )
    def test_is_success(self, status, expected):
        attempt = ChannelAttempt(channel=NotificationChannel.EMAIL, status=status)
        assert attempt.is_success is expected


@pytest.mark.unit
class TestRecipientProfile:
    def test_valid_profile(self, profile_factory):
        profile = profile_factory(push_tokens=["a", "b"])
        assert profile.email == "user@example.com"
        assert profile.push_tokens == ["a", "b"]

    def test_rejects_invalid_email(self):
        with pytest.raises(ValidationError):
            RecipientProfile(recipient_id="user-1", email="not-an-email")

    @pytest.mark.parametrize("phone", ["5555550100", "+1555abc0100", "+123"])
    def test_rejects_non_e164_phone(self, phone):
        with pytest.raises(ValidationError):
            RecipientProfile(recipient_id="user-1", phone_number=phone)


@pytest.mark.unit
class TestBulkNotificationRequest:
    def test_intent_for_copies_shared_fields(self):
        request = BulkNotificationRequest(
            recipient_ids=["a", "b"],
            type=NotificationType.ANNOUNCEMENT,
            title="Office closed",
            data={"site": "north"},
            channels=[NotificationChannel.IN_APP],
            issued_by="admin",
        )

        intent = request.intent_for("b")

        assert intent["recipient_id"] == "b"
        assert intent["title"] == "Office closed"
        assert intent["channels"] == [NotificationChannel.IN_APP]
        assert intent["issued_by"] == "admin"
        intent["data"]["site"] = "south"
        assert request.data == {"site": "north"}

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValidationError):
            BulkNotificationRequest(
                recipient_ids=["a"],
                type=NotificationType.ANNOUNCEMENT,
                title="t",
                batch_size=0,
            )
