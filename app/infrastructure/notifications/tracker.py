"""Delivery tracking.

Writes per-channel progress (pending, sending, then sent or failed, and
later delivered or failed from provider receipts) onto the stored
notification and aggregates channel outcomes into the overall
notification status.

Channel progress writes are side effects: a store failure is logged and
never affects the delivery result. The final status write and receipt
writes are the point of their operation and propagate.
"""

from typing import Iterable, Mapping, Union

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    NotificationChannel,
    NotificationStatus,
    utc_now,
)
from infrastructure.notifications.store import NotificationStore

logger = get_module_logger()

ChannelOutcomes = Union[
    Mapping[NotificationChannel, ChannelAttempt], Iterable[ChannelAttempt]
]


class DeliveryTracker:
    """Records channel outcomes on notifications held in a NotificationStore."""

    def __init__(self, store: NotificationStore):
        self.store = store

    @staticmethod
    def aggregate_status(outcomes: ChannelOutcomes) -> NotificationStatus:
        """Collapse channel outcomes into one notification status.

        - every channel sent or delivered: SENT (DELIVERED if all delivered)
        - at least one failed and none succeeded: FAILED
        - anything else, including mixed outcomes: PENDING
        - no channels at all: FAILED
        """
        if isinstance(outcomes, Mapping):
            attempts = list(outcomes.values())
        else:
            attempts = list(outcomes)

        if not attempts:
            return NotificationStatus.FAILED

        statuses = [a.status for a in attempts]
        if all(s == ChannelStatus.DELIVERED for s in statuses):
            return NotificationStatus.DELIVERED
        if all(a.is_success for a in attempts):
            return NotificationStatus.SENT
        if any(s == ChannelStatus.FAILED for s in statuses) and not any(
            a.is_success for a in attempts
        ):
            return NotificationStatus.FAILED
        return NotificationStatus.PENDING

    def mark_sending(self, notification_id: str, channel: NotificationChannel) -> None:
        now = utc_now().isoformat()
        self._safe_update(
            notification_id,
            channel,
            {
                f"channel_status.{channel.value}.status": ChannelStatus.SENDING.value,
                f"channel_status.{channel.value}.updated_at": now,
                "updated_at": now,
            },
        )

    def record_attempt(self, notification_id: str, attempt: ChannelAttempt) -> None:
        """Store the final outcome of one channel, replacing earlier progress."""
        self._safe_update(
            notification_id,
            attempt.channel,
            {
                f"channel_status.{attempt.channel.value}": attempt.model_dump(mode="json"),
                "updated_at": utc_now().isoformat(),
            },
        )
        logger.info(
            "channel_outcome_recorded",
            notification_id=notification_id,
            channel=attempt.channel.value,
            status=attempt.status.value,
            provider_id=attempt.provider_id,
            error_code=attempt.error_code,
        )

    def record_receipt(self, notification_id: str, attempt: ChannelAttempt) -> None:
        """Store a channel outcome reported by the provider after sending."""
        self.store.update(
            notification_id,
            {
                f"channel_status.{attempt.channel.value}": attempt.model_dump(mode="json"),
                "updated_at": utc_now().isoformat(),
            },
        )
        logger.info(
            "channel_receipt_recorded",
            notification_id=notification_id,
            channel=attempt.channel.value,
            status=attempt.status.value,
        )

    def finalize(
        self, notification_id: str, outcomes: ChannelOutcomes
    ) -> NotificationStatus:
        """Persist the aggregated status once every channel has settled.

        A DELIVERED aggregate also stamps ``delivered_at``.
        """
        status = self.aggregate_status(outcomes)
        now = utc_now().isoformat()
        fields = {"status": status.value, "updated_at": now}
        if status == NotificationStatus.DELIVERED:
            fields["delivered_at"] = now
        self.store.update(notification_id, fields)
        return status

    def _safe_update(self, notification_id: str, channel: NotificationChannel, fields) -> None:
        try:
            self.store.update(notification_id, fields)
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "delivery_tracking_write_failed",
                notification_id=notification_id,
                channel=channel.value,
                error=str(e),
            )
