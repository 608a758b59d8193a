"""Push channel dispatcher.

Push fans out to every registered device token of the recipient. Providers
accept a bounded number of tokens per call, so large token sets are split
into sub-batches. Each sub-batch runs its own failover chain; a failing
sub-batch is counted and the remaining ones are still sent.
"""

from dataclasses import replace
from typing import List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ChannelDispatcher,
    ProviderDelivery,
)
from infrastructure.notifications.exceptions import (
    ChannelDeliveryError,
    NoAddressOnFile,
    NoProvidersAvailable,
    ProviderError,
)
from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    Notification,
    NotificationChannel,
    RecipientProfile,
    utc_now,
)
from infrastructure.notifications.providers.base import ProviderMessage
from infrastructure.notifications.providers.registry import ProviderRegistry

logger = get_module_logger()

DEFAULT_MAX_TOKENS_PER_CALL = 500


def chunk_tokens(tokens: List[str], size: int) -> List[List[str]]:
    return [tokens[i : i + size] for i in range(0, len(tokens), size)]


class PushDispatcher(ChannelDispatcher):
    """Delivers notifications to all device tokens of a recipient.

    The channel counts as sent when at least one device accepted the
    message. The attempt records ``success_count`` and ``failure_count``
    across all sub-batches.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        max_tokens_per_call: int = DEFAULT_MAX_TOKENS_PER_CALL,
    ):
        super().__init__(registry, provider_timeout_seconds)
        self.max_tokens_per_call = max_tokens_per_call

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def build_message(
        self, notification: Notification, recipient: RecipientProfile
    ) -> ProviderMessage:
        tokens = list(dict.fromkeys(t for t in recipient.push_tokens if t))
        if not tokens:
            raise NoAddressOnFile(self.channel.value, recipient.recipient_id)
        data = dict(notification.data)
        data.update(
            {
                "notification_id": notification.id,
                "type": notification.type.value,
            }
        )
        return ProviderMessage(
            addresses=tokens,
            subject=notification.title,
            body=notification.message,
            data=data,
            priority=notification.priority,
            reference=notification.id,
        )

    def deliver(
        self, message: ProviderMessage, provider_id: Optional[str] = None
    ) -> ChannelAttempt:
        batches = chunk_tokens(message.addresses, self.max_tokens_per_call)
        success_count = 0
        failure_count = 0
        attempts = 0
        first_delivery: Optional[ProviderDelivery] = None
        last_delivery: Optional[ProviderDelivery] = None
        last_error: Optional[ChannelDeliveryError] = None

        for index, tokens in enumerate(batches):
            batch_message = replace(message, addresses=tokens)
            try:
                if provider_id is not None:
                    delivery = self.send_with_provider(provider_id, batch_message)
                else:
                    delivery = self.send_with_failover(batch_message)
            except NoProvidersAvailable as e:
                # Same answer for every remaining sub-batch
                failure_count += sum(len(b) for b in batches[index:])
                last_error = e
                break
            except ChannelDeliveryError as e:
                failure_count += len(tokens)
                attempts += getattr(e, "attempts", 0)
                last_error = e
                logger.warning(
                    "push_batch_failed",
                    notification_id=message.reference,
                    batch_index=index,
                    batch_count=len(batches),
                    error=e.message,
                )
                continue
            except Exception as e:  # pylint: disable=broad-except
                failure_count += len(tokens)
                last_error = ProviderError(f"Unexpected error: {str(e)}")
                logger.error(
                    "push_batch_exception",
                    notification_id=message.reference,
                    batch_index=index,
                    error=str(e),
                    exc_info=True,
                )
                continue

            data = delivery.result.data or {}
            batch_success = data.get("success_count", len(tokens))
            success_count += batch_success
            failure_count += data.get("failure_count", len(tokens) - batch_success)
            attempts += delivery.attempts
            first_delivery = first_delivery or delivery
            last_delivery = delivery

        if len(batches) > 1:
            logger.info(
                "push_batches_completed",
                notification_id=message.reference,
                batch_count=len(batches),
                delivered=success_count,
                rejected=failure_count,
            )

        if success_count > 0 and first_delivery and last_delivery:
            first_data = first_delivery.result.data or {}
            return ChannelAttempt(
                channel=self.channel,
                status=ChannelStatus.SENT,
                provider_id=last_delivery.provider.provider_id,
                message_id=first_data.get("message_id"),
                attempts=attempts,
                success_count=success_count,
                failure_count=failure_count,
                updated_at=utc_now(),
            )

        if last_error is None:
            last_error = ProviderError("No device accepted the push notification")
        failed = self._failed_attempt(last_error)
        return failed.model_copy(
            update={
                "attempts": attempts,
                "success_count": success_count,
                "failure_count": failure_count,
            }
        )
