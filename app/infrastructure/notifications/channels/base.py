"""Channel dispatcher abstract base class.

A dispatcher owns delivery on one channel: it resolves the recipient's
address, renders the provider message and walks the provider registry in
priority order until one provider succeeds. Every outcome, including
failures, is returned as a ChannelAttempt; nothing raised inside a
dispatcher escapes ``dispatch``.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.exceptions import (
    ChannelDeliveryError,
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
from infrastructure.notifications.providers.base import (
    ChannelProvider,
    ProviderMessage,
)
from infrastructure.notifications.providers.registry import ProviderRegistry
from infrastructure.operations import OperationResult

logger = get_module_logger()

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 15.0


@dataclass
class ProviderDelivery:
    """Successful provider call within a failover chain."""

    provider: ChannelProvider
    result: OperationResult
    attempts: int


class ChannelDispatcher(ABC):
    """Abstract base class for channel dispatchers.

    Subclasses supply the channel, the address lookup and the message
    rendering. Failover, provider timeouts and error folding live here.

    Args:
        registry: ProviderRegistry holding this channel's providers
        provider_timeout_seconds: Upper bound for a single provider call
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ):
        self.registry = registry
        self.provider_timeout_seconds = provider_timeout_seconds

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """Channel served by this dispatcher."""
        pass

    @abstractmethod
    def build_message(
        self, notification: Notification, recipient: RecipientProfile
    ) -> ProviderMessage:
        """Resolve the address and render the provider message.

        Raises:
            NoAddressOnFile: If the recipient has no address for the channel.
        """
        pass

    def dispatch(
        self,
        notification: Notification,
        recipient: RecipientProfile,
        provider_id: Optional[str] = None,
    ) -> ChannelAttempt:
        """Deliver a notification on this channel.

        Args:
            notification: Persisted notification to deliver
            recipient: Recipient contact details
            provider_id: Use exactly this provider, without failover

        Returns:
            ChannelAttempt with SENT or FAILED status
        """
        log = logger.bind(
            notification_id=notification.id,
            channel=self.channel.value,
        )
        try:
            message = self.build_message(notification, recipient)
            return self.deliver(message, provider_id)
        except ChannelDeliveryError as e:
            log.warning(
                "channel_delivery_failed", error=e.message, error_code=e.error_code
            )
            return self._failed_attempt(e)
        except Exception as e:  # pylint: disable=broad-except
            log.error("channel_delivery_exception", error=str(e), exc_info=True)
            return ChannelAttempt(
                channel=self.channel,
                status=ChannelStatus.FAILED,
                error=f"Unexpected error: {str(e)}",
                error_code="CHANNEL_EXCEPTION",
                updated_at=utc_now(),
            )

    def deliver(
        self, message: ProviderMessage, provider_id: Optional[str] = None
    ) -> ChannelAttempt:
        """Send a rendered message and describe the outcome.

        Raises:
            ChannelDeliveryError: When no provider delivered the message.
        """
        if provider_id is not None:
            delivery = self.send_with_provider(provider_id, message)
        else:
            delivery = self.send_with_failover(message)
        return self._sent_attempt(delivery)

    def send_with_provider(
        self, provider_id: str, message: ProviderMessage
    ) -> ProviderDelivery:
        """Call one explicitly requested provider. No failover.

        Raises:
            ProviderError: If the provider is unknown, inactive or fails.
        """
        provider = self.registry.get_provider(self.channel, provider_id)
        if provider is None or not provider.is_active:
            raise ProviderError(
                f"Provider '{provider_id}' is not available for channel "
                f"'{self.channel.value}'",
                provider_id=provider_id,
                attempts=0,
            )

        result = self.call_provider(provider, message)
        if not result.is_success:
            raise ProviderError(
                result.message,
                provider_id=provider.provider_id,
                provider_error_code=result.error_code,
            )
        return ProviderDelivery(provider=provider, result=result, attempts=1)

    def send_with_failover(self, message: ProviderMessage) -> ProviderDelivery:
        """Try active providers in priority order until one succeeds.

        Raises:
            NoProvidersAvailable: If the channel has no active provider.
            ProviderError: With the last provider's error when all fail.
        """
        providers = self.registry.get_ordered_providers(self.channel)
        if not providers:
            raise NoProvidersAvailable(self.channel.value)

        last_provider = providers[-1]
        last_result: Optional[OperationResult] = None
        for attempt, provider in enumerate(providers, start=1):
            result = self.call_provider(provider, message)
            if result.is_success:
                if attempt > 1:
                    logger.info(
                        "provider_failover_succeeded",
                        channel=self.channel.value,
                        provider_id=provider.provider_id,
                        attempts=attempt,
                    )
                return ProviderDelivery(provider=provider, result=result, attempts=attempt)

            logger.warning(
                "provider_send_failed",
                channel=self.channel.value,
                provider_id=provider.provider_id,
                error=result.message,
                error_code=result.error_code,
                retryable=result.is_transient,
                remaining_providers=len(providers) - attempt,
            )
            last_provider, last_result = provider, result

        raise ProviderError(
            last_result.message if last_result else "All providers failed",
            provider_id=last_provider.provider_id,
            attempts=len(providers),
            provider_error_code=last_result.error_code if last_result else None,
        )

    def call_provider(
        self, provider: ChannelProvider, message: ProviderMessage
    ) -> OperationResult:
        """Run one provider call under the provider timeout.

        The call runs on its own worker thread so a hung provider cannot
        hold the chain past the timeout. A timed-out worker is abandoned,
        not joined.
        """
        executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"provider-{provider.provider_id}"
        )
        try:
            future = executor.submit(provider.send, message)
            return future.result(timeout=self.provider_timeout_seconds)
        except FuturesTimeoutError:
            return OperationResult.transient_error(
                f"Provider '{provider.provider_id}' timed out after "
                f"{self.provider_timeout_seconds}s",
                error_code="PROVIDER_TIMEOUT",
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "provider_send_exception",
                channel=self.channel.value,
                provider_id=provider.provider_id,
                error=str(e),
                exc_info=True,
            )
            return OperationResult.transient_error(
                f"Provider '{provider.provider_id}' raised: {str(e)}",
                error_code="PROVIDER_EXCEPTION",
            )
        finally:
            executor.shutdown(wait=False)

    def _sent_attempt(self, delivery: ProviderDelivery) -> ChannelAttempt:
        data = delivery.result.data or {}
        return ChannelAttempt(
            channel=self.channel,
            status=ChannelStatus.SENT,
            provider_id=delivery.provider.provider_id,
            message_id=data.get("message_id"),
            attempts=delivery.attempts,
            updated_at=utc_now(),
        )

    def _failed_attempt(self, error: ChannelDeliveryError) -> ChannelAttempt:
        provider_id = getattr(error, "provider_id", None)
        attempts = getattr(error, "attempts", 0)
        return ChannelAttempt(
            channel=self.channel,
            status=ChannelStatus.FAILED,
            provider_id=provider_id,
            error=error.message,
            error_code=error.error_code,
            attempts=attempts,
            updated_at=utc_now(),
        )
