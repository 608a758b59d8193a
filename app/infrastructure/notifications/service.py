"""Notification service for dependency injection.

Wires settings into the full dispatch engine (providers, dispatchers, rate
limiter, orchestrator, batch processor) behind one class-based interface
that is easy to construct in tests and to replace with a mock.
"""

import time
from typing import Any, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING, Union

from infrastructure.audit import AuditSink, LoggingAuditSink
from infrastructure.logging import get_module_logger
from infrastructure.notifications.batch import BatchProcessor
from infrastructure.notifications.channels import (
    ChannelDispatcher,
    EmailDispatcher,
    InAppDispatcher,
    PushDispatcher,
    SMSDispatcher,
)
from infrastructure.notifications.models import (
    BulkNotificationRequest,
    BulkNotificationResult,
    ChannelStatus,
    Notification,
    NotificationChannel,
    NotificationPage,
    NotificationPriority,
    NotificationStats,
)
from infrastructure.notifications.orchestrator import IntentInput, NotificationOrchestrator
from infrastructure.notifications.providers import (
    ChannelProvider,
    FCMPushProvider,
    GCNotifyEmailProvider,
    GCNotifySMSProvider,
    ProviderKind,
    ProviderRegistry,
    SendGridEmailProvider,
    TwilioSMSProvider,
)
from infrastructure.notifications.hooks import AuditHook
from infrastructure.notifications.rate_limiting import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
)
from infrastructure.notifications.store import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
    InMemoryTemplateStore,
    NotificationStore,
    RecipientProfileProvider,
    TemplateStore,
)
from infrastructure.operations import OperationResult

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def _sendgrid(settings: "Settings") -> Optional[ChannelProvider]:
    config = settings.sendgrid
    if not config.SENDGRID_ENABLED:
        return None
    return SendGridEmailProvider(
        api_key=config.SENDGRID_API_KEY,
        from_email=config.SENDGRID_FROM_EMAIL,
        from_name=config.SENDGRID_FROM_NAME,
        api_host=config.SENDGRID_API_HOST,
        priority=config.SENDGRID_PRIORITY,
        timeout_seconds=config.SENDGRID_TIMEOUT_SECONDS,
    )


def _gc_notify_email(settings: "Settings") -> Optional[ChannelProvider]:
    config = settings.notify
    if not config.NOTIFY_EMAIL_ENABLED:
        return None
    return GCNotifyEmailProvider(
        service_id=config.NOTIFY_SERVICE_ID,
        api_secret=config.NOTIFY_API_SECRET,
        template_id=config.NOTIFY_EMAIL_TEMPLATE_ID,
        api_url=config.NOTIFY_API_URL,
        priority=config.NOTIFY_EMAIL_PRIORITY,
        timeout_seconds=config.NOTIFY_TIMEOUT_SECONDS,
    )


def _gc_notify_sms(settings: "Settings") -> Optional[ChannelProvider]:
    config = settings.notify
    if not config.NOTIFY_SMS_ENABLED:
        return None
    return GCNotifySMSProvider(
        service_id=config.NOTIFY_SERVICE_ID,
        api_secret=config.NOTIFY_API_SECRET,
        template_id=config.NOTIFY_SMS_TEMPLATE_ID,
        api_url=config.NOTIFY_API_URL,
        priority=config.NOTIFY_SMS_PRIORITY,
        timeout_seconds=config.NOTIFY_TIMEOUT_SECONDS,
    )


def _twilio(settings: "Settings") -> Optional[ChannelProvider]:
    config = settings.twilio
    if not config.TWILIO_ENABLED:
        return None
    return TwilioSMSProvider(
        account_sid=config.TWILIO_ACCOUNT_SID,
        auth_token=config.TWILIO_AUTH_TOKEN,
        from_number=config.TWILIO_FROM_NUMBER,
        api_url=config.TWILIO_API_URL,
        priority=config.TWILIO_PRIORITY,
        timeout_seconds=config.TWILIO_TIMEOUT_SECONDS,
    )


def _fcm(settings: "Settings") -> Optional[ChannelProvider]:
    config = settings.fcm
    if not config.FCM_ENABLED:
        return None
    return FCMPushProvider(
        server_key=config.FCM_SERVER_KEY,
        api_url=config.FCM_API_URL,
        priority=config.FCM_PRIORITY,
        timeout_seconds=config.FCM_TIMEOUT_SECONDS,
    )


_PROVIDER_FACTORIES: Dict[ProviderKind, Callable[["Settings"], Optional[ChannelProvider]]] = {
    ProviderKind.SENDGRID: _sendgrid,
    ProviderKind.GC_NOTIFY_EMAIL: _gc_notify_email,
    ProviderKind.GC_NOTIFY_SMS: _gc_notify_sms,
    ProviderKind.TWILIO: _twilio,
    ProviderKind.FCM: _fcm,
}


def build_provider_registry(settings: "Settings") -> ProviderRegistry:
    """Register every provider enabled in settings."""
    registry = ProviderRegistry()
    for kind, factory in _PROVIDER_FACTORIES.items():
        provider = factory(settings)
        if provider is None:
            logger.debug("provider_disabled", kind=kind.value)
            continue
        registry.register(provider)
    return registry


def build_dispatchers(
    settings: "Settings", registry: ProviderRegistry
) -> Dict[NotificationChannel, ChannelDispatcher]:
    """One dispatcher per channel, sharing the registry."""
    config = settings.notifications
    timeout = config.provider_timeout_seconds
    return {
        NotificationChannel.EMAIL: EmailDispatcher(registry, timeout),
        NotificationChannel.SMS: SMSDispatcher(
            registry, timeout, max_length=config.sms_max_length
        ),
        NotificationChannel.PUSH: PushDispatcher(
            registry, timeout, max_tokens_per_call=config.push_max_tokens_per_call
        ),
        NotificationChannel.IN_APP: InAppDispatcher(registry),
    }


def build_rate_limit_store(settings: "Settings") -> RateLimitStore:
    config = settings.notifications
    if config.rate_limit_backend == "redis":
        logger.info("rate_limit_store_selected", backend="redis")
        return RedisRateLimitStore.from_url(config.rate_limit_redis_url)
    store = InMemoryRateLimitStore(
        sweep_interval_seconds=config.rate_limit_sweep_interval_seconds
    )
    store.start_sweeper()
    logger.info("rate_limit_store_selected", backend="memory")
    return store


class NotificationService:
    """Class-based notification service.

    Thin facade over NotificationOrchestrator and BatchProcessor; all actual
    work is delegated to them.

    Usage:
        # Via the application-scoped provider
        from infrastructure.services import get_notification_service

        service = get_notification_service()
        notification = service.send(
            {
                "recipient_id": "user-123",
                "type": "leave_approved",
                "title": "Leave approved",
                "message": "Your leave request was approved",
            }
        )

        # Direct instantiation (tests)
        service = NotificationService(
            settings,
            recipients=InMemoryRecipientDirectory([profile]),
            registry=ProviderRegistry([fake_provider]),
        )
    """

    def __init__(
        self,
        settings: "Settings",
        store: Optional[NotificationStore] = None,
        recipients: Optional[RecipientProfileProvider] = None,
        templates: Optional[TemplateStore] = None,
        registry: Optional[ProviderRegistry] = None,
        audit_sink: Optional[AuditSink] = None,
        rate_limit_store: Optional[RateLimitStore] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize notification service.

        Args:
            settings: Settings instance (required, passed from provider).
            store: Notification persistence. Defaults to in-memory.
            recipients: Recipient profile lookup. Defaults to an empty directory.
            templates: Template lookup. Defaults to an empty store.
            registry: Pre-built provider registry. Built from settings if omitted.
            audit_sink: Destination of audit events. Defaults to the log.
            rate_limit_store: Rate limit counters. Built from settings if omitted.
            sleep: Sleep function used between bulk batches.
            clock: Epoch-seconds clock used by the rate limiter.
        """
        config = settings.notifications
        self._settings = settings
        self._owns_rate_limit_store = rate_limit_store is None

        self.registry = registry if registry is not None else build_provider_registry(settings)
        self.store = store if store is not None else InMemoryNotificationStore()
        self.rate_limit_store = (
            rate_limit_store
            if rate_limit_store is not None
            else build_rate_limit_store(settings)
        )
        self.rate_limiter = RateLimiter(
            self.rate_limit_store,
            window_seconds=config.rate_limit_window_seconds,
            default_max=config.rate_limit_default_max,
            daily_max=config.rate_limit_daily_max,
            clock=clock,
        )
        self.audit_sink = audit_sink if audit_sink is not None else LoggingAuditSink()

        self.orchestrator = NotificationOrchestrator(
            store=self.store,
            recipients=recipients if recipients is not None else InMemoryRecipientDirectory(),
            dispatchers=build_dispatchers(settings, self.registry),
            rate_limiter=self.rate_limiter,
            templates=templates if templates is not None else InMemoryTemplateStore(),
            hooks=[AuditHook(self.audit_sink)],
            max_channel_workers=config.max_channel_workers,
        )
        self.batch_processor = BatchProcessor(
            self.orchestrator,
            batch_size=config.bulk_batch_size,
            pause_seconds=config.bulk_batch_pause_seconds,
            sleep=sleep,
        )

    def send(self, intent: IntentInput) -> Notification:
        """Send one notification to one recipient.

        Args:
            intent: NotificationIntent or a mapping with its fields

        Returns:
            Notification with overall and per-channel status
        """
        return self.orchestrator.send(intent)

    def send_from_template(
        self,
        recipient_id: str,
        template_id: str,
        variables: Optional[Mapping[str, Any]] = None,
        channels: Optional[List[NotificationChannel]] = None,
        priority: Optional[NotificationPriority] = None,
        issued_by: str = "system",
        data: Optional[Mapping[str, Any]] = None,
    ) -> Notification:
        """Render a stored template and send it to one recipient."""
        return self.orchestrator.send_from_template(
            recipient_id,
            template_id,
            variables=variables,
            channels=channels,
            priority=priority,
            issued_by=issued_by,
            data=data,
        )

    def send_bulk(self, request: BulkNotificationRequest) -> BulkNotificationResult:
        """Send one notification to many recipients in batches."""
        return self.batch_processor.send_bulk(request)

    def get_unread_count(self, recipient_id: str) -> int:
        return self.orchestrator.get_unread_count(recipient_id)

    def mark_read(self, notification_id: str, recipient_id: str) -> bool:
        return self.orchestrator.mark_read(notification_id, recipient_id)

    def mark_all_read(self, recipient_id: str) -> int:
        return self.orchestrator.mark_all_read(recipient_id)

    def get_delivery_status(self, notification_id: str) -> Dict[str, Any]:
        return self.orchestrator.get_delivery_status(notification_id)

    def handle_delivery_receipt(
        self,
        notification_id: str,
        channel: Union[NotificationChannel, str],
        status: Union[ChannelStatus, str],
        message_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Notification:
        """Apply a provider delivery receipt (delivered or failed) to a channel."""
        return self.orchestrator.handle_delivery_receipt(
            notification_id, channel, status, message_id=message_id, error=error
        )

    def get_notifications(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
        **filters: Any,
    ) -> NotificationPage:
        """List a recipient's notifications, newest first, one page at a time.

        Args:
            filters: ``notification_type``, ``status``, ``channel``, ``priority``
        """
        return self.orchestrator.get_notifications(
            recipient_id, unread_only=unread_only, limit=limit, offset=offset, **filters
        )

    def get_notification_stats(self, recipient_id: str, **filters: Any) -> NotificationStats:
        return self.orchestrator.get_notification_stats(recipient_id, **filters)

    def health_check(self) -> Dict[str, OperationResult]:
        """Run the health check of every registered provider.

        Returns:
            Mapping of ``"{channel}:{provider_id}"`` to the check result. A
            provider whose check raises is reported as a transient error.
        """
        results: Dict[str, OperationResult] = {}
        for provider in self.registry.list_providers():
            key = f"{provider.channel.value}:{provider.provider_id}"
            try:
                results[key] = provider.health_check()
            except Exception as e:  # pylint: disable=broad-except
                logger.error("provider_health_check_failed", provider=key, error=str(e))
                results[key] = OperationResult.transient_error(
                    f"Health check raised: {str(e)}", error_code="HEALTH_CHECK_EXCEPTION"
                )
        return results

    def shutdown(self) -> None:
        """Stop background work started by this service."""
        if self._owns_rate_limit_store and isinstance(
            self.rate_limit_store, InMemoryRateLimitStore
        ):
            self.rate_limit_store.stop_sweeper()
        logger.info("notification_service_stopped")
