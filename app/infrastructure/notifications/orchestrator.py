"""Notification orchestrator.

Runs the send pipeline for one recipient:

1. validate the intent and any requested provider (no side effects on failure)
2. check the recipient's rate limit for the notification type
3. load the recipient profile
4. resolve the channel set
5. persist the notification as pending
6. dispatch every channel concurrently and record each outcome
7. aggregate and persist the overall status
8. run post-send hooks (audit)

Also applies provider delivery receipts and serves the recipient inbox
(listing, statistics, unread count, mark read).
"""

import contextvars
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from infrastructure.logging import bind_request_context, get_correlation_id, get_module_logger
from infrastructure.notifications.channels.base import ChannelDispatcher
from infrastructure.notifications.exceptions import (
    NoProvidersAvailable,
    NotificationError,
    NotificationNotFound,
    NotificationSendFailed,
    RateLimitExceeded,
    RecipientNotFound,
    TemplateNotFound,
    ValidationError,
)
from infrastructure.notifications.hooks import (
    DELIVERY_RECEIPT_RECORDED,
    NOTIFICATION_FAILED,
    NOTIFICATION_SENT,
    SendOutcome,
    create_hook_manager,
    run_post_send_hooks,
)
from infrastructure.notifications.models import (
    ChannelAttempt,
    ChannelStatus,
    Notification,
    NotificationChannel,
    NotificationIntent,
    NotificationPage,
    NotificationPriority,
    NotificationStats,
    NotificationStatus,
    NotificationType,
    RecipientProfile,
    utc_now,
)
from infrastructure.notifications.rate_limiting import RateLimiter
from infrastructure.notifications.router import ChannelRouter
from infrastructure.notifications.store import (
    NotificationStore,
    RecipientProfileProvider,
    TemplateStore,
)
from infrastructure.notifications.templates import TemplateEngine
from infrastructure.notifications.tracker import DeliveryTracker

logger = get_module_logger()

IntentInput = Union[NotificationIntent, Mapping[str, Any]]

E = TypeVar("E", bound=Enum)

MAX_PAGE_SIZE = 100

# Receipts move an accepted channel to one of these
RECEIPT_STATUSES = frozenset({ChannelStatus.DELIVERED, ChannelStatus.FAILED})
RECEIPT_SOURCE_STATUSES = frozenset({ChannelStatus.SENT, ChannelStatus.DELIVERED})


class NotificationOrchestrator:
    """Coordinates routing, dispatch and tracking of notifications.

    Args:
        store: Notification persistence
        recipients: Recipient profile lookup
        dispatchers: One ChannelDispatcher per supported channel
        rate_limiter: Per-recipient, per-type rate limiter
        router: Channel router (default routing table when omitted)
        tracker: Delivery tracker (built on ``store`` when omitted)
        templates: Template lookup for ``send_from_template``
        template_engine: Placeholder renderer
        hooks: Post-send plugins implementing ``notification_outcome``
        max_channel_workers: Thread cap for concurrent channel dispatch
    """

    def __init__(
        self,
        store: NotificationStore,
        recipients: RecipientProfileProvider,
        dispatchers: Mapping[NotificationChannel, ChannelDispatcher],
        rate_limiter: RateLimiter,
        router: Optional[ChannelRouter] = None,
        tracker: Optional[DeliveryTracker] = None,
        templates: Optional[TemplateStore] = None,
        template_engine: Optional[TemplateEngine] = None,
        hooks: Optional[List[object]] = None,
        max_channel_workers: int = 4,
    ):
        self.store = store
        self.recipients = recipients
        self.dispatchers = dict(dispatchers)
        self.rate_limiter = rate_limiter
        self.router = router or ChannelRouter()
        self.tracker = tracker or DeliveryTracker(store)
        self.templates = templates
        self.template_engine = template_engine or TemplateEngine()
        self.hook_manager = create_hook_manager(hooks)
        self.max_channel_workers = max_channel_workers

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def validate_intent(self, intent: IntentInput) -> NotificationIntent:
        """Parse and validate an intent.

        Raises:
            ValidationError: With the field errors of the rejected intent.
        """
        if isinstance(intent, NotificationIntent):
            payload: Any = intent.model_dump()
        elif isinstance(intent, Mapping):
            payload = dict(intent)
        else:
            raise ValidationError(
                f"Notification intent must be a mapping, got {type(intent).__name__}"
            )
        try:
            return NotificationIntent.model_validate(payload)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in errors)
            raise ValidationError(
                f"Invalid notification intent: {fields}", errors=errors
            ) from e

    def send(self, intent: IntentInput) -> Notification:
        """Send one notification to one recipient.

        Returns:
            The notification with its final per-channel status. An overall
            FAILED status means the intent was accepted but no channel
            delivered it.

        Raises:
            ValidationError: The intent is malformed or names a provider that
                no candidate channel has (nothing persisted or counted).
            RateLimitExceeded: The recipient's quota is exhausted (nothing
                persisted, no provider called).
            RecipientNotFound: The recipient has no profile.
            NotificationSendFailed: Unexpected failure after validation.
        """
        validated = self.validate_intent(intent)
        self._validate_provider_id(validated)
        started = time.monotonic()

        with bind_request_context(
            correlation_id=get_correlation_id(),
            recipient_id=validated.recipient_id,
            notification_type=validated.type.value,
        ) as correlation_id:
            try:
                notification = self._process(validated)
            except NotificationError as e:
                self._emit_failure(validated, correlation_id, e, started)
                raise
            except Exception as e:
                logger.error("notification_send_failed", error=str(e), exc_info=True)
                failure = NotificationSendFailed(f"Failed to send notification: {e}")
                self._emit_failure(validated, correlation_id, failure, started)
                raise failure from e

            self._emit_result(notification, correlation_id, started)
            return notification

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
        """Render a stored template and send it.

        The template's channels and priority apply unless overridden.
        Missing variables are logged; their placeholders stay verbatim.

        Raises:
            TemplateNotFound: If the template does not exist.
        """
        template = self.templates.get_by_id(template_id) if self.templates else None
        if template is None:
            logger.warning("template_not_found", template_id=template_id)
            raise TemplateNotFound(template_id)

        variables = dict(variables or {})
        missing = self.template_engine.find_missing_variables(
            f"{template.title}\n{template.body}", variables
        )
        if missing:
            logger.warning(
                "template_variables_missing", template_id=template_id, missing=missing
            )

        payload = dict(data or {})
        intent = {
            "recipient_id": recipient_id,
            "type": template.type,
            "title": self.template_engine.render(template.title, variables),
            "message": self.template_engine.render(template.body, variables),
            "data": payload,
            "channels": channels or list(template.channels),
            "priority": priority or template.priority,
            "issued_by": issued_by,
            "template_id": template.id,
        }
        return self.send(intent)

    def register_hook(self, plugin: object) -> None:
        """Register an additional post-send plugin."""
        self.hook_manager.register(plugin)

    def emit(self, outcome: SendOutcome) -> None:
        """Run the post-send hooks for an outcome."""
        run_post_send_hooks(self.hook_manager, outcome)

    def _process(self, intent: NotificationIntent) -> Notification:
        decision = self.rate_limiter.check_notification(intent.recipient_id, intent.type)
        if not decision.allowed:
            raise RateLimitExceeded(
                f"Rate limit exceeded for {intent.type.value}, retry in "
                f"{decision.retry_after_seconds}s",
                retry_after_seconds=decision.retry_after_seconds or 0,
                reset_at=decision.reset_at,
            )

        recipient = self.recipients.get_by_id(intent.recipient_id)
        if recipient is None:
            raise RecipientNotFound(intent.recipient_id)

        channels = self.router.resolve_channels(intent, recipient)
        explicit_providers = self._explicit_providers(intent, channels)

        notification = Notification.from_intent(intent, channels)
        self.store.create(notification)
        logger.info(
            "notification_created",
            notification_id=notification.id,
            channels=[c.value for c in channels],
        )

        outcomes = self._dispatch_all(notification, recipient, explicit_providers)
        status = self.tracker.finalize(notification.id, outcomes)

        return notification.model_copy(
            update={
                "channel_status": outcomes,
                "status": status,
                "updated_at": utc_now(),
            }
        )

    def _provider_channels(
        self, provider_id: str, channels: List[NotificationChannel]
    ) -> List[NotificationChannel]:
        matched = []
        for channel in channels:
            dispatcher = self.dispatchers.get(channel)
            if dispatcher and dispatcher.registry.get_provider(channel, provider_id):
                matched.append(channel)
        return matched

    def _validate_provider_id(self, intent: NotificationIntent) -> None:
        """Reject a provider_id that no candidate channel has registered."""
        if not intent.provider_id:
            return
        candidates = self.router.candidate_channels(intent)
        if not self._provider_channels(intent.provider_id, candidates):
            raise ValidationError(
                f"Provider '{intent.provider_id}' is not registered for channels "
                f"{[c.value for c in candidates]}"
            )

    def _explicit_providers(
        self, intent: NotificationIntent, channels: List[NotificationChannel]
    ) -> Dict[NotificationChannel, str]:
        """Map resolved channels to the explicitly requested provider.

        The provider applies to the channels that have it registered; the
        other channels keep normal failover.
        """
        if not intent.provider_id:
            return {}
        matched = self._provider_channels(intent.provider_id, channels)
        if not matched:
            # Unrouted type whose recipient has no email on file
            logger.warning(
                "explicit_provider_not_applicable",
                provider_id=intent.provider_id,
                channels=[c.value for c in channels],
            )
        return {channel: intent.provider_id for channel in matched}

    def _dispatch_all(
        self,
        notification: Notification,
        recipient: RecipientProfile,
        explicit_providers: Dict[NotificationChannel, str],
    ) -> Dict[NotificationChannel, ChannelAttempt]:
        """Dispatch all channels concurrently and wait for every one."""
        outcomes: Dict[NotificationChannel, ChannelAttempt] = {}
        workers = max(1, min(len(notification.channels), self.max_channel_workers))

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="notification-channel"
        ) as executor:
            futures = {
                executor.submit(
                    contextvars.copy_context().run,
                    self._dispatch_channel,
                    notification,
                    recipient,
                    channel,
                    explicit_providers.get(channel),
                ): channel
                for channel in notification.channels
            }
            for future in as_completed(futures):
                channel = futures[future]
                try:
                    outcomes[channel] = future.result()
                except Exception as e:  # pylint: disable=broad-except
                    logger.error(
                        "channel_dispatch_crashed",
                        notification_id=notification.id,
                        channel=channel.value,
                        error=str(e),
                        exc_info=True,
                    )
                    outcomes[channel] = ChannelAttempt(
                        channel=channel,
                        status=ChannelStatus.FAILED,
                        error=f"Unexpected error: {str(e)}",
                        error_code="CHANNEL_EXCEPTION",
                    )

        return {channel: outcomes[channel] for channel in notification.channels}

    def _dispatch_channel(
        self,
        notification: Notification,
        recipient: RecipientProfile,
        channel: NotificationChannel,
        provider_id: Optional[str],
    ) -> ChannelAttempt:
        self.tracker.mark_sending(notification.id, channel)
        dispatcher = self.dispatchers.get(channel)
        if dispatcher is None:
            attempt = ChannelAttempt(
                channel=channel,
                status=ChannelStatus.FAILED,
                error=f"No dispatcher configured for channel '{channel.value}'",
                error_code=NoProvidersAvailable.error_code,
            )
        else:
            attempt = dispatcher.dispatch(notification, recipient, provider_id)
        self.tracker.record_attempt(notification.id, attempt)
        return attempt

    def _emit_result(
        self, notification: Notification, correlation_id: str, started: float
    ) -> None:
        channels = [c.value for c in notification.channels]
        failed = notification.status == NotificationStatus.FAILED
        logger.info(
            "notification_processed",
            notification_id=notification.id,
            status=notification.status.value,
            channels=channels,
        )
        self.emit(
            SendOutcome(
                action=NOTIFICATION_FAILED if failed else NOTIFICATION_SENT,
                resource_type="notification",
                resource_id=notification.id,
                actor_id=notification.issued_by,
                correlation_id=correlation_id,
                notification=notification,
                error_code="ALL_CHANNELS_FAILED" if failed else None,
                error_message="No channel delivered the notification" if failed else None,
                duration_ms=_elapsed_ms(started),
                metadata={
                    "recipient_id": notification.recipient_id,
                    "notification_type": notification.type.value,
                    "channels": channels,
                    "status": notification.status.value,
                },
            )
        )

    def _emit_failure(
        self,
        intent: NotificationIntent,
        correlation_id: str,
        error: NotificationError,
        started: float,
    ) -> None:
        self.emit(
            SendOutcome(
                action=NOTIFICATION_FAILED,
                resource_type="notification",
                resource_id=intent.recipient_id,
                actor_id=intent.issued_by,
                correlation_id=correlation_id,
                error_code=error.error_code,
                error_message=error.message,
                duration_ms=_elapsed_ms(started),
                metadata={
                    "recipient_id": intent.recipient_id,
                    "notification_type": intent.type.value,
                    "channels": [c.value for c in intent.channels],
                },
            )
        )

    # ------------------------------------------------------------------
    # Delivery receipts
    # ------------------------------------------------------------------

    def handle_delivery_receipt(
        self,
        notification_id: str,
        channel: Union[NotificationChannel, str],
        status: Union[ChannelStatus, str],
        message_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Notification:
        """Apply a provider delivery receipt to one channel of a notification.

        A receipt moves a channel the provider accepted (sent, or already
        delivered) to DELIVERED or FAILED, then re-aggregates the overall
        status: once every channel is delivered the notification becomes
        DELIVERED. Repeating the channel's current status changes nothing.

        Args:
            notification_id: Notification the receipt refers to
            channel: Channel the provider delivered on
            status: ``delivered`` or ``failed``
            message_id: Provider message id; must match the recorded one
            error: Failure description for a ``failed`` receipt

        Returns:
            The notification as stored after the receipt.

        Raises:
            ValidationError: Unknown channel or status, a status other than
                delivered or failed, a channel the notification did not go out
                on or that no provider accepted, or a mismatched message id.
            NotificationNotFound: If the notification does not exist.
        """
        channel = _coerce(NotificationChannel, channel, "channel")
        status = _coerce(ChannelStatus, status, "status")
        if status not in RECEIPT_STATUSES:
            raise ValidationError(
                f"Delivery receipts must be 'delivered' or 'failed', got '{status.value}'"
            )

        started = time.monotonic()
        with bind_request_context(
            correlation_id=get_correlation_id(), notification_id=notification_id
        ) as correlation_id:
            notification = self.store.get(notification_id)
            if notification is None:
                logger.warning("delivery_receipt_unknown_notification")
                raise NotificationNotFound(notification_id)

            current = notification.channel_status.get(channel)
            if current is None:
                raise ValidationError(
                    f"Notification {notification_id} was not sent on '{channel.value}'"
                )
            if message_id and current.message_id and message_id != current.message_id:
                logger.warning(
                    "delivery_receipt_message_mismatch",
                    channel=channel.value,
                    message_id=message_id,
                    recorded_message_id=current.message_id,
                )
                raise ValidationError(
                    f"Message id '{message_id}' does not match channel '{channel.value}'"
                )
            if current.status == status:
                logger.debug("delivery_receipt_repeated", channel=channel.value)
                return notification
            if current.status not in RECEIPT_SOURCE_STATUSES:
                raise ValidationError(
                    f"Channel '{channel.value}' is {current.status.value} and "
                    f"cannot take a delivery receipt"
                )

            failed = status == ChannelStatus.FAILED
            attempt = current.model_copy(
                update={
                    "status": status,
                    "message_id": current.message_id or message_id,
                    "error": (error or "Delivery failed") if failed else None,
                    "error_code": "DELIVERY_FAILED" if failed else None,
                    "updated_at": utc_now(),
                }
            )
            self.tracker.record_receipt(notification_id, attempt)
            outcomes = {**notification.channel_status, channel: attempt}
            overall = self.tracker.finalize(notification_id, outcomes)
            updated = self.store.get(notification_id)

            self.emit(
                SendOutcome(
                    action=DELIVERY_RECEIPT_RECORDED,
                    resource_type="notification",
                    resource_id=notification_id,
                    actor_id=current.provider_id or "system",
                    correlation_id=correlation_id,
                    notification=updated,
                    error_code=attempt.error_code,
                    error_message=attempt.error,
                    duration_ms=_elapsed_ms(started),
                    metadata={
                        "recipient_id": notification.recipient_id,
                        "channel": channel.value,
                        "channel_status": status.value,
                        "status": overall.value,
                    },
                )
            )
            return updated

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def get_notifications(
        self,
        recipient_id: str,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
        notification_type: Optional[Union[NotificationType, str]] = None,
        status: Optional[Union[NotificationStatus, str]] = None,
        channel: Optional[Union[NotificationChannel, str]] = None,
        priority: Optional[Union[NotificationPriority, str]] = None,
    ) -> NotificationPage:
        """List a recipient's notifications, newest first.

        Args:
            recipient_id: Owner of the notifications
            unread_only: Only notifications not yet read
            limit: Page size (1 to 100)
            offset: Notifications skipped before the page
            notification_type: Only this type
            status: Only this overall status
            channel: Only notifications that went out on this channel
            priority: Only this priority

        Raises:
            ValidationError: Bad paging arguments or unknown filter values.
        """
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValidationError("offset must not be negative")

        matching = self._filter_notifications(
            self.store.query(recipient_id, unread_only=unread_only),
            notification_type=notification_type,
            status=status,
            channel=channel,
            priority=priority,
        )
        return NotificationPage(
            notifications=matching[offset : offset + limit],
            total=len(matching),
            limit=limit,
            offset=offset,
        )

    def get_notification_stats(
        self,
        recipient_id: str,
        notification_type: Optional[Union[NotificationType, str]] = None,
        channel: Optional[Union[NotificationChannel, str]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> NotificationStats:
        """Summarize a recipient's notifications by status, channel and type.

        ``delivery_rate`` is the percentage sent or delivered.
        ``average_delivery_seconds`` covers notifications with a delivery time.
        """
        notifications = self._filter_notifications(
            self.store.query(recipient_id),
            notification_type=notification_type,
            channel=channel,
        )
        if since is not None:
            notifications = [n for n in notifications if n.created_at >= since]
        if until is not None:
            notifications = [n for n in notifications if n.created_at <= until]

        statuses = Counter(n.status for n in notifications)
        by_channel: Counter = Counter()
        for notification in notifications:
            by_channel.update(c.value for c in notification.channels)
        delivery_times = [
            (n.delivered_at - n.created_at).total_seconds()
            for n in notifications
            if n.status == NotificationStatus.DELIVERED and n.delivered_at
        ]

        total = len(notifications)
        succeeded = statuses[NotificationStatus.SENT] + statuses[NotificationStatus.DELIVERED]
        return NotificationStats(
            total=total,
            pending=statuses[NotificationStatus.PENDING],
            sent=statuses[NotificationStatus.SENT],
            delivered=statuses[NotificationStatus.DELIVERED],
            failed=statuses[NotificationStatus.FAILED],
            by_channel=dict(by_channel),
            by_type=dict(Counter(n.type.value for n in notifications)),
            delivery_rate=succeeded / total * 100 if total else 0.0,
            average_delivery_seconds=(
                sum(delivery_times) / len(delivery_times) if delivery_times else 0.0
            ),
        )

    def _filter_notifications(
        self,
        notifications: List[Notification],
        notification_type=None,
        status=None,
        channel=None,
        priority=None,
    ) -> List[Notification]:
        if notification_type is not None:
            wanted_type = _coerce(NotificationType, notification_type, "notification_type")
            notifications = [n for n in notifications if n.type == wanted_type]
        if status is not None:
            wanted_status = _coerce(NotificationStatus, status, "status")
            notifications = [n for n in notifications if n.status == wanted_status]
        if channel is not None:
            wanted_channel = _coerce(NotificationChannel, channel, "channel")
            notifications = [n for n in notifications if wanted_channel in n.channels]
        if priority is not None:
            wanted_priority = _coerce(NotificationPriority, priority, "priority")
            notifications = [n for n in notifications if n.priority == wanted_priority]
        return notifications

    def get_unread_count(self, recipient_id: str) -> int:
        return len(self.store.query(recipient_id, unread_only=True))

    def mark_read(self, notification_id: str, recipient_id: str) -> bool:
        """Mark one of the recipient's notifications as read.

        Returns:
            True if the notification changed, False if it was already read.

        Raises:
            NotificationNotFound: If the notification does not exist or
                belongs to another recipient.
        """
        notification = self.store.get(notification_id)
        if notification is None or notification.recipient_id != recipient_id:
            logger.warning(
                "notification_mark_read_rejected",
                notification_id=notification_id,
                recipient_id=recipient_id,
            )
            raise NotificationNotFound(notification_id)
        if notification.read:
            return False

        now = utc_now().isoformat()
        self.store.update(notification_id, {"read": True, "read_at": now, "updated_at": now})
        return True

    def mark_all_read(self, recipient_id: str) -> int:
        """Mark every unread notification of the recipient as read.

        Returns:
            Number of notifications marked.
        """
        unread = self.store.query(recipient_id, unread_only=True)
        now = utc_now().isoformat()
        for notification in unread:
            self.store.update(
                notification.id, {"read": True, "read_at": now, "updated_at": now}
            )
        logger.info("notifications_marked_read", recipient_id=recipient_id, count=len(unread))
        return len(unread)

    def get_delivery_status(self, notification_id: str) -> Dict[str, Any]:
        """Summarize the overall and per-channel status of a notification.

        Raises:
            NotificationNotFound: If the notification does not exist.
        """
        notification = self.store.get(notification_id)
        if notification is None:
            raise NotificationNotFound(notification_id)
        return {
            "notification_id": notification.id,
            "status": notification.status.value,
            "channels": {
                channel.value: attempt.model_dump(mode="json")
                for channel, attempt in notification.channel_status.items()
            },
            "updated_at": notification.updated_at.isoformat(),
            "delivered_at": (
                notification.delivered_at.isoformat() if notification.delivered_at else None
            ),
        }


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _coerce(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field}: {value!r}") from e
