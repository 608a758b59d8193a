"""Fixtures for notification engine unit tests."""

from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest

from infrastructure.audit import InMemoryAuditSink
from infrastructure.notifications.channels import (
    EmailDispatcher,
    InAppDispatcher,
    PushDispatcher,
    SMSDispatcher,
)
from infrastructure.notifications.hooks import AuditHook
from infrastructure.notifications.models import (
    Notification,
    NotificationChannel,
    NotificationIntent,
    NotificationPriority,
    NotificationType,
    RecipientProfile,
    Template,
)
from infrastructure.notifications.orchestrator import NotificationOrchestrator
from infrastructure.notifications.providers import ChannelProvider, ProviderRegistry
from infrastructure.notifications.rate_limiting import (
    InMemoryRateLimitStore,
    RateLimiter,
)
from infrastructure.notifications.store import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
    InMemoryTemplateStore,
)


@pytest.fixture
def notification_factory():
    """Factory for PENDING Notification records.

    Example:
        notification = notification_factory(channels=[NotificationChannel.SMS])
    """

    def _factory(
        recipient_id: str = "user-1",
        notification_type: NotificationType = NotificationType.LEAVE_APPROVED,
        title: str = "Leave approved",
        message: str = "Your leave request was approved.",
        channels: Optional[List[NotificationChannel]] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        **intent_fields,
    ) -> Notification:
        intent = NotificationIntent(
            recipient_id=recipient_id,
            type=notification_type,
            title=title,
            message=message,
            priority=priority,
            **intent_fields,
        )
        return Notification.from_intent(
            intent, channels or [NotificationChannel.EMAIL]
        )

    return _factory


@dataclass
class Engine:
    """Orchestrator wired to in-memory collaborators."""

    orchestrator: NotificationOrchestrator
    store: InMemoryNotificationStore
    registry: ProviderRegistry
    audit: InMemoryAuditSink
    providers: Dict[str, ChannelProvider]


@pytest.fixture
def engine_factory(provider_factory, profile_factory, fake_clock):
    """Build an orchestrator with stub providers on email, SMS and push.

    Example:
        engine = engine_factory(providers=[failing_email, backup_email])
        notification = engine.orchestrator.send(intent)
        assert engine.audit.events[0].action == "notification_sent"
    """

    def _factory(
        providers: Optional[List[ChannelProvider]] = None,
        profiles: Optional[List[RecipientProfile]] = None,
        templates: Optional[List[Template]] = None,
        default_max: int = 20,
        max_channel_workers: int = 4,
    ) -> Engine:
        if providers is None:
            providers = [
                provider_factory("email-stub", NotificationChannel.EMAIL),
                provider_factory("sms-stub", NotificationChannel.SMS),
                provider_factory("push-stub", NotificationChannel.PUSH),
            ]
        registry = ProviderRegistry(providers)
        store = InMemoryNotificationStore()
        audit = InMemoryAuditSink()
        orchestrator = NotificationOrchestrator(
            store=store,
            recipients=InMemoryRecipientDirectory(
                profiles if profiles is not None else [profile_factory()]
            ),
            dispatchers={
                NotificationChannel.EMAIL: EmailDispatcher(registry),
                NotificationChannel.SMS: SMSDispatcher(registry),
                NotificationChannel.PUSH: PushDispatcher(registry),
                NotificationChannel.IN_APP: InAppDispatcher(registry),
            },
            rate_limiter=RateLimiter(
                InMemoryRateLimitStore(clock=fake_clock),
                window_seconds=3600,
                default_max=default_max,
                clock=fake_clock,
            ),
            templates=InMemoryTemplateStore(templates or []),
            hooks=[AuditHook(audit)],
            max_channel_workers=max_channel_workers,
        )
        return Engine(
            orchestrator=orchestrator,
            store=store,
            registry=registry,
            audit=audit,
            providers={p.provider_id: p for p in providers},
        )

    return _factory
