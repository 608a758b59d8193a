"""Shared fixtures for the notification engine test suite."""

import threading
from typing import Any, Callable, Dict, List, Optional

import pytest

from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationType,
    RecipientProfile,
)
from infrastructure.notifications.providers.base import (
    ChannelProvider,
    ProviderKind,
    ProviderMessage,
)
from infrastructure.operations import OperationResult


class StubProvider(ChannelProvider):
    """In-process provider recording every message it is asked to send.

    ``results`` are returned in order; the last one repeats. With no
    results every call succeeds. ``error`` is raised instead when set.
    """

    def __init__(
        self,
        provider_id: str,
        channel: NotificationChannel,
        priority: int = 1,
        is_active: bool = True,
        results: Optional[List[OperationResult]] = None,
        error: Optional[Exception] = None,
        kind: ProviderKind = ProviderKind.SENDGRID,
        on_send: Optional[Callable[[ProviderMessage], None]] = None,
    ):
        super().__init__(provider_id=provider_id, priority=priority, is_active=is_active)
        self._channel = channel
        self._kind = kind
        self.results = list(results or [])
        self.error = error
        self.on_send = on_send
        self.calls: List[ProviderMessage] = []
        self._lock = threading.Lock()

    @property
    def kind(self) -> ProviderKind:
        return self._kind

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    def send(self, message: ProviderMessage) -> OperationResult:
        with self._lock:
            self.calls.append(message)
            result = None
            if self.results:
                result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if self.on_send:
            self.on_send(message)
        if self.error:
            raise self.error
        if result is not None:
            return result
        data: Dict[str, Any] = {"message_id": f"{self.provider_id}-{len(self.calls)}"}
        if self._channel == NotificationChannel.PUSH:
            data["success_count"] = len(message.addresses)
            data["failure_count"] = 0
        return OperationResult.success(data=data)

    def health_check(self) -> OperationResult:
        return OperationResult.success(message="stub ok")


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def provider_factory():
    """Factory for StubProvider instances.

    Example:
        primary = provider_factory("primary", NotificationChannel.EMAIL)
        failing = provider_factory(
            "backup",
            NotificationChannel.EMAIL,
            results=[OperationResult.transient_error("down")],
        )
    """

    def _factory(
        provider_id: str = "stub",
        channel: NotificationChannel = NotificationChannel.EMAIL,
        **kwargs,
    ) -> StubProvider:
        return StubProvider(provider_id, channel, **kwargs)

    return _factory


@pytest.fixture
def profile_factory():
    """Factory for RecipientProfile instances with every address on file."""

    def _factory(
        recipient_id: str = "user-1",
        email: Optional[str] = "user@example.com",
        phone_number: Optional[str] = "+15555550100",
        push_tokens: Optional[List[str]] = None,
    ) -> RecipientProfile:
        return RecipientProfile(
            recipient_id=recipient_id,
            email=email,
            phone_number=phone_number,
            push_tokens=["device-token-1"] if push_tokens is None else push_tokens,
        )

    return _factory


@pytest.fixture
def intent_factory():
    """Factory for intent payloads accepted by ``send``."""

    def _factory(**overrides) -> Dict[str, Any]:
        intent: Dict[str, Any] = {
            "recipient_id": "user-1",
            "type": NotificationType.LEAVE_APPROVED,
            "title": "Leave approved",
            "message": "Your leave request for June 3 was approved.",
        }
        intent.update(overrides)
        return intent

    return _factory


@pytest.fixture
def fake_clock():
    """Manually advanced clock for rate limiting tests."""
    return FakeClock()
