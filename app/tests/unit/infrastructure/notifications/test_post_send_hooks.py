"""Unit tests for post-send hooks."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.audit import InMemoryAuditSink
from infrastructure.notifications.hooks import (
    NOTIFICATION_SENT,
    AuditHook,
    SendOutcome,
    create_hook_manager,
    hookimpl,
    run_post_send_hooks,
)
from infrastructure.notifications.models import NotificationStatus


class RecordingPlugin:
    def __init__(self, calls):
        self.calls = calls

    @hookimpl
    def notification_outcome(self, outcome):
        self.calls.append(outcome.action)


class FailingPlugin:
    @hookimpl
    def notification_outcome(self, outcome):
        raise RuntimeError("metrics backend down")


@pytest.fixture
def outcome():
    return SendOutcome(
        action=NOTIFICATION_SENT,
        resource_type="notification",
        resource_id="notif-1",
        actor_id="scheduler",
        correlation_id="corr-1",
        duration_ms=12,
        metadata={"channels": ["email", "sms"], "status": "sent"},
    )


@pytest.mark.unit
class TestRunPostSendHooks:
    def test_failing_hook_does_not_stop_later_hooks(self, outcome):
        calls = []
        pm = create_hook_manager([FailingPlugin(), RecordingPlugin(calls)])

        with patch("infrastructure.notifications.hooks.logger") as mock_logger:
            run_post_send_hooks(pm, outcome)

        assert calls == [NOTIFICATION_SENT]
        mock_logger.error.assert_called_once()
        args, kwargs = mock_logger.error.call_args
        assert args[0] == "post_send_hook_failed"
        assert kwargs["error"] == "metrics backend down"
        assert kwargs["resource_id"] == "notif-1"

    def test_hooks_run_in_registration_order(self, outcome):
        order = []

        class First:
            @hookimpl
            def notification_outcome(self, outcome):
                order.append("first")

        class Second:
            @hookimpl
            def notification_outcome(self, outcome):
                order.append("second")

        run_post_send_hooks(create_hook_manager([First(), Second()]), outcome)

        assert order == ["first", "second"]

    def test_no_hooks(self, outcome):
        run_post_send_hooks(create_hook_manager(), outcome)


@pytest.mark.unit
class TestAuditHook:
    def test_records_success_event(self, outcome):
        sink = InMemoryAuditSink()

        AuditHook(sink).notification_outcome(outcome)

        event = sink.events[0]
        assert event.action == "notification_sent"
        assert event.result == "success"
        assert event.resource_id == "notif-1"
        assert event.actor_id == "scheduler"
        assert event.correlation_id == "corr-1"
        assert event.duration_ms == 12
        payload = event.to_log_payload()
        assert payload["audit_meta_channels"] == "email,sms"
        assert payload["audit_meta_status"] == "sent"

    def test_records_failure_event(self, outcome):
        sink = InMemoryAuditSink()
        outcome.error_code = "RATE_LIMIT_EXCEEDED"
        outcome.error_message = "Rate limit exceeded"

        AuditHook(sink).notification_outcome(outcome)

        event = sink.events[0]
        assert event.result == "failure"
        assert event.error_type == "RATE_LIMIT_EXCEEDED"


@pytest.mark.unit
class TestOrchestratorHooks:
    def test_registered_hook_sees_every_send(self, engine_factory, intent_factory):
        engine = engine_factory()
        calls = []
        engine.orchestrator.register_hook(RecordingPlugin(calls))

        engine.orchestrator.send(intent_factory())

        assert calls == ["notification_sent"]
        assert len(engine.audit.events) == 1

    def test_failing_hook_does_not_change_result(self, engine_factory, intent_factory):
        engine = engine_factory()
        engine.orchestrator.register_hook(FailingPlugin())

        notification = engine.orchestrator.send(intent_factory())

        assert notification.status == NotificationStatus.SENT
        assert len(engine.audit.events) == 1

    def test_failing_audit_sink_does_not_change_result(
        self, engine_factory, intent_factory
    ):
        engine = engine_factory()
        broken_sink = MagicMock()
        broken_sink.record.side_effect = RuntimeError("disk full")
        engine.orchestrator.register_hook(AuditHook(broken_sink))

        notification = engine.orchestrator.send(intent_factory())

        assert notification.status == NotificationStatus.SENT
        broken_sink.record.assert_called_once()
