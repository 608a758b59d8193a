"""Pytest fixtures for audit infrastructure tests."""

import pytest
from infrastructure.audit.models import AuditEvent


@pytest.fixture
def sample_audit_event():
    """Audit event for a successful notification send."""
    return AuditEvent(
        correlation_id="req-test-123",
        timestamp="2026-01-08T12:00:00+00:00",
        action="notification_sent",
        resource_type="notification",
        resource_id="notif-1",
        actor_id="system",
        result="success",
        duration_ms=120,
    )
