"""Unit tests for infrastructure.logging.context module.

Tests cover:
- bind_request_context() context manager
- get_correlation_id()
- Context restoration after nested blocks
"""

import uuid

import pytest
import structlog

from infrastructure.logging.context import (
    bind_request_context,
    get_correlation_id,
)


@pytest.mark.unit
class TestBindRequestContext:
    """Test suite for bind_request_context context manager."""

    def test_auto_generates_correlation_id(self):
        """Correlation ID is auto-generated if not provided."""
        with bind_request_context(recipient_id="user-1") as correlation_id:
            assert get_correlation_id() == correlation_id
            uuid.UUID(correlation_id)

    def test_uses_provided_correlation_id(self):
        with bind_request_context(correlation_id="corr-123") as correlation_id:
            assert correlation_id == "corr-123"
            assert get_correlation_id() == "corr-123"

    def test_binds_recipient_type_and_extra_context(self):
        with bind_request_context(
            recipient_id="user-1",
            notification_type="leave_approved",
            batch_index=2,
        ):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["recipient_id"] == "user-1"
            assert ctx["notification_type"] == "leave_approved"
            assert ctx["batch_index"] == 2

    def test_omits_unset_fields(self):
        with bind_request_context():
            ctx = structlog.contextvars.get_contextvars()
            assert "recipient_id" not in ctx
            assert "notification_type" not in ctx

    def test_context_cleared_after_exit(self):
        with bind_request_context(correlation_id="corr-temp", recipient_id="user-1"):
            pass
        assert get_correlation_id() is None
        assert "recipient_id" not in structlog.contextvars.get_contextvars()

    def test_nested_block_restores_outer_context(self):
        """A nested send keeps the outer correlation id once it finishes."""
        with bind_request_context(correlation_id="outer", notification_type="a"):
            with bind_request_context(correlation_id="inner", notification_type="b"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
            assert structlog.contextvars.get_contextvars()["notification_type"] == "a"


@pytest.mark.unit
class TestGetCorrelationId:
    def test_returns_none_without_context(self):
        structlog.contextvars.clear_contextvars()
        assert get_correlation_id() is None
