"""Unit tests for structlog configuration helpers."""

from unittest.mock import patch

import pytest

from infrastructure.logging import get_module_logger, logger
from infrastructure.logging.setup import _is_test_environment, configure_logging


@pytest.mark.unit
class TestConfigureLogging:
    def test_detects_pytest_environment(self):
        assert _is_test_environment() is True

    def test_configure_logging_returns_usable_logger(self):
        configured = configure_logging(log_level="DEBUG", is_production=True)
        configured.info("test_event", key="value")

    def test_module_logger_is_available(self):
        assert logger is not None


@pytest.mark.unit
class TestGetModuleLogger:
    def test_binds_calling_module_context(self):
        with patch("infrastructure.logging.setup.logger") as mock_logger:
            get_module_logger()

        kwargs = mock_logger.bind.call_args.kwargs
        assert kwargs["component"] == "test_log_setup"
        assert kwargs["module_path"].endswith("test_log_setup")

    def test_logger_accepts_structured_events(self):
        get_module_logger().warning("notification_rate_limited", recipient_id="user-1")
