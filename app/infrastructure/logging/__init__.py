"""Structured logging infrastructure.

Public API:
    - configure_logging(): Initialize logging for the process
    - get_module_logger(): Get a logger for the calling module
    - bind_request_context(): Context manager for send-scoped logging
    - get_correlation_id(): Get current correlation ID from context
    - mask_sensitive_data(): Processor that redacts credential fields
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
    logger,
)
from infrastructure.logging.context import (
    bind_request_context,
    get_correlation_id,
)
from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    mask_sensitive_data,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "logger",
    "bind_request_context",
    "get_correlation_id",
    "mask_sensitive_data",
    "SENSITIVE_PATTERNS",
]
