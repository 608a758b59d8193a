"""Infrastructure modules for the notification dispatch engine.

Centralized infrastructure components:
- configuration: Settings management (settings, NotificationSettings)
- logging: Structured logging and request context (get_module_logger, logger)
- operations: Operation results and error classification
- audit: Audit events and sinks
- hookspecs: Plugin hook specifications
- notifications: Notification dispatch engine
- services: Application-scoped service providers (get_settings)
"""

# Configuration
from infrastructure.configuration import settings

# Logging
from infrastructure.logging import get_module_logger, logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    # Configuration
    "settings",
    # Logging
    "get_module_logger",
    "logger",
    # Operations
    "OperationResult",
    "OperationStatus",
]
