"""Audit sinks.

An audit sink receives finished :class:`AuditEvent` records. The default
sink writes them to the structured log stream, where log shipping forwards
them to long-term storage.
"""

from typing import Protocol

from infrastructure.audit.models import AuditEvent
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class AuditSink(Protocol):
    """Destination for audit events."""

    def record(self, event: AuditEvent) -> None:
        """Persist or forward one audit event."""
        ...


class LoggingAuditSink:
    """Audit sink that emits each event as an ``audit_event`` log entry."""

    def record(self, event: AuditEvent) -> None:
        logger.info("audit_event", **event.to_log_payload())


class InMemoryAuditSink:
    """Audit sink that keeps events in a list.

    Used by local runs and tests that assert on audit output.
    """

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self.events.append(event)
