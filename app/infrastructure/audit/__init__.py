"""Audit infrastructure for notification delivery records.

This package provides:
- AuditEvent: Pydantic model for structured audit events
- create_audit_event: Factory flattening metadata into audit fields
- AuditSink: Protocol for audit destinations, with logging and in-memory sinks
"""

from infrastructure.audit.models import AuditEvent, create_audit_event
from infrastructure.audit.sink import AuditSink, InMemoryAuditSink, LoggingAuditSink

__all__ = [
    "AuditEvent",
    "AuditSink",
    "InMemoryAuditSink",
    "LoggingAuditSink",
    "create_audit_event",
]
