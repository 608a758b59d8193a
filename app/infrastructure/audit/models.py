"""Audit event models for notification delivery records.

Audit events are flat so downstream log queries can filter on any field
without unnesting. Operation-specific values are flattened under an
``audit_meta_`` prefix.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class AuditEvent(BaseModel):
    """Structured audit event for a notification operation.

    Attributes:
        correlation_id: Identifier shared by every log entry of the operation.
        timestamp: ISO 8601 timestamp when the event occurred (UTC).
        action: Operation type ('notification_sent', 'notification_failed',
            'bulk_notification_sent').
        resource_type: Type of resource affected ('notification' or
            'bulk_notification').
        resource_id: Notification id, or recipient id when the send failed
            before a notification existed.
        actor_id: Issuer of the notification ('system' for automated sends).
        result: Overall operation result ('success' or 'failure').
        error_type: Machine error code if failed.
        error_message: Human-readable error description if failed.
        duration_ms: Operation duration in milliseconds if tracked.
        audit_meta_*: Operation-specific fields flattened from metadata.
    """

    correlation_id: str = Field(
        ..., description="Identifier shared by the operation's log entries"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 timestamp (UTC)",
    )
    action: str = Field(..., description="Operation type (snake_case)")
    resource_type: str = Field(..., description="Type of resource affected")
    resource_id: str = Field(..., description="Primary resource identifier")
    actor_id: str = Field(..., description="Issuer of the operation")
    result: str = Field(
        ...,
        description="Operation result: 'success' or 'failure'",
        pattern="^(success|failure)$",
    )
    error_type: Optional[str] = Field(
        default=None, description="Machine error code if failed"
    )
    error_message: Optional[str] = Field(
        default=None, description="Human-readable error description"
    )
    duration_ms: Optional[int] = Field(
        default=None, description="Operation duration in milliseconds"
    )

    model_config = ConfigDict(
        extra="allow",  # audit_meta_* fields are added dynamically
        json_schema_extra={
            "example": {
                "correlation_id": "c0a8012e-7d1f-4d8e-9a51-3b4f2a6f9d10",
                "timestamp": "2026-01-08T12:00:00+00:00",
                "action": "notification_sent",
                "resource_type": "notification",
                "resource_id": "5e0b8c1a-52a4-4c7f-8f0e-0c7a7b7e6d11",
                "actor_id": "system",
                "result": "success",
                "duration_ms": 120,
                "audit_meta_channels": "email,push",
                "audit_meta_status": "sent",
            }
        },
    )

    def to_log_payload(self) -> Dict[str, Any]:
        """Convert to a flat payload for structured logging.

        Returns:
            Dictionary with every populated field at the top level.
        """
        return self.model_dump(exclude_none=True)


def create_audit_event(
    correlation_id: str,
    action: str,
    resource_type: str,
    resource_id: str,
    actor_id: str,
    result: str,
    error_type: Optional[str] = None,
    error_message: Optional[str] = None,
    duration_ms: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditEvent:
    """Factory function to create audit events.

    Converts operation metadata into flattened audit fields with the
    'audit_meta_' prefix. Lists are joined with commas.

    Raises:
        ValueError: If result is not 'success' or 'failure'.
    """
    if result not in ("success", "failure"):
        raise ValueError(f"result must be 'success' or 'failure', got: {result}")

    event_data: Dict[str, Any] = {
        "correlation_id": correlation_id,
        "action": action,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "actor_id": actor_id,
        "result": result,
    }

    if error_type is not None:
        event_data["error_type"] = error_type
    if error_message is not None:
        event_data["error_message"] = error_message
    if duration_ms is not None:
        event_data["duration_ms"] = duration_ms

    if metadata:
        for key, value in metadata.items():
            if isinstance(value, (list, tuple, set)):
                value = ",".join(str(item) for item in value)
            event_data[f"audit_meta_{key}"] = str(value) if value is not None else None

    return AuditEvent(**event_data)
