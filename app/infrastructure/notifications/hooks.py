"""Post-send hooks.

Hooks are pluggy plugins implementing ``notification_outcome`` and observe
the outcome of every send, bulk run and delivery receipt after the fact. They are called
in registration order; a failing hook is logged and skipped so it can
never change the result returned to the caller.

Example:
    class MetricsPlugin:
        @hookimpl
        def notification_outcome(self, outcome):
            counter.inc(outcome.action)

    orchestrator.register_hook(MetricsPlugin())
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

import pluggy

from infrastructure import hookspecs
from infrastructure.audit import AuditSink, create_audit_event
from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import Notification

logger = get_module_logger()

hookimpl = pluggy.HookimplMarker("notification_engine")

NOTIFICATION_SENT = "notification_sent"
NOTIFICATION_FAILED = "notification_failed"
BULK_NOTIFICATION_SENT = "bulk_notification_sent"
DELIVERY_RECEIPT_RECORDED = "delivery_receipt_recorded"


@dataclass
class SendOutcome:
    """What happened to one send or bulk run.

    Attributes:
        action: NOTIFICATION_SENT, NOTIFICATION_FAILED, BULK_NOTIFICATION_SENT
            or DELIVERY_RECEIPT_RECORDED
        resource_type: 'notification' or 'bulk_notification'
        resource_id: Notification id, or recipient id if none was created
        actor_id: Issuer of the notification
        correlation_id: Correlation id of the operation
        notification: Resulting notification, when one was created
        error_code: Error code when the send was rejected or failed
        error_message: Error description
        duration_ms: Elapsed time of the operation
        metadata: Extra audit fields (channels, counts)
    """

    action: str
    resource_type: str
    resource_id: str
    actor_id: str
    correlation_id: str
    notification: Optional[Notification] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.error_code is None


class AuditHook:
    """Post-send plugin that turns outcomes into audit events."""

    def __init__(self, sink: AuditSink):
        self.sink = sink

    @hookimpl
    def notification_outcome(self, outcome: SendOutcome) -> None:
        event = create_audit_event(
            correlation_id=outcome.correlation_id,
            action=outcome.action,
            resource_type=outcome.resource_type,
            resource_id=outcome.resource_id,
            actor_id=outcome.actor_id,
            result="success" if outcome.succeeded else "failure",
            error_type=outcome.error_code,
            error_message=outcome.error_message,
            duration_ms=outcome.duration_ms,
            metadata=outcome.metadata,
        )
        self.sink.record(event)


def create_hook_manager(plugins: Optional[Iterable[object]] = None) -> pluggy.PluginManager:
    """Create a plugin manager for post-send hooks and register plugins."""
    pm = pluggy.PluginManager("notification_engine")
    pm.add_hookspecs(hookspecs.notifications)
    for plugin in plugins or []:
        pm.register(plugin)
    return pm


def run_post_send_hooks(pm: pluggy.PluginManager, outcome: SendOutcome) -> None:
    """Call every hook with the outcome, logging and skipping failures."""
    # Registration order, one at a time so a failure does not stop the rest
    for impl in pm.hook.notification_outcome.get_hookimpls():
        try:
            impl.function(outcome=outcome)
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "post_send_hook_failed",
                hook=impl.plugin_name,
                action=outcome.action,
                resource_id=outcome.resource_id,
                error=str(e),
            )
