"""Request context binding for structured logging.

Binds per-send context (correlation id, recipient, notification type) to
structlog's context variables so every log entry emitted while a
notification is processed carries it.

Usage:
    from infrastructure.logging import bind_request_context

    with bind_request_context(recipient_id="user-1", notification_type="system_alert"):
        logger.info("notification_dispatch_started")
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None,
    recipient_id: Optional[str] = None,
    notification_type: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind send-scoped context to all logs within the context manager.

    Args:
        correlation_id: Unique operation identifier. Auto-generated if not
            provided.
        recipient_id: Recipient the notification is addressed to.
        notification_type: Notification type value.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        The correlation id bound for the block.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}

    if recipient_id is not None:
        context["recipient_id"] = recipient_id

    if notification_type is not None:
        context["notification_type"] = notification_type

    context.update(extra_context)

    # Previous values are restored on exit, so nested blocks are safe
    with structlog.contextvars.bound_contextvars(**context):
        yield context["correlation_id"]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context.

    Returns:
        The correlation ID if set, None otherwise.
    """
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")
