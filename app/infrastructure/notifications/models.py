"""Notification system core models.

Channel-agnostic notification models shared by the router, dispatchers,
tracker and orchestrator. Callers describe *what* to send with a
NotificationIntent; the engine persists a Notification and records one
ChannelAttempt per channel.

Uses Pydantic BaseModel for:
- RFC 5322 compliant email validation (EmailStr)
- Runtime input validation with field-level error messages
- JSON round-tripping through the notification store
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationChannel(Enum):
    """Delivery channels supported by the engine."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"


class NotificationType(Enum):
    """Business notification types.

    Types are grouped into routing and rate-limit classes below
    (cancellations, reminders, urgent alerts, announcements).
    """

    # Events
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_CANCELLED = "event_cancelled"
    EVENT_REMINDER = "event_reminder"
    DAILY_EVENT_REMINDER = "daily_event_reminder"
    WEEKLY_EVENT_REMINDER = "weekly_event_reminder"
    EVENT_STARTING_SOON = "event_starting_soon"
    INVITATION_RECEIVED = "invitation_received"

    # Attendance
    ATTENDANCE_MARKED = "attendance_marked"
    ATTENDANCE_VALIDATION_REQUIRED = "attendance_validation_required"
    ATTENDANCE_REMINDER = "attendance_reminder"

    # Appointments
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_REMINDER = "appointment_reminder"

    # Leave
    LEAVE_REQUESTED = "leave_requested"
    LEAVE_APPROVED = "leave_approved"
    LEAVE_REJECTED = "leave_rejected"

    # Resolutions
    RESOLUTION_ASSIGNED = "resolution_assigned"
    RESOLUTION_DEADLINE_APPROACHING = "resolution_deadline_approaching"

    # Account and security
    ACCOUNT_CREATED = "account_created"
    PASSWORD_RESET = "password_reset"
    ACCOUNT_LOCKED = "account_locked"
    SECURITY_ALERT = "security_alert"

    # System
    SYSTEM_ALERT = "system_alert"
    SYSTEM_MAINTENANCE = "system_maintenance"
    ANNOUNCEMENT = "announcement"
    REPORT_READY = "report_ready"


CANCELLATION_TYPES = frozenset(
    {
        NotificationType.EVENT_CANCELLED,
        NotificationType.APPOINTMENT_CANCELLED,
    }
)

REMINDER_TYPES = frozenset(
    {
        NotificationType.EVENT_REMINDER,
        NotificationType.DAILY_EVENT_REMINDER,
        NotificationType.WEEKLY_EVENT_REMINDER,
        NotificationType.EVENT_STARTING_SOON,
        NotificationType.ATTENDANCE_REMINDER,
        NotificationType.APPOINTMENT_REMINDER,
        NotificationType.RESOLUTION_DEADLINE_APPROACHING,
    }
)

URGENT_TYPES = frozenset(
    {
        NotificationType.SECURITY_ALERT,
        NotificationType.ACCOUNT_LOCKED,
        NotificationType.PASSWORD_RESET,
        NotificationType.SYSTEM_ALERT,
    }
)

ANNOUNCEMENT_TYPES = frozenset(
    {
        NotificationType.ANNOUNCEMENT,
        NotificationType.SYSTEM_MAINTENANCE,
    }
)


class NotificationPriority(Enum):
    """Notification priority levels.

    Priority drives the expiration date of in-app notifications and the
    push delivery priority.
    """

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(Enum):
    """Overall notification status, aggregated from channel outcomes."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class ChannelStatus(Enum):
    """Per-channel delivery status."""

    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


SUCCESSFUL_CHANNEL_STATUSES = frozenset({ChannelStatus.SENT, ChannelStatus.DELIVERED})

# In-app retention by priority, in days
EXPIRATION_DAYS = {
    NotificationPriority.URGENT: 30,
    NotificationPriority.HIGH: 14,
}
DEFAULT_EXPIRATION_DAYS = 7


def expiration_for(priority: NotificationPriority, now: Optional[datetime] = None) -> datetime:
    """Compute when a notification of the given priority expires."""
    days = EXPIRATION_DAYS.get(priority, DEFAULT_EXPIRATION_DAYS)
    return (now or utc_now()) + timedelta(days=days)


class NotificationIntent(BaseModel):
    """Request to notify one recipient.

    Attributes:
        recipient_id: Recipient identifier (required, non-blank)
        type: NotificationType of the message
        title: Title line (email subject, push title)
        message: Body text
        data: Arbitrary payload forwarded to push and stored with the record
        channels: Explicit channel list; routed by type when empty
        priority: NotificationPriority (default: NORMAL)
        issued_by: Issuer id recorded in the audit trail
        provider_id: Force one provider on every channel, disabling failover
        template_id: Template the title and message were rendered from

    Example:
        intent = NotificationIntent(
            recipient_id="user-42",
            type=NotificationType.EVENT_CANCELLED,
            title="Event cancelled",
            message="The quarterly review has been cancelled.",
            priority=NotificationPriority.HIGH,
        )
    """

    recipient_id: str = Field(..., min_length=1)
    type: NotificationType
    title: str
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    channels: List[NotificationChannel] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.NORMAL
    issued_by: str = "system"
    provider_id: Optional[str] = None
    template_id: Optional[str] = None

    @field_validator("recipient_id", "title")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank identifiers and titles."""
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v


class ChannelAttempt(BaseModel):
    """Final delivery outcome for one channel of a notification.

    Attributes:
        channel: Channel the outcome belongs to
        status: ChannelStatus (PENDING until dispatched)
        provider_id: Provider that produced the outcome
        message_id: Provider message id on success
        error: Failure description
        error_code: Machine error code (e.g. NO_ADDRESS_ON_FILE)
        attempts: Number of providers tried
        success_count: Delivered device tokens (push only)
        failure_count: Rejected device tokens (push only)
        updated_at: Last status change
    """

    channel: NotificationChannel
    status: ChannelStatus = ChannelStatus.PENDING
    provider_id: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    attempts: int = 0
    success_count: Optional[int] = None
    failure_count: Optional[int] = None
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_success(self) -> bool:
        return self.status in SUCCESSFUL_CHANNEL_STATUSES


class Notification(BaseModel):
    """Persisted notification record.

    Created once per accepted intent in PENDING state; the engine only
    updates it afterwards (channel outcomes, overall status, read flags).
    Delivery receipts move channels from SENT to DELIVERED (or FAILED) and
    stamp ``delivered_at`` once every channel is delivered.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient_id: str
    type: NotificationType
    title: str
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    channels: List[NotificationChannel] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.NORMAL
    status: NotificationStatus = NotificationStatus.PENDING
    channel_status: Dict[NotificationChannel, ChannelAttempt] = Field(
        default_factory=dict
    )
    read: bool = False
    read_at: Optional[datetime] = None
    issued_by: str = "system"
    template_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    expires_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_intent(
        cls, intent: NotificationIntent, channels: List[NotificationChannel]
    ) -> "Notification":
        """Build a PENDING notification for the resolved channel set."""
        now = utc_now()
        return cls(
            recipient_id=intent.recipient_id,
            type=intent.type,
            title=intent.title,
            message=intent.message,
            data=intent.data,
            channels=channels,
            priority=intent.priority,
            channel_status={
                channel: ChannelAttempt(channel=channel, updated_at=now)
                for channel in channels
            },
            issued_by=intent.issued_by,
            template_id=intent.template_id,
            created_at=now,
            updated_at=now,
            expires_at=expiration_for(intent.priority, now),
        )


class RecipientProfile(BaseModel):
    """Contact details of a recipient.

    Attributes:
        recipient_id: Recipient identifier
        email: Email address (optional, validated with EmailStr)
        phone_number: Phone number for SMS (optional, E.164 format)
        push_tokens: Registered device tokens
    """

    recipient_id: str
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = None
    push_tokens: List[str] = Field(default_factory=list)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: Optional[str]) -> Optional[str]:
        """Validate E.164 phone format if provided."""
        if v is None:
            return v
        if not v.startswith("+") or not v[1:].isdigit():
            raise ValueError(f"Phone number must be in E.164 format: {v}")
        if len(v) < 8 or len(v) > 16:
            raise ValueError(f"Phone number length invalid: {v}")
        return v


class Template(BaseModel):
    """Reusable notification template.

    ``title`` and ``body`` contain ``{variable}`` placeholders; ``variables``
    documents the names the template expects.
    """

    id: str
    type: NotificationType
    title: str
    body: str
    variables: List[str] = Field(default_factory=list)
    channels: List[NotificationChannel] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.NORMAL


class BulkNotificationRequest(BaseModel):
    """Request to send the same notification to many recipients.

    ``batch_size`` overrides the configured bulk batch size when set.
    """

    recipient_ids: List[str]
    type: NotificationType
    title: str
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    channels: List[NotificationChannel] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.NORMAL
    issued_by: str = "system"
    batch_size: Optional[int] = Field(default=None, gt=0)

    def intent_for(self, recipient_id: str) -> Dict[str, Any]:
        """Build the per-recipient intent payload."""
        return {
            "recipient_id": recipient_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": dict(self.data),
            "channels": list(self.channels),
            "priority": self.priority,
            "issued_by": self.issued_by,
        }


class BulkRecipientError(BaseModel):
    """Failure of one recipient within a bulk send."""

    recipient_id: str
    error: str
    error_code: str


class BulkNotificationResult(BaseModel):
    """Outcome of a bulk send.

    ``sent + failed == total`` and ``len(notifications) == sent``.
    """

    total: int
    sent: int = 0
    failed: int = 0
    batches: int = 0
    notifications: List[Notification] = Field(default_factory=list)
    errors: List[BulkRecipientError] = Field(default_factory=list)


class NotificationPage(BaseModel):
    """One page of a recipient's notifications, newest first."""

    notifications: List[Notification] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.notifications) < self.total


class NotificationStats(BaseModel):
    """Delivery statistics over a set of notifications.

    Attributes:
        total: Notifications counted
        pending / sent / delivered / failed: Counts by overall status
        by_channel: Notifications per channel (one per channel they went out on)
        by_type: Notifications per NotificationType value
        delivery_rate: Percentage of notifications sent or delivered
        average_delivery_seconds: Mean time from creation to delivery, over
            delivered notifications
    """

    total: int = 0
    pending: int = 0
    sent: int = 0
    delivered: int = 0
    failed: int = 0
    by_channel: Dict[str, int] = Field(default_factory=dict)
    by_type: Dict[str, int] = Field(default_factory=dict)
    delivery_rate: float = 0.0
    average_delivery_seconds: float = 0.0


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_at: datetime
    retry_after_seconds: Optional[int] = None
