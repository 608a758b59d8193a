"""Notification engine feature settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings


class NotificationSettings(FeatureSettings):
    """Tuning for the notification dispatch engine.

    Environment Variables:
        NOTIFICATION_BULK_BATCH_SIZE: Recipients processed concurrently per batch
        NOTIFICATION_BULK_BATCH_PAUSE_SECONDS: Pause between batches
        NOTIFICATION_RATE_LIMIT_WINDOW_SECONDS: Fixed window length
        NOTIFICATION_RATE_LIMIT_DEFAULT_MAX: Ceiling for types without an override
        NOTIFICATION_RATE_LIMIT_DAILY_MAX: Per-day ceiling for types without an override
        NOTIFICATION_RATE_LIMIT_BACKEND: 'memory' or 'redis'
        NOTIFICATION_RATE_LIMIT_REDIS_URL: Redis URL when backend is 'redis'
        NOTIFICATION_RATE_LIMIT_SWEEP_INTERVAL_SECONDS: In-memory expiry sweep period
        NOTIFICATION_PROVIDER_TIMEOUT_SECONDS: Upper bound for one provider call
        NOTIFICATION_PUSH_MAX_TOKENS_PER_CALL: Device tokens per push sub-batch
        NOTIFICATION_SMS_MAX_LENGTH: SMS body truncation length
        NOTIFICATION_MAX_CHANNEL_WORKERS: Thread cap for per-notification fan-out

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        batch_size = settings.notifications.bulk_batch_size
        window = settings.notifications.rate_limit_window_seconds
        ```
    """

    bulk_batch_size: int = Field(
        default=50,
        alias="NOTIFICATION_BULK_BATCH_SIZE",
        description="Recipients sent concurrently in one bulk batch",
    )
    bulk_batch_pause_seconds: float = Field(
        default=0.1,
        alias="NOTIFICATION_BULK_BATCH_PAUSE_SECONDS",
        description="Fixed pause between bulk batches (seconds)",
    )
    rate_limit_window_seconds: int = Field(
        default=3600,
        alias="NOTIFICATION_RATE_LIMIT_WINDOW_SECONDS",
        description="Fixed rate limit window length (seconds, 1 hour)",
    )
    rate_limit_default_max: int = Field(
        default=20,
        alias="NOTIFICATION_RATE_LIMIT_DEFAULT_MAX",
        description="Notifications per recipient and type per window",
    )
    rate_limit_daily_max: int = Field(
        default=100,
        alias="NOTIFICATION_RATE_LIMIT_DAILY_MAX",
        description="Notifications per recipient and type per day",
    )
    rate_limit_backend: str = Field(
        default="memory",
        alias="NOTIFICATION_RATE_LIMIT_BACKEND",
        description="Rate limit store backend: 'memory' or 'redis'",
    )
    rate_limit_redis_url: str = Field(
        default="redis://localhost:6379/0",
        alias="NOTIFICATION_RATE_LIMIT_REDIS_URL",
        description="Redis connection URL for the shared rate limit store",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        default=60.0,
        alias="NOTIFICATION_RATE_LIMIT_SWEEP_INTERVAL_SECONDS",
        description="How often expired in-memory windows are evicted (seconds)",
    )
    provider_timeout_seconds: float = Field(
        default=15.0,
        alias="NOTIFICATION_PROVIDER_TIMEOUT_SECONDS",
        description="Timeout applied to each provider call (seconds)",
    )
    push_max_tokens_per_call: int = Field(
        default=500,
        alias="NOTIFICATION_PUSH_MAX_TOKENS_PER_CALL",
        description="Device tokens per push provider call",
    )
    sms_max_length: int = Field(
        default=1600,
        alias="NOTIFICATION_SMS_MAX_LENGTH",
        description="Maximum SMS body length before truncation",
    )
    max_channel_workers: int = Field(
        default=4,
        alias="NOTIFICATION_MAX_CHANNEL_WORKERS",
        description="Thread cap for concurrent channel dispatch",
    )

    @field_validator("rate_limit_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate the rate limit backend name."""
        backend = v.lower()
        if backend not in ("memory", "redis"):
            raise ValueError("rate_limit_backend must be 'memory' or 'redis'")
        return backend

    @field_validator(
        "bulk_batch_size",
        "rate_limit_window_seconds",
        "rate_limit_default_max",
        "rate_limit_daily_max",
        "push_max_tokens_per_call",
        "sms_max_length",
        "max_channel_workers",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate that counters and sizes are positive."""
        if v <= 0:
            raise ValueError("value must be greater than zero")
        return v
