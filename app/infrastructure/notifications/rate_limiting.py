"""Per-recipient notification rate limiting.

Fixed-window counters keyed by ``{recipient_id}:{notification_type}`` (hourly)
and ``{recipient_id}:{notification_type}:day`` (daily, when enabled). The
counter storage is pluggable through the RateLimitStore protocol:

- InMemoryRateLimitStore: process-local dict with a background sweeper that
  evicts expired windows (single-instance deployments, tests)
- RedisRateLimitStore: shared store for multi-instance deployments; expired
  windows disappear through Redis key TTLs

The read-increment-write sequence is not transactional. Two concurrent
checks for the same key can both read the same count, so the effective
ceiling may be exceeded slightly under contention (last writer wins).
"""

import json
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis import Redis, RedisError  # type: ignore

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    ANNOUNCEMENT_TYPES,
    REMINDER_TYPES,
    URGENT_TYPES,
    NotificationType,
    RateLimitDecision,
)

logger = get_module_logger()

DEFAULT_WINDOW_SECONDS = 3600
DEFAULT_MAX_PER_WINDOW = 20
DAILY_WINDOW_SECONDS = 86400


def build_rate_limit_table(default_max: int) -> Dict[NotificationType, int]:
    """Per-type ceilings relative to the default.

    Reminders are expected in bursts and get a high ceiling, urgent alerts
    get twice the default, announcements are capped low.
    """
    table: Dict[NotificationType, int] = {}
    for notification_type in REMINDER_TYPES:
        table[notification_type] = default_max * 5 // 2
    for notification_type in URGENT_TYPES:
        table[notification_type] = default_max * 2
    for notification_type in ANNOUNCEMENT_TYPES:
        table[notification_type] = max(1, default_max // 4)
    return table


@dataclass
class RateLimitEntry:
    """Counter for one fixed window.

    Attributes:
        count: Requests counted in the current window
        reset_time: Epoch seconds at which the window ends
    """

    count: int
    reset_time: float


class RateLimitStore(Protocol):
    """Storage interface for rate limit windows."""

    def get(self, key: str) -> Optional[RateLimitEntry]:
        """Return the current entry for key, if any."""
        ...

    def set(self, key: str, entry: RateLimitEntry) -> None:
        """Replace the entry for key."""
        ...

    def sweep(self, now: float) -> int:
        """Evict entries whose window ended before now. Returns evictions."""
        ...


class InMemoryRateLimitStore:
    """Thread-safe in-memory RateLimitStore with periodic expiry sweeps.

    The sweeper runs on a daemon thread started with ``start_sweeper()``
    and is independent of lookups: expired entries are evicted even for
    keys that are never checked again.
    """

    def __init__(
        self,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def get(self, key: str) -> Optional[RateLimitEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, reset_time=entry.reset_time)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        with self._lock:
            self._entries[key] = RateLimitEntry(
                count=entry.count, reset_time=entry.reset_time
            )

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [k for k, e in self._entries.items() if now > e.reset_time]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("rate_limit_entries_swept", evicted=len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def start_sweeper(self) -> None:
        """Start the background expiry sweeper (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper,
            name="rate-limit-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.info(
            "rate_limit_sweeper_started",
            interval_seconds=self._sweep_interval_seconds,
        )

    def stop_sweeper(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the background sweeper and wait for it to exit."""
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=timeout)
            self._sweeper = None
            logger.info("rate_limit_sweeper_stopped")

    def _run_sweeper(self) -> None:
        while not self._stop_event.wait(self._sweep_interval_seconds):
            try:
                self.sweep(self._clock())
            except Exception as e:  # pylint: disable=broad-except
                logger.error("rate_limit_sweep_failed", error=str(e))


class RedisRateLimitStore:
    """RateLimitStore backed by Redis.

    Entries are stored as JSON with a TTL matching the end of their window,
    so ``sweep`` has nothing to do. Redis errors are logged and treated as a
    missing entry (the check fails open rather than blocking delivery).
    """

    def __init__(
        self,
        client: Redis,
        key_prefix: str = "notifications:ratelimit:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisRateLimitStore":
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client, **kwargs)

    def get(self, key: str) -> Optional[RateLimitEntry]:
        try:
            raw = self._client.get(self._key_prefix + key)
        except RedisError as e:
            logger.error("rate_limit_store_read_failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        payload = json.loads(raw)
        return RateLimitEntry(count=payload["count"], reset_time=payload["reset_time"])

    def set(self, key: str, entry: RateLimitEntry) -> None:
        ttl_ms = max(1, int((entry.reset_time - self._clock()) * 1000))
        payload = json.dumps({"count": entry.count, "reset_time": entry.reset_time})
        try:
            self._client.set(self._key_prefix + key, payload, px=ttl_ms)
        except RedisError as e:
            logger.error("rate_limit_store_write_failed", key=key, error=str(e))

    def sweep(self, now: float) -> int:
        return 0


class RateLimiter:
    """Fixed-window rate limiter.

    ``check_notification`` enforces an hourly window and, when ``daily_max``
    is set, a day-long window next to it. A request is counted in both
    windows only when both allow it.

    Args:
        store: RateLimitStore holding the window counters
        window_seconds: Window length used by ``check_notification``
        default_max: Ceiling for notification types without an override
        limits: Per-type ceilings; built from default_max when omitted
        daily_max: Per-day ceiling for types without an override (None disables)
        daily_limits: Per-type daily ceilings; built from daily_max when omitted
        clock: Returns the current time in epoch seconds
    """

    def __init__(
        self,
        store: RateLimitStore,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        default_max: int = DEFAULT_MAX_PER_WINDOW,
        limits: Optional[Dict[NotificationType, int]] = None,
        daily_max: Optional[int] = None,
        daily_limits: Optional[Dict[NotificationType, int]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.window_seconds = window_seconds
        self.default_max = default_max
        self.limits = limits if limits is not None else build_rate_limit_table(default_max)
        self.daily_max = daily_max
        if daily_limits is None and daily_max is not None:
            daily_limits = build_rate_limit_table(daily_max)
        self.daily_limits = daily_limits or {}
        self._clock = clock

    def limit_for(self, notification_type: NotificationType) -> int:
        return self.limits.get(notification_type, self.default_max)

    def daily_limit_for(self, notification_type: NotificationType) -> Optional[int]:
        if self.daily_max is None:
            return None
        return self.daily_limits.get(notification_type, self.daily_max)

    def check(self, key: str, window_seconds: int, max_requests: int) -> RateLimitDecision:
        """Count one request against key and decide whether it is allowed.

        A new window starts on the first request or once the previous window
        has ended; within a window requests are allowed until the count
        reaches ``max_requests``.
        """
        decision, entry = self._evaluate(key, window_seconds, max_requests, self._clock())
        if entry is not None:
            self.store.set(key, entry)
        return decision

    def check_notification(
        self, recipient_id: str, notification_type: NotificationType
    ) -> RateLimitDecision:
        """Check the per-recipient, per-type quotas for one notification.

        Returns the hourly decision, or the daily one when it is the tighter
        of the two. A denial returns the window with the longest wait.
        """
        now = self._clock()
        key = f"{recipient_id}:{notification_type.value}"
        decision, entry = self._evaluate(
            key, self.window_seconds, self.limit_for(notification_type), now
        )
        windows = [(key, decision, entry)]
        daily_limit = self.daily_limit_for(notification_type)
        if daily_limit is not None:
            daily_key = f"{key}:day"
            decision, entry = self._evaluate(daily_key, DAILY_WINDOW_SECONDS, daily_limit, now)
            windows.append((daily_key, decision, entry))

        denied = [decision for _, decision, _ in windows if not decision.allowed]
        if denied:
            decision = max(denied, key=lambda d: d.retry_after_seconds or 0)
            logger.warning(
                "notification_rate_limited",
                recipient_id=recipient_id,
                notification_type=notification_type.value,
                retry_after_seconds=decision.retry_after_seconds,
            )
            return decision

        for window_key, _, entry in windows:
            self.store.set(window_key, entry)
        return min((decision for _, decision, _ in windows), key=lambda d: d.remaining)

    def _evaluate(
        self, key: str, window_seconds: int, max_requests: int, now: float
    ) -> Tuple[RateLimitDecision, Optional[RateLimitEntry]]:
        """Decide on one request without writing; returns the entry to store."""
        entry = self.store.get(key)

        if entry is None or now > entry.reset_time:
            entry = RateLimitEntry(count=1, reset_time=now + window_seconds)
            return (
                RateLimitDecision(
                    allowed=True,
                    remaining=max_requests - 1,
                    reset_at=_to_datetime(entry.reset_time),
                ),
                entry,
            )

        if entry.count < max_requests:
            entry.count += 1
            return (
                RateLimitDecision(
                    allowed=True,
                    remaining=max_requests - entry.count,
                    reset_at=_to_datetime(entry.reset_time),
                ),
                entry,
            )

        return (
            RateLimitDecision(
                allowed=False,
                remaining=0,
                reset_at=_to_datetime(entry.reset_time),
                retry_after_seconds=max(1, math.ceil(entry.reset_time - now)),
            ),
            None,
        )


def _to_datetime(epoch_seconds: float) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
