"""Storage interfaces used by the notification engine.

The engine reads recipients and templates and persists notifications
through these protocols. Persistence schemas belong to the host
application; the in-memory implementations back local runs and tests.

Notifications are stored as JSON documents. ``update`` takes a mapping of
dotted field paths (``"channel_status.email"``) to JSON values so that
concurrent channel updates touch disjoint fields of the same document.
"""

import threading
from typing import Any, Dict, Iterable, List, Optional, Protocol

from infrastructure.notifications.exceptions import NotificationNotFound
from infrastructure.notifications.models import (
    Notification,
    RecipientProfile,
    Template,
)


class NotificationStore(Protocol):
    """Persistence for notification records."""

    def create(self, notification: Notification) -> str:
        """Insert a new notification and return its id."""
        ...

    def get(self, notification_id: str) -> Optional[Notification]:
        """Fetch one notification by id."""
        ...

    def update(self, notification_id: str, fields: Dict[str, Any]) -> None:
        """Apply a partial update of dotted field paths to JSON values.

        Raises:
            NotificationNotFound: If no notification has this id.
        """
        ...

    def query(self, recipient_id: str, unread_only: bool = False) -> List[Notification]:
        """List a recipient's notifications, newest first."""
        ...


class RecipientProfileProvider(Protocol):
    """Lookup of recipient contact details."""

    def get_by_id(self, recipient_id: str) -> Optional[RecipientProfile]:
        ...


class TemplateStore(Protocol):
    """Lookup of notification templates."""

    def get_by_id(self, template_id: str) -> Optional[Template]:
        ...


def _set_path(document: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


class InMemoryNotificationStore:
    """Thread-safe in-memory NotificationStore."""

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, notification: Notification) -> str:
        with self._lock:
            self._documents[notification.id] = notification.model_dump(mode="json")
        return notification.id

    def get(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            document = self._documents.get(notification_id)
            if document is None:
                return None
            return Notification.model_validate(document)

    def update(self, notification_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            document = self._documents.get(notification_id)
            if document is None:
                raise NotificationNotFound(notification_id)
            for path, value in fields.items():
                _set_path(document, path, value)

    def query(self, recipient_id: str, unread_only: bool = False) -> List[Notification]:
        with self._lock:
            documents = [
                d
                for d in self._documents.values()
                if d["recipient_id"] == recipient_id and not (unread_only and d["read"])
            ]
            notifications = [Notification.model_validate(d) for d in documents]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)


class InMemoryRecipientDirectory:
    """RecipientProfileProvider backed by a dict."""

    def __init__(self, profiles: Optional[Iterable[RecipientProfile]] = None) -> None:
        self._profiles: Dict[str, RecipientProfile] = {}
        for profile in profiles or []:
            self.save(profile)

    def save(self, profile: RecipientProfile) -> None:
        self._profiles[profile.recipient_id] = profile

    def get_by_id(self, recipient_id: str) -> Optional[RecipientProfile]:
        return self._profiles.get(recipient_id)


class InMemoryTemplateStore:
    """TemplateStore backed by a dict."""

    def __init__(self, templates: Optional[Iterable[Template]] = None) -> None:
        self._templates: Dict[str, Template] = {}
        for template in templates or []:
            self.save(template)

    def save(self, template: Template) -> None:
        self._templates[template.id] = template

    def get_by_id(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)
