"""GC Notify email and SMS providers.

GC Notify delivers through templates registered in the Notify service.
Both providers use a generic template whose personalisation fields
``subject`` and ``body`` receive the rendered notification.
"""

from typing import Any, Dict, Optional

import requests

from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.providers.base import (
    ChannelProvider,
    ProviderKind,
    ProviderMessage,
)
from infrastructure.operations import (
    OperationResult,
    classify_http_response,
    classify_request_exception,
)
from integrations.notify import (
    EMAIL_ENDPOINT,
    SMS_ENDPOINT,
    create_authorization_header,
    post_notification,
)


class _GCNotifyProvider(ChannelProvider):
    """Shared GC Notify request handling."""

    endpoint = ""
    address_field = ""

    def __init__(
        self,
        service_id: Optional[str],
        api_secret: Optional[str],
        template_id: Optional[str],
        api_url: str = "https://api.notification.canada.ca",
        provider_id: str = "gc_notify",
        priority: int = 2,
        is_active: bool = True,
        timeout_seconds: float = 10.0,
    ):
        super().__init__(provider_id=provider_id, priority=priority, is_active=is_active)
        self._service_id = service_id
        self._api_secret = api_secret
        self._template_id = template_id
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds

    def _payload(self, message: ProviderMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            self.address_field: message.address,
            "template_id": self._template_id,
            "personalisation": {
                "subject": message.subject or "",
                "body": message.body,
            },
        }
        if message.reference:
            payload["reference"] = message.reference
        return payload

    def send(self, message: ProviderMessage) -> OperationResult:
        if not self._service_id or not self._api_secret or not self._template_id:
            return OperationResult.permanent_error(
                "GC Notify credentials or template id missing",
                error_code="PROVIDER_NOT_CONFIGURED",
            )

        try:
            response = post_notification(
                self._api_url,
                self.endpoint,
                self._payload(message),
                client_id=self._service_id,
                secret=self._api_secret,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            return classify_request_exception(e, provider="gc_notify")

        if response.status_code != 201:
            return classify_http_response(response, provider="gc_notify")

        response_data = response.json()
        return OperationResult.success(
            message=f"{self.channel.value} sent via GC Notify",
            data={"message_id": response_data.get("id")},
        )

    def health_check(self) -> OperationResult:
        if not self._template_id:
            return OperationResult.permanent_error(
                "GC Notify template id missing", error_code="PROVIDER_NOT_CONFIGURED"
            )
        try:
            create_authorization_header(self._service_id or "", self._api_secret or "")
        except ValueError as e:
            return OperationResult.permanent_error(
                f"GC Notify credentials invalid: {e}",
                error_code="PROVIDER_NOT_CONFIGURED",
            )
        return OperationResult.success(
            message="GC Notify API credentials valid",
            data={"api_url": self._api_url},
        )


class GCNotifyEmailProvider(_GCNotifyProvider):
    endpoint = EMAIL_ENDPOINT
    address_field = "email_address"

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.GC_NOTIFY_EMAIL

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL


class GCNotifySMSProvider(_GCNotifyProvider):
    endpoint = SMS_ENDPOINT
    address_field = "phone_number"

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.GC_NOTIFY_SMS

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.SMS
