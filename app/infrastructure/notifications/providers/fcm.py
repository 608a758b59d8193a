"""Firebase Cloud Messaging push provider.

Uses the FCM HTTP multicast endpoint: one request carries up to 500
``registration_ids`` and the response reports a result per token.
"""

from typing import Any, Dict, List, Optional

import requests

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationPriority,
)
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

logger = get_module_logger()

MAX_TOKENS_PER_REQUEST = 500


class FCMPushProvider(ChannelProvider):
    """Sends push notifications to a set of device tokens.

    The call succeeds when at least one token was accepted. Result data:
    ``message_id`` (multicast id), ``success_count``, ``failure_count`` and
    ``failed_tokens``.
    """

    def __init__(
        self,
        server_key: Optional[str],
        api_url: str = "https://fcm.googleapis.com/fcm/send",
        provider_id: str = "fcm",
        priority: int = 1,
        is_active: bool = True,
        timeout_seconds: float = 10.0,
    ):
        super().__init__(provider_id=provider_id, priority=priority, is_active=is_active)
        self._server_key = server_key
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.FCM

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def _payload(self, message: ProviderMessage) -> Dict[str, Any]:
        # FCM data values must be strings
        data = {key: str(value) for key, value in message.data.items()}
        return {
            "registration_ids": message.addresses,
            "priority": "high" if message.priority == NotificationPriority.URGENT else "normal",
            "notification": {"title": message.subject or "", "body": message.body},
            "data": data,
        }

    def send(self, message: ProviderMessage) -> OperationResult:
        if not self._server_key:
            return OperationResult.permanent_error(
                "FCM server key missing", error_code="PROVIDER_NOT_CONFIGURED"
            )
        if len(message.addresses) > MAX_TOKENS_PER_REQUEST:
            return OperationResult.permanent_error(
                f"FCM accepts at most {MAX_TOKENS_PER_REQUEST} tokens per request",
                error_code="TOO_MANY_TOKENS",
            )

        headers = {
            "Authorization": f"key={self._server_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                self._api_url,
                json=self._payload(message),
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            return classify_request_exception(e, provider="fcm")

        if response.status_code != 200:
            return classify_http_response(response, provider="fcm")

        body = response.json()
        results: List[Dict[str, Any]] = body.get("results", [])
        failed_tokens = [
            token
            for token, result in zip(message.addresses, results)
            if "error" in result
        ]
        counts = {
            "message_id": str(body.get("multicast_id")) if body.get("multicast_id") else None,
            "success_count": body.get("success", 0),
            "failure_count": body.get("failure", 0),
            "failed_tokens": failed_tokens,
        }

        if counts["success_count"] == 0:
            return OperationResult.permanent_error(
                "FCM rejected every device token",
                error_code="ALL_TOKENS_REJECTED",
                data=counts,
            )

        if failed_tokens:
            logger.warning(
                "push_devices_rejected",
                provider_id=self.provider_id,
                rejected=len(failed_tokens),
            )
        return OperationResult.success(message="Push sent via FCM", data=counts)

    def health_check(self) -> OperationResult:
        if not self._server_key:
            return OperationResult.permanent_error(
                "FCM server key missing", error_code="PROVIDER_NOT_CONFIGURED"
            )
        return OperationResult.success(
            message="FCM configured", data={"api_url": self._api_url}
        )
