"""Twilio SMS provider (Programmable Messaging REST API)."""

from typing import Optional

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


class TwilioSMSProvider(ChannelProvider):
    """Sends SMS through the Twilio Messages resource.

    Authenticates with HTTP basic auth (account SID, auth token) and posts
    form-encoded ``To``/``From``/``Body`` fields.
    """

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        api_url: str = "https://api.twilio.com/2010-04-01",
        provider_id: str = "twilio",
        priority: int = 1,
        is_active: bool = True,
        timeout_seconds: float = 10.0,
    ):
        super().__init__(provider_id=provider_id, priority=priority, is_active=is_active)
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.TWILIO

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.SMS

    def _is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def send(self, message: ProviderMessage) -> OperationResult:
        if not self._is_configured():
            return OperationResult.permanent_error(
                "Twilio credentials or sender number missing",
                error_code="PROVIDER_NOT_CONFIGURED",
            )

        url = f"{self._api_url.rstrip('/')}/Accounts/{self._account_sid}/Messages.json"
        form = {"To": message.address, "From": self._from_number, "Body": message.body}
        try:
            response = requests.post(
                url,
                data=form,
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            return classify_request_exception(e, provider="twilio")

        if response.status_code != 201:
            return classify_http_response(response, provider="twilio")

        return OperationResult.success(
            message="SMS sent via Twilio",
            data={"message_id": response.json().get("sid")},
        )

    def health_check(self) -> OperationResult:
        if not self._is_configured():
            return OperationResult.permanent_error(
                "Twilio credentials or sender number missing",
                error_code="PROVIDER_NOT_CONFIGURED",
            )
        return OperationResult.success(
            message="Twilio configured", data={"api_url": self._api_url}
        )
