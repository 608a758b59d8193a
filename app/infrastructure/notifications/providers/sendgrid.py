"""SendGrid email provider (v3 mail send API through the sendgrid SDK)."""

from typing import Optional
from urllib.error import URLError

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import CustomArg, From, Mail

from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.providers.base import (
    ChannelProvider,
    ProviderKind,
    ProviderMessage,
)
from infrastructure.operations import OperationResult, classify_http_status

DEFAULT_API_HOST = "https://api.sendgrid.com"


def _error_detail(body) -> str:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return str(body or "")[:200]


class SendGridEmailProvider(ChannelProvider):
    """Sends plain-text email through SendGrid.

    SendGrid answers 202 with an empty body; the message id comes back in
    the ``X-Message-Id`` header.
    """

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        from_name: str = "",
        api_host: str = DEFAULT_API_HOST,
        provider_id: str = "sendgrid",
        priority: int = 1,
        is_active: bool = True,
        timeout_seconds: float = 10.0,
    ):
        super().__init__(provider_id=provider_id, priority=priority, is_active=is_active)
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name
        self._api_host = api_host
        self._timeout_seconds = timeout_seconds

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.SENDGRID

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def _mail(self, message: ProviderMessage) -> Mail:
        mail = Mail(
            from_email=From(self._from_email, self._from_name or None),
            to_emails=message.address,
            subject=message.subject or "",
            plain_text_content=message.body,
        )
        if message.reference:
            mail.custom_arg = CustomArg("notification_id", message.reference)
        return mail

    def _client(self) -> SendGridAPIClient:
        client = SendGridAPIClient(api_key=self._api_key, host=self._api_host)
        client.client.timeout = self._timeout_seconds
        return client

    def send(self, message: ProviderMessage) -> OperationResult:
        if not self._api_key:
            return OperationResult.permanent_error(
                "SendGrid API key missing", error_code="PROVIDER_NOT_CONFIGURED"
            )

        try:
            response = self._client().send(self._mail(message))
        except HTTPError as e:
            return classify_http_status(
                e.status_code,
                provider="sendgrid",
                detail=_error_detail(e.body),
                headers=e.headers,
            )
        except TimeoutError as e:
            return OperationResult.transient_error(
                f"sendgrid API timed out: {e}", error_code="TIMEOUT"
            )
        except URLError as e:
            return OperationResult.transient_error(
                f"sendgrid API connection error: {e.reason}",
                error_code="CONNECTION_ERROR",
            )

        if not 200 <= response.status_code < 300:
            return classify_http_status(
                response.status_code,
                provider="sendgrid",
                detail=_error_detail(response.body),
                headers=response.headers,
            )

        return OperationResult.success(
            message="Email sent via SendGrid",
            data={"message_id": response.headers.get("X-Message-Id")},
        )

    def health_check(self) -> OperationResult:
        if not self._api_key:
            return OperationResult.permanent_error(
                "SendGrid API key missing", error_code="PROVIDER_NOT_CONFIGURED"
            )
        return OperationResult.success(
            message="SendGrid configured", data={"api_host": self._api_host}
        )
