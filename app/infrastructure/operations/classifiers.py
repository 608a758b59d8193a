"""Error classifiers for delivery provider HTTP calls.

Converts ``requests`` responses and exceptions into standardized
OperationResult objects so every HTTP-backed provider reports failures the
same way.

Key Functions:
- classify_http_status(): non-2xx status code (any HTTP client) → OperationResult
- classify_http_response(): non-2xx ``requests.Response`` → OperationResult
- classify_request_exception(): ``requests`` exceptions → OperationResult

Usage:
    from infrastructure.operations.classifiers import (
        classify_http_response,
        classify_request_exception,
    )

    try:
        response = requests.post(url, json=payload, timeout=10)
    except requests.RequestException as exc:
        return classify_request_exception(exc, provider="twilio")
    if not response.ok:
        return classify_http_response(response, provider="twilio")
"""

from typing import Any, Mapping, Optional

import requests

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60


def _retry_after(headers: Optional[Mapping[str, Any]]) -> int:
    header_value = headers.get("Retry-After") if headers else None
    if header_value:
        try:
            return int(header_value)
        except (ValueError, TypeError):
            pass  # Malformed header, keep the default
    return DEFAULT_RETRY_AFTER_SECONDS


def _response_detail(response: requests.Response) -> str:
    text: Optional[str] = getattr(response, "text", None)
    if not text:
        return ""
    return text[:200]


def classify_http_status(
    status_code: int,
    provider: str = "provider",
    detail: str = "",
    headers: Optional[Mapping[str, Any]] = None,
) -> OperationResult:
    """Classify a non-successful HTTP status code into OperationResult.

    Status Code Mapping:
    - 429: Throttled → TRANSIENT_ERROR with retry_after
    - 401/403: Credentials rejected → UNAUTHORIZED
    - 404: Not found → NOT_FOUND
    - 5xx: Server error → TRANSIENT_ERROR
    - Other 4xx: Rejected request → PERMANENT_ERROR

    Args:
        status_code: HTTP status returned by the provider API
        provider: Provider name used in the message
        detail: Response body excerpt included in client error messages
        headers: Response headers (``Retry-After`` is honoured on 429)

    Returns:
        OperationResult with appropriate status, message, error_code, and
        retry_after (if applicable)
    """
    if status_code == 429:
        return OperationResult.transient_error(
            f"{provider} API rate limited",
            error_code="RATE_LIMITED",
            retry_after=_retry_after(headers),
        )

    if status_code in (401, 403):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"{provider} API rejected credentials ({status_code})",
            error_code="UNAUTHORIZED",
        )

    if status_code == 404:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"{provider} API resource not found: {detail}",
            error_code="NOT_FOUND",
        )

    if 500 <= status_code < 600:
        return OperationResult.transient_error(
            f"{provider} API server error ({status_code})",
            error_code="SERVER_ERROR",
        )

    return OperationResult.permanent_error(
        f"{provider} API client error ({status_code}): {detail}",
        error_code="HTTP_ERROR",
    )


def classify_http_response(
    response: requests.Response, provider: str = "provider"
) -> OperationResult:
    """Classify a non-successful ``requests`` response into OperationResult.

    Args:
        response: The ``requests`` response returned by the provider API
        provider: Provider name used in the message

    Returns:
        OperationResult as mapped by ``classify_http_status``
    """
    return classify_http_status(
        response.status_code,
        provider=provider,
        detail=_response_detail(response),
        headers=response.headers,
    )


def classify_request_exception(
    exc: Exception, provider: str = "provider"
) -> OperationResult:
    """Classify a ``requests`` exception into OperationResult.

    Timeouts and connection failures are transient. Anything else raised by
    ``requests`` (invalid URL, too many redirects) is permanent.

    Args:
        exc: Exception raised while calling the provider API
        provider: Provider name used in the message

    Returns:
        OperationResult with TRANSIENT_ERROR or PERMANENT_ERROR status
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"{provider} API timed out: {exc}",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"{provider} API connection error: {exc}",
            error_code="CONNECTION_ERROR",
        )

    return OperationResult.permanent_error(
        f"{provider} API request failed: {type(exc).__name__}: {exc}",
        error_code="REQUEST_ERROR",
    )
