"""Unit tests for HTTP response and requests exception classifiers."""

from unittest.mock import MagicMock

import pytest
import requests

from infrastructure.operations import (
    OperationStatus,
    classify_http_response,
    classify_http_status,
    classify_request_exception,
)


def _response(status_code, text="", headers=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    return response


@pytest.mark.unit
class TestClassifyHttpResponse:
    def test_429_is_transient_with_retry_after_header(self):
        result = classify_http_response(
            _response(429, headers={"Retry-After": "12"}), provider="sendgrid"
        )
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "RATE_LIMITED"
        assert result.retry_after == 12
        assert "sendgrid" in result.message

    def test_429_with_malformed_retry_after_uses_default(self):
        result = classify_http_response(_response(429, headers={"Retry-After": "soon"}))
        assert result.retry_after == 60

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_failures_are_unauthorized(self, status_code):
        result = classify_http_response(_response(status_code))
        assert result.status == OperationStatus.UNAUTHORIZED
        assert result.error_code == "UNAUTHORIZED"

    def test_404_is_not_found(self):
        result = classify_http_response(_response(404, text="no such template"))
        assert result.status == OperationStatus.NOT_FOUND
        assert "no such template" in result.message

    def test_5xx_is_transient(self):
        result = classify_http_response(_response(503))
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "SERVER_ERROR"

    def test_other_4xx_is_permanent_and_truncates_detail(self):
        result = classify_http_response(_response(400, text="x" * 500))
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "HTTP_ERROR"
        assert result.message.count("x") == 200


@pytest.mark.unit
class TestClassifyRequestException:
    def test_timeout_is_transient(self):
        result = classify_request_exception(requests.Timeout("read timed out"))
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "TIMEOUT"

    def test_connection_error_is_transient(self):
        result = classify_request_exception(requests.ConnectionError("refused"))
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "CONNECTION_ERROR"

    def test_other_request_errors_are_permanent(self):
        result = classify_request_exception(
            requests.exceptions.InvalidURL("bad url"), provider="twilio"
        )
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "REQUEST_ERROR"
        assert "InvalidURL" in result.message


@pytest.mark.unit
class TestClassifyHttpStatus:
    def test_429_without_headers_uses_default_retry(self):
        result = classify_http_status(429, provider="sendgrid")

        assert result.error_code == "RATE_LIMITED"
        assert result.retry_after == 60

    def test_client_error_keeps_detail(self):
        result = classify_http_status(400, provider="sendgrid", detail="bad sender")

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "HTTP_ERROR"
        assert "bad sender" in result.message
