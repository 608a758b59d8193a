"""Unit tests for the GC Notify API client."""

import json
from unittest.mock import patch

import jwt
import pytest

from integrations.notify import client


@pytest.mark.unit
class TestCreateJwtToken:
    def test_token_claims(self):
        with patch.object(client, "epoch_seconds", return_value=1_700_000_000):
            token = client.create_jwt_token(secret="secret", client_id="service-id")

        claims = jwt.decode(token, "secret", algorithms=["HS256"])
        assert claims == {"iss": "service-id", "iat": 1_700_000_000}
        assert jwt.get_unverified_header(token)["typ"] == "JWT"

    def test_missing_secret(self):
        with pytest.raises(ValueError, match="Missing secret key"):
            client.create_jwt_token(secret="", client_id="service-id")

    def test_missing_client_id(self):
        with pytest.raises(ValueError, match="Missing client id"):
            client.create_jwt_token(secret="secret", client_id=None)


@pytest.mark.unit
class TestCreateAuthorizationHeader:
    def test_bearer_header(self):
        with patch.object(client, "create_jwt_token", return_value="token") as mock_token:
            header = client.create_authorization_header("service-id", "secret")

        assert header == ("Authorization", "Bearer token")
        mock_token.assert_called_once_with(secret="secret", client_id="service-id")


@pytest.mark.unit
class TestPostNotification:
    def test_posts_json_with_auth_header(self):
        payload = {"email_address": "user@example.com", "template_id": "tmpl"}
        with patch.object(
            client, "create_authorization_header", return_value=("Authorization", "Bearer t")
        ), patch("integrations.notify.client.requests.post") as mock_post:
            response = client.post_notification(
                "https://api.notification.canada.ca/",
                client.EMAIL_ENDPOINT,
                payload,
                client_id="service-id",
                secret="secret",
                timeout=5.0,
            )

        assert response is mock_post.return_value
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.notification.canada.ca/v2/notifications/email"
        assert json.loads(kwargs["data"]) == payload
        assert kwargs["headers"] == {
            "Authorization": "Bearer t",
            "Content-Type": "application/json",
        }
        assert kwargs["timeout"] == 5.0

    def test_missing_credentials_raise_before_request(self):
        with patch("integrations.notify.client.requests.post") as mock_post:
            with pytest.raises(ValueError):
                client.post_notification(
                    "https://api.notification.canada.ca",
                    client.SMS_ENDPOINT,
                    {},
                    client_id="service-id",
                    secret=None,
                )

        mock_post.assert_not_called()
