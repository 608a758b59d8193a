"""GC Notify API client.

GC Notify authenticates each request with a short-lived HS256 JWT signed
with the API key secret and issued by the service id.
"""

import calendar
import json
import time
from typing import Any, Dict, Tuple

import jwt
import requests

from infrastructure.logging import get_module_logger

logger = get_module_logger()

EMAIL_ENDPOINT = "/v2/notifications/email"
SMS_ENDPOINT = "/v2/notifications/sms"


# generate the epoch seconds for the jwt token
def epoch_seconds() -> int:
    return calendar.timegm(time.gmtime())


def create_jwt_token(secret: str, client_id: str) -> str:
    """
    Generate a JWT Token for the Notify API

    Tokens have a header consisting of:
    {
        "typ": "JWT",
        "alg": "HS256"
    }

    Claims are:
    iss: identifier for the client (service id)
    iat: epoch seconds for the token (UTC)
    """
    if not secret:
        logger.error("jwt_token_creation_failed", error="Missing secret key")
        raise ValueError("Missing secret key")
    if not client_id:
        logger.error("jwt_token_creation_failed", error="Missing client id")
        raise ValueError("Missing client id")

    headers = {"typ": "JWT", "alg": "HS256"}
    claims = {"iss": client_id, "iat": epoch_seconds()}
    return jwt.encode(payload=claims, key=secret, algorithm="HS256", headers=headers)


def create_authorization_header(client_id: str, secret: str) -> Tuple[str, str]:
    """Create the authorization header for the Notify API."""
    token = create_jwt_token(secret=secret, client_id=client_id)
    return "Authorization", "Bearer {}".format(token)


def post_notification(
    base_url: str,
    endpoint: str,
    payload: Dict[str, Any],
    client_id: str,
    secret: str,
    timeout: float = 10.0,
) -> requests.Response:
    """POST a notification request to GC Notify.

    Raises:
        ValueError: If credentials are missing.
        requests.RequestException: On transport failures.
    """
    header_key, header_value = create_authorization_header(client_id, secret)
    headers = {header_key: header_value, "Content-Type": "application/json"}
    url = base_url.rstrip("/") + endpoint
    return requests.post(url, data=json.dumps(payload), headers=headers, timeout=timeout)
