"""
Static bearer-token authentication for the ingress endpoint.

The relay accepts exactly one API key (``RELAY_API_KEY``). Requests must
send ``Authorization: Bearer <key>``; the token is compared by exact
match in constant time.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from ..domain.errors import AuthFailed
from .config import get_settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthFailed: if the header is missing or not a Bearer header.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthFailed("Unauthorized: Missing or invalid API key")
    return authorization[len(BEARER_PREFIX):]


def verify_bearer_token(authorization: Optional[str], expected: str) -> None:
    """Check an Authorization header against the configured key.

    Raises:
        AuthFailed: on a missing header, a non-Bearer header, a wrong
            token, or when no key is configured at all.
    """
    token = extract_bearer_token(authorization)

    if not expected:
        logger.error("RELAY_API_KEY is not configured; rejecting request")
        raise AuthFailed("Unauthorized: Invalid API key")

    if not hmac.compare_digest(token.encode(), expected.encode()):
        logger.warning("Rejected request with invalid API key")
        raise AuthFailed("Unauthorized: Invalid API key")


async def require_api_key(authorization: Optional[str] = Header(None)) -> None:
    """FastAPI dependency guarding the ingress routes."""
    verify_bearer_token(authorization, get_settings().relay_api_key)
