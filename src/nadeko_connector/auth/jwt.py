"""
HS256 endpoint tokens.

A token is not a session: its claims are the parameters of exactly one
endpoint call, signed with the server password shared with the caller.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any

import jwt

from nadeko_connector.errors import InvalidToken


def create_endpoint_token(
    claims: dict[str, Any],
    secret: str,
    algorithm: str = "HS256",
    *,
    issued_at: datetime | None = None,
) -> str:
    """
    Encode call parameters as a signed token.

    Args:
        claims: Endpoint parameters, e.g. ``{"userId": "1234"}``.
        secret: Server password.
        algorithm: JWT signing algorithm.
        issued_at: Adds an ``iat`` claim, needed when the server bounds token age.

    Returns:
        Encoded JWT string.
    """
    payload = dict(claims)
    if issued_at is not None:
        payload["iat"] = issued_at
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_endpoint_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    max_age_seconds: int | None = None,
) -> dict[str, Any]:
    """
    Verify and decode an endpoint token.

    Args:
        token: The encoded JWT string from the request path.
        secret: Server password.
        algorithm: Accepted signing algorithm.
        max_age_seconds: When set, tokens must carry ``iat`` and be at most this old.

    Returns:
        Decoded claims.

    Raises:
        InvalidToken: On bad signature, malformed payload, expiry or a stale ``iat``.
    """
    options: dict[str, Any] = {}
    if max_age_seconds is not None:
        options["require"] = ["iat"]
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options=options)
    except jwt.ExpiredSignatureError:
        msg = "Token has expired."
        raise InvalidToken(msg) from None
    except jwt.InvalidTokenError as e:
        raise InvalidToken(f"Invalid token. {e}") from None

    if not isinstance(payload, dict):
        raise InvalidToken

    if max_age_seconds is not None:
        age = time.time() - payload["iat"]
        if age > max_age_seconds:
            msg = "Token is too old."
            raise InvalidToken(msg)

    return payload
