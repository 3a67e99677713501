"""Endpoint authorization gate.

A request moves through endpoint resolution, token verification, schema
validation and the policy check, and is rejected at the first step that
fails.
"""

from __future__ import annotations

from typing import Any

import structlog

from nadeko_connector.auth.jwt import verify_endpoint_token
from nadeko_connector.config import Settings
from nadeko_connector.endpoints.catalog import Endpoint, Param
from nadeko_connector.endpoints.policy import EndpointPolicy
from nadeko_connector.errors import InvalidProperties

logger = structlog.get_logger()


def _matches(value: object, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return isinstance(value, int | float) and not isinstance(value, bool)
    return False


def check_properties(claims: dict[str, Any], params: tuple[Param, ...]) -> dict[str, Any]:
    """Check declared parameters are present with the right type; drop everything else.

    Raises:
        InvalidProperties: Naming the first missing or mistyped parameter.
    """
    validated: dict[str, Any] = {}
    for param in params:
        if param.name not in claims or not _matches(claims[param.name], param.type):
            msg = f"Invalid properties specified: {param.name}. {param.hint}"
            raise InvalidProperties(msg)
        validated[param.name] = claims[param.name]
    return validated


class AuthorizationGate:
    """Turns ``(endpoint name, token)`` into an authorized call or raises."""

    def __init__(
        self,
        secret: str,
        policy: EndpointPolicy,
        algorithm: str = "HS256",
        max_age_seconds: int | None = None,
    ) -> None:
        self.secret = secret
        self.policy = policy
        self.algorithm = algorithm
        self.max_age_seconds = max_age_seconds

    @classmethod
    def from_settings(cls, settings: Settings, policy: EndpointPolicy | None = None) -> AuthorizationGate:
        if policy is None:
            policy = EndpointPolicy.from_names(settings.disabled_endpoints, read_only=settings.read_only)
        return cls(
            secret=settings.password,
            policy=policy,
            algorithm=settings.jwt_algorithm,
            max_age_seconds=settings.token_max_age_seconds,
        )

    def authorize(self, endpoint_name: str, token: str) -> tuple[Endpoint, dict[str, Any]]:
        """
        Run a request through the gate.

        Returns:
            The resolved endpoint and its validated parameters.

        Raises:
            UnknownEndpoint, InvalidToken, InvalidProperties, EndpointDisabled
        """
        endpoint = Endpoint.resolve(endpoint_name)
        claims = verify_endpoint_token(
            token,
            self.secret,
            algorithm=self.algorithm,
            max_age_seconds=self.max_age_seconds,
        )
        params = check_properties(claims, endpoint.params)
        self.policy.ensure_enabled(endpoint)
        logger.debug("request_authorized", endpoint=endpoint.value)
        return endpoint, params
