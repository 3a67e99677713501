"""Shared FastAPI dependencies."""

from fastapi import Request

from nadeko_connector.auth.gate import AuthorizationGate
from nadeko_connector.config import BotCredentials
from nadeko_connector.database import get_session as _get_session

get_db = _get_session


def get_gate(request: Request) -> AuthorizationGate:
    """The gate built at startup from the endpoint policy."""
    return request.app.state.gate


def get_credentials(request: Request) -> BotCredentials:
    """Bot credentials loaded during application startup."""
    credentials: BotCredentials | None = request.app.state.credentials
    if credentials is None:
        msg = "Bot credentials not loaded."
        raise RuntimeError(msg)
    return credentials
