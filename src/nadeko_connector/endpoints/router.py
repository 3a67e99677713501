"""The token endpoint surface: ``GET /{endpoint}/{token}``.

Responses are always HTTP 200; ``success`` is the only error signal.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nadeko_connector.auth.gate import AuthorizationGate
from nadeko_connector.config import BotCredentials
from nadeko_connector.dependencies import get_credentials, get_db, get_gate
from nadeko_connector.endpoints.dispatcher import CallContext, dispatch, failure
from nadeko_connector.errors import ConnectorError

logger = structlog.get_logger()

router = APIRouter(tags=["Endpoints"])


@router.get("/{endpoint_name}/{token}")
async def call_endpoint(
    endpoint_name: str,
    token: str,
    gate: AuthorizationGate = Depends(get_gate),  # noqa: B008
    db: AsyncSession = Depends(get_db),  # noqa: B008
    credentials: BotCredentials = Depends(get_credentials),  # noqa: B008
) -> dict[str, object]:
    """Authorize the token for the named endpoint and run it."""
    try:
        endpoint, params = gate.authorize(endpoint_name, token)
        return await dispatch(CallContext(db=db, credentials=credentials), gate.policy, endpoint, params)
    except ConnectorError as e:
        logger.info("request_failed", endpoint=endpoint_name, error=type(e).__name__, reason=e.message)
        return failure(e)
