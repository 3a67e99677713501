"""Health, readiness, version and endpoint listing."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from nadeko_connector.auth.gate import AuthorizationGate
from nadeko_connector.dependencies import get_db, get_gate

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: checks the bot database is reachable."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {type(exc).__name__}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(request: Request) -> dict[str, str]:
    """Return API version and environment."""
    settings = request.app.state.settings
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/endpoints")
async def endpoints(gate: AuthorizationGate = Depends(get_gate)) -> dict[str, object]:  # noqa: B008
    """Endpoints currently callable under the operator policy."""
    return {
        "endpoints": [e.value for e in gate.policy.enabled_endpoints()],
        "readOnly": gate.policy.read_only,
    }
