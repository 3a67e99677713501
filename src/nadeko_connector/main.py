"""FastAPI application factory.

Run with: uvicorn nadeko_connector.main:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from nadeko_connector.auth.gate import AuthorizationGate
from nadeko_connector.config import Settings, get_settings, load_bot_credentials
from nadeko_connector.database import close_db, database_file, init_db, is_writable
from nadeko_connector.endpoints.router import router as endpoints_router
from nadeko_connector.health.router import router as health_router
from nadeko_connector.middleware import setup_middleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup checks, database engine and bot credentials."""
    settings: Settings = app.state.settings

    if not settings.password:
        msg = "CONNECTOR_PASSWORD must be set."
        raise RuntimeError(msg)

    db_path = database_file(settings.database_url)
    if db_path is not None:
        if not db_path.is_file():
            msg = f"Database does not exist: {db_path}"
            raise RuntimeError(msg)
        gate: AuthorizationGate = app.state.gate
        if not is_writable(db_path) and not gate.policy.read_only:
            logger.warning("database_not_writable", path=str(db_path))
            app.state.gate = AuthorizationGate.from_settings(settings, gate.policy.as_read_only())

    app.state.credentials = load_bot_credentials(settings.credentials_path)
    await init_db(settings.database_url)
    logger.info(
        "connector_started",
        version=settings.app_version,
        enabled_endpoints=len(app.state.gate.policy.enabled_endpoints()),
        read_only=app.state.gate.policy.read_only,
    )

    yield

    await close_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="NadekoConnector",
        description="Token-authenticated API over a NadekoBot database",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gate = AuthorizationGate.from_settings(settings)
    app.state.credentials = None

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(endpoints_router)

    return app


app = create_app()
