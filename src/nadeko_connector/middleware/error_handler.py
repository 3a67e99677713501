"""Global error handlers: every error leaves as the failure envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nadeko_connector.errors import ConnectorError, UnknownEndpoint

logger = structlog.get_logger()


def _envelope(message: str) -> dict[str, object]:
    return {"error": message, "success": False}


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Paths outside ``/{endpoint}/{token}`` keep their status but use the envelope."""
        message = UnknownEndpoint.default_message if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=_envelope(message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, _exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=200, content=_envelope("Invalid request."))

    @app.exception_handler(ConnectorError)
    async def connector_error_handler(_request: Request, exc: ConnectorError) -> JSONResponse:
        return JSONResponse(status_code=200, content=_envelope(exc.message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: log the details, return a generic envelope."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=200, content=_envelope(ConnectorError.default_message))
