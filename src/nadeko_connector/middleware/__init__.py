"""Middleware registration."""

from fastapi import FastAPI

from nadeko_connector.config import Settings
from nadeko_connector.middleware.error_handler import setup_error_handlers
from nadeko_connector.middleware.logging import setup_logging
from nadeko_connector.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure logging, register error handlers and request-scoped middleware."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
