"""Errors surfaced to API callers.

Every error carries a caller-safe message only; it is rendered as
``{"error": message, "success": false}`` by the router.
"""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for errors returned in the failure envelope."""

    default_message = "An error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidToken(ConnectorError):
    default_message = "Invalid token."


class InvalidProperties(ConnectorError):
    default_message = "Invalid properties specified."


class UnknownEndpoint(ConnectorError):
    default_message = "Invalid endpoint specified."


class EndpointDisabled(ConnectorError):
    default_message = "Endpoint is disabled."


class NotFound(ConnectorError):
    default_message = "Not found."


class InvalidArgument(ConnectorError):
    default_message = "Invalid argument."


class InsufficientFunds(ConnectorError):
    default_message = "Insufficient funds."


class DataAccessError(ConnectorError):
    default_message = "Database operation failed."


class PartialFailure(ConnectorError):
    """The primary change was committed but a dependent step failed."""

    default_message = "Operation partially completed."
