"""Argument coercion shared by the data access services.

Token claims only guarantee "string" or "number"; these helpers narrow them
to the values the store accepts.
"""

from __future__ import annotations

from datetime import datetime, timezone

from nadeko_connector.errors import InvalidArgument

# Largest integer a JavaScript client can hold exactly.
MAX_SAFE_INTEGER = 2**53 - 1
MAX_PAGE_SIZE = 100


def parse_snowflake(value: object, name: str) -> int:
    """Parse a Discord id sent as a decimal string."""
    if not isinstance(value, str) or not (value.isascii() and value.isdigit()):
        msg = f"{name} must be a numeric id specified as a string."
        raise InvalidArgument(msg)
    parsed = int(value)
    if parsed >= 2**63:
        msg = f"{name} is out of range."
        raise InvalidArgument(msg)
    return parsed


def parse_amount(value: object, name: str, *, minimum: int = -MAX_SAFE_INTEGER) -> int:
    """Parse an integral amount within the safe-integer range."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{name} must be an integer value."
        raise InvalidArgument(msg)
    if isinstance(value, float):
        if not value.is_integer():
            msg = f"{name} must be an integer value."
            raise InvalidArgument(msg)
        value = int(value)
    if value < minimum or value > MAX_SAFE_INTEGER:
        msg = f"{name} must be between {minimum} and {MAX_SAFE_INTEGER}."
        raise InvalidArgument(msg)
    return value


def parse_reason(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        msg = "reason for the transaction must be a non empty string."
        raise InvalidArgument(msg)
    return value


def parse_page(start_position: object, items: object) -> tuple[int, int]:
    """Return ``(offset, limit)``; the limit is capped at MAX_PAGE_SIZE."""
    offset = parse_amount(start_position, "startPosition", minimum=0)
    limit = parse_amount(items, "items", minimum=1)
    return offset, min(limit, MAX_PAGE_SIZE)


def check_safe(value: int, name: str) -> int:
    """Reject stored results that a JavaScript client could not represent."""
    if abs(value) > MAX_SAFE_INTEGER:
        msg = f"Resulting {name} is outside the safe integer range."
        raise InvalidArgument(msg)
    return value


def utc_timestamp() -> str:
    """Timestamp in the text format the bot stores (millisecond precision, UTC)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
