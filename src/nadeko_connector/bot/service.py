"""Bot configuration and raw database access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import inspect, select

from nadeko_connector.arguments import MAX_SAFE_INTEGER
from nadeko_connector.db.models import BotConfig
from nadeko_connector.errors import InvalidArgument, NotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import Session

    from nadeko_connector.config import BotCredentials

logger = structlog.get_logger()


async def get_bot_info(db: AsyncSession, credentials: BotCredentials) -> dict[str, Any]:
    config = await db.scalar(select(BotConfig).order_by(BotConfig.id).limit(1))
    if config is None:
        msg = "Bot configuration not found."
        raise NotFound(msg)
    return {
        "bot": {
            "id": credentials.client_id,
            "owners": credentials.owner_ids,
            "currency": {
                "sign": config.currency_sign,
                "name": config.currency_name,
                "pluralName": config.currency_plural_name,
            },
            "xp": {
                "perMessage": config.xp_per_message,
                "interval": config.xp_minutes_timeout,
            },
        },
    }


async def get_tables(db: AsyncSession) -> dict[str, Any]:
    tables = await db.run_sync(lambda session: inspect(session.connection()).get_table_names())
    return {"tables": sorted(tables)}


async def get_fields(db: AsyncSession, table: str) -> dict[str, Any]:
    def _columns(session: Session) -> list[str] | None:
        inspector = inspect(session.connection())
        if table not in inspector.get_table_names():
            return None
        return [column["name"] for column in inspector.get_columns(table)]

    fields = await db.run_sync(_columns)
    if fields is None:
        msg = f"Table {table} not found. Use getTables to get a list of tables."
        raise NotFound(msg)
    return {"table": table, "fields": fields}


def _json_safe(value: object) -> object:
    """Send integers JavaScript can't hold exactly (Discord ids) as strings."""
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    return value


async def exec_sql(db: AsyncSession, command: str) -> dict[str, Any]:
    """Run one statement verbatim through the driver (no bind-parameter parsing)."""
    if not command.strip():
        msg = "command must be a valid SQL command string that can be executed on the database."
        raise InvalidArgument(msg)

    connection = await db.connection()
    result = await connection.exec_driver_sql(command)
    if result.returns_rows:
        rows = [{key: _json_safe(value) for key, value in row._mapping.items()} for row in result]
        await db.commit()
        return {"rows": rows}

    changes = result.rowcount
    await db.commit()
    logger.warning("raw_sql_executed", changes=changes)
    return {"changes": changes}
