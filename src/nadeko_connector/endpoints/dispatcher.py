"""Binds authorized calls to data access operations and builds the response envelope."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nadeko_connector.bot import service as bot_service
from nadeko_connector.clubs import service as club_service
from nadeko_connector.config import BotCredentials
from nadeko_connector.currency import service as currency_service
from nadeko_connector.endpoints.catalog import Endpoint
from nadeko_connector.endpoints.policy import EndpointPolicy
from nadeko_connector.errors import ConnectorError, DataAccessError
from nadeko_connector.xp import service as xp_service

logger = structlog.get_logger()


@dataclass(frozen=True)
class CallContext:
    """Per-request collaborators handed to every handler."""

    db: AsyncSession
    credentials: BotCredentials

    @property
    def bot_id(self) -> str:
        return self.credentials.client_id


Handler = Callable[..., Awaitable[dict[str, Any]]]

HANDLERS: dict[Endpoint, Handler] = {
    Endpoint.GET_BOT_INFO: lambda ctx: bot_service.get_bot_info(ctx.db, ctx.credentials),
    Endpoint.GET_TABLES: lambda ctx: bot_service.get_tables(ctx.db),
    Endpoint.GET_FIELDS: lambda ctx, table: bot_service.get_fields(ctx.db, table),
    Endpoint.EXEC_SQL: lambda ctx, command: bot_service.exec_sql(ctx.db, command),
    Endpoint.GET_CURRENCY: lambda ctx, user_id: currency_service.get_balance(ctx.db, user_id),
    Endpoint.SET_CURRENCY: lambda ctx, user_id, currency: currency_service.set_balance(ctx.db, user_id, currency),
    Endpoint.ADD_CURRENCY: lambda ctx, user_id, currency, reason: currency_service.add_currency(
        ctx.db, ctx.bot_id, user_id, currency, reason
    ),
    Endpoint.SUBTRACT_CURRENCY: lambda ctx, user_id, currency, reason: currency_service.subtract_currency(
        ctx.db, ctx.bot_id, user_id, currency, reason
    ),
    Endpoint.CREATE_TRANSACTION: lambda ctx, user_id, currency, reason: currency_service.create_transaction(
        ctx.db, user_id, currency, reason
    ),
    Endpoint.GET_TRANSACTIONS: lambda ctx, user_id, start, items: currency_service.get_transactions(
        ctx.db, user_id, start, items
    ),
    Endpoint.GET_GUILD_RANK: lambda ctx, user_id, guild_id: xp_service.get_guild_rank(ctx.db, user_id, guild_id),
    Endpoint.GET_GUILD_XP: lambda ctx, user_id, guild_id: xp_service.get_guild_xp(ctx.db, user_id, guild_id),
    Endpoint.SET_GUILD_XP: lambda ctx, user_id, guild_id, xp, awarded_xp: xp_service.set_guild_xp(
        ctx.db, user_id, guild_id, xp, awarded_xp
    ),
    Endpoint.ADD_GUILD_XP: lambda ctx, user_id, guild_id, xp: xp_service.add_guild_xp(ctx.db, user_id, guild_id, xp),
    Endpoint.SUBTRACT_GUILD_XP: lambda ctx, user_id, guild_id, xp: xp_service.subtract_guild_xp(
        ctx.db, user_id, guild_id, xp
    ),
    Endpoint.AWARD_GUILD_XP: lambda ctx, user_id, guild_id, xp: xp_service.award_guild_xp(
        ctx.db, user_id, guild_id, xp
    ),
    Endpoint.GET_GUILD_XP_LEADERBOARD: lambda ctx, guild_id, start, items: xp_service.get_guild_xp_leaderboard(
        ctx.db, guild_id, start, items
    ),
    Endpoint.GET_GUILD_XP_ROLE_REWARDS: lambda ctx, guild_id, start, items: xp_service.get_guild_xp_role_rewards(
        ctx.db, guild_id, start, items
    ),
    Endpoint.GET_GUILD_XP_CURRENCY_REWARDS: lambda ctx, guild_id, start, items: (
        xp_service.get_guild_xp_currency_rewards(ctx.db, guild_id, start, items)
    ),
    Endpoint.GET_GLOBAL_RANK: lambda ctx, user_id: xp_service.get_global_rank(ctx.db, user_id),
    Endpoint.GET_GLOBAL_XP: lambda ctx, user_id: xp_service.get_global_xp(ctx.db, user_id),
    Endpoint.GET_GLOBAL_XP_LEADERBOARD: lambda ctx, start, items: xp_service.get_global_xp_leaderboard(
        ctx.db, start, items
    ),
    Endpoint.GET_CLUB_LEADERBOARD: lambda ctx, start, items: club_service.get_club_leaderboard(ctx.db, start, items),
    Endpoint.GET_CLUB_INFO: lambda ctx, name: club_service.get_club_info(ctx.db, name),
    Endpoint.GET_CLUB_INFO_BY_USER: lambda ctx, user_id: club_service.get_club_info_by_user(ctx.db, user_id),
    Endpoint.GET_CLUB_MEMBERS: lambda ctx, name, start, items: club_service.get_club_members(
        ctx.db, name, start, items
    ),
}

_unhandled = set(Endpoint) - HANDLERS.keys()
if _unhandled:
    raise RuntimeError(f"Endpoints without handlers: {sorted(e.value for e in _unhandled)}")


def success(data: dict[str, Any] | None = None) -> dict[str, Any]:
    return {**(data or {}), "success": True}


def failure(error: ConnectorError) -> dict[str, Any]:
    return {"error": error.message, "success": False}


async def dispatch(
    ctx: CallContext,
    policy: EndpointPolicy,
    endpoint: Endpoint,
    params: dict[str, Any],
) -> dict[str, Any]:
    """
    Invoke the handler for an authorized call, once.

    Returns:
        The success envelope.

    Raises:
        ConnectorError: Domain failures; store errors arrive as DataAccessError.
    """
    policy.ensure_enabled(endpoint)
    args = [params[param.name] for param in endpoint.params]
    try:
        result = await HANDLERS[endpoint](ctx, *args)
    except ConnectorError:
        await ctx.db.rollback()
        raise
    except SQLAlchemyError:
        await ctx.db.rollback()
        logger.exception("store_error", endpoint=endpoint.value)
        raise DataAccessError from None
    return success(result)
