"""Guild and global XP: reads, adjustments, ranks and leaderboards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from nadeko_connector.arguments import (
    check_safe,
    parse_amount,
    parse_page,
    parse_snowflake,
)
from nadeko_connector.currency.service import ensure_user
from nadeko_connector.db.models import (
    GuildConfig,
    UserXpStats,
    XpCurrencyReward,
    XpRoleReward,
    XpSettings,
)
from nadeko_connector.errors import InvalidArgument, NotFound, PartialFailure
from nadeko_connector.xp.levels import calc_level

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

_total_xp = UserXpStats.xp + UserXpStats.awarded_xp


def level_of(total_xp: int) -> dict[str, int]:
    """Level triple for a stored total; negative awarded XP can push totals below zero."""
    return calc_level(max(total_xp, 0))


# ---------------------------------------------------------------------------
# Ranks
# ---------------------------------------------------------------------------


async def _guild_rank(db: AsyncSession, guild_id: int, total_xp: int | None) -> int:
    """1 + members with a strictly greater total; last place when the user has no row."""
    query = select(func.count()).select_from(UserXpStats).where(UserXpStats.guild_id == guild_id)
    if total_xp is not None:
        query = query.where(_total_xp > total_xp)
    return (await db.scalar(query) or 0) + 1


def _global_totals():  # noqa: ANN202
    return (
        select(UserXpStats.user_id, func.sum(UserXpStats.xp).label("xp"))
        .group_by(UserXpStats.user_id)
        .subquery()
    )


async def _global_xp(db: AsyncSession, user_id: int) -> int | None:
    return await db.scalar(select(func.sum(UserXpStats.xp)).where(UserXpStats.user_id == user_id))


async def _global_rank(db: AsyncSession, global_xp: int | None) -> int:
    totals = _global_totals()
    query = select(func.count()).select_from(totals)
    if global_xp is not None:
        query = query.where(totals.c.xp > global_xp)
    return (await db.scalar(query) or 0) + 1


async def get_guild_rank(db: AsyncSession, user_id: str, guild_id: str) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    gid = parse_snowflake(guild_id, "guildId")
    total = await db.scalar(select(_total_xp).where(UserXpStats.user_id == uid, UserXpStats.guild_id == gid))
    return {"userId": str(uid), "guildId": str(gid), "rank": await _guild_rank(db, gid, total)}


async def get_global_rank(db: AsyncSession, user_id: str) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    return {"userId": str(uid), "rank": await _global_rank(db, await _global_xp(db, uid))}


# ---------------------------------------------------------------------------
# Guild XP
# ---------------------------------------------------------------------------


async def _guild_xp_result(db: AsyncSession, user_id: int, guild_id: int) -> dict[str, Any]:
    stats = await db.scalar(
        select(UserXpStats)
        .where(UserXpStats.user_id == user_id, UserXpStats.guild_id == guild_id)
        .execution_options(populate_existing=True)
    )
    if stats is None:
        msg = f"User {user_id} has no xp in guild {guild_id}."
        raise NotFound(msg)
    total = stats.xp + stats.awarded_xp
    return {
        "userId": str(user_id),
        "guildId": str(guild_id),
        "guildXp": stats.xp,
        "awardedXp": stats.awarded_xp,
        "totalXp": total,
        **level_of(total),
        "guildRank": await _guild_rank(db, guild_id, total),
    }


async def _read_back(db: AsyncSession, user_id: int, guild_id: int) -> dict[str, Any]:
    """Re-read a committed XP change, retrying once on a store error."""
    for attempt in (1, 2):
        try:
            return await _guild_xp_result(db, user_id, guild_id)
        except SQLAlchemyError:
            await db.rollback()
            if attempt == 2:
                logger.exception("xp_read_back_failed", user_id=user_id, guild_id=guild_id)
    msg = "Xp updated, but the new values could not be read back."
    raise PartialFailure(msg)


async def get_guild_xp(db: AsyncSession, user_id: str, guild_id: str) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    gid = parse_snowflake(guild_id, "guildId")
    return await _guild_xp_result(db, uid, gid)


async def set_guild_xp(db: AsyncSession, user_id: str, guild_id: str, xp: object, awarded_xp: object) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    gid = parse_snowflake(guild_id, "guildId")
    earned = parse_amount(xp, "xp", minimum=0)
    awarded = parse_amount(awarded_xp, "awardedXp")

    result = await db.execute(
        update(UserXpStats)
        .where(UserXpStats.user_id == uid, UserXpStats.guild_id == gid)
        .values(xp=earned, awarded_xp=awarded)
    )
    if result.rowcount < 1:
        msg = f"User {uid} has no xp in guild {gid}. No rows updated."
        raise NotFound(msg)
    await db.commit()

    logger.info("guild_xp_set", user_id=uid, guild_id=gid, xp=earned, awarded_xp=awarded)
    return await _read_back(db, uid, gid)


async def _adjust_guild_xp(db: AsyncSession, user_id: int, guild_id: int, delta: int) -> dict[str, Any]:
    """Add ``delta`` to earned XP in one conditional UPDATE; earned XP never drops below zero."""
    stmt = (
        update(UserXpStats)
        .where(UserXpStats.user_id == user_id, UserXpStats.guild_id == guild_id)
        .values(xp=UserXpStats.xp + delta)
        .returning(UserXpStats.xp)
    )
    if delta < 0:
        stmt = stmt.where(UserXpStats.xp >= -delta)

    new_xp = (await db.execute(stmt)).scalar_one_or_none()
    if new_xp is None:
        exists = await db.scalar(
            select(UserXpStats.id).where(UserXpStats.user_id == user_id, UserXpStats.guild_id == guild_id)
        )
        if exists is not None:
            msg = f"Cannot subtract {-delta} xp; user {user_id} has less than that in guild {guild_id}."
            raise InvalidArgument(msg)
        msg = f"User {user_id} has no xp in guild {guild_id}."
        raise NotFound(msg)
    check_safe(new_xp, "xp")
    await db.commit()

    logger.info("guild_xp_adjusted", user_id=user_id, guild_id=guild_id, amount=delta, xp=new_xp)
    return await _read_back(db, user_id, guild_id)


async def add_guild_xp(db: AsyncSession, user_id: str, guild_id: str, xp: object) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    gid = parse_snowflake(guild_id, "guildId")
    return await _adjust_guild_xp(db, uid, gid, abs(parse_amount(xp, "xp")))


async def subtract_guild_xp(db: AsyncSession, user_id: str, guild_id: str, xp: object) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    gid = parse_snowflake(guild_id, "guildId")
    return await _adjust_guild_xp(db, uid, gid, -abs(parse_amount(xp, "xp")))


async def award_guild_xp(db: AsyncSession, user_id: str, guild_id: str, xp: object) -> dict[str, Any]:
    """Add or subtract depending on the sign of ``xp``."""
    amount = parse_amount(xp, "xp")
    if amount >= 0:
        return await add_guild_xp(db, user_id, guild_id, amount)
    return await subtract_guild_xp(db, user_id, guild_id, amount)


# ---------------------------------------------------------------------------
# Global XP
# ---------------------------------------------------------------------------


async def get_global_xp(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Earned XP summed over every guild (awarded XP is guild-local)."""
    uid = parse_snowflake(user_id, "userId")
    global_xp = await _global_xp(db, uid)
    if global_xp is None:
        await ensure_user(db, uid)
    rank = await _global_rank(db, global_xp)
    global_xp = global_xp or 0
    return {
        "userId": str(uid),
        "globalXp": global_xp,
        **level_of(global_xp),
        "globalRank": rank,
    }


# ---------------------------------------------------------------------------
# Leaderboards & rewards
# ---------------------------------------------------------------------------


async def get_guild_xp_leaderboard(
    db: AsyncSession, guild_id: str, start_position: object, items: object
) -> dict[str, Any]:
    gid = parse_snowflake(guild_id, "guildId")
    offset, limit = parse_page(start_position, items)

    result = await db.execute(
        select(UserXpStats)
        .where(UserXpStats.guild_id == gid)
        .order_by(_total_xp.desc(), UserXpStats.id)
        .offset(offset)
        .limit(limit)
    )
    leaderboard = []
    for index, stats in enumerate(result.scalars()):
        total = stats.xp + stats.awarded_xp
        leaderboard.append({
            "rank": offset + index + 1,
            "userId": str(stats.user_id),
            "guildXp": stats.xp,
            "awardedXp": stats.awarded_xp,
            "totalXp": total,
            "level": level_of(total)["level"],
        })
    return {"guildId": str(gid), "leaderboard": leaderboard}


async def get_global_xp_leaderboard(db: AsyncSession, start_position: object, items: object) -> dict[str, Any]:
    offset, limit = parse_page(start_position, items)
    totals = _global_totals()

    result = await db.execute(
        select(totals.c.user_id, totals.c.xp)
        .order_by(totals.c.xp.desc(), totals.c.user_id)
        .offset(offset)
        .limit(limit)
    )
    return {
        "leaderboard": [
            {
                "rank": offset + index + 1,
                "userId": str(row.user_id),
                "globalXp": row.xp,
                "level": level_of(row.xp)["level"],
            }
            for index, row in enumerate(result)
        ],
    }


def _guild_rewards(reward: type[XpRoleReward] | type[XpCurrencyReward], guild_id: int):  # noqa: ANN202
    return (
        select(reward)
        .join(XpSettings, reward.xp_settings_id == XpSettings.id)
        .join(GuildConfig, XpSettings.guild_config_id == GuildConfig.id)
        .where(GuildConfig.guild_id == guild_id)
        .order_by(reward.level.asc(), reward.id)
    )


async def get_guild_xp_role_rewards(
    db: AsyncSession, guild_id: str, start_position: object, items: object
) -> dict[str, Any]:
    gid = parse_snowflake(guild_id, "guildId")
    offset, limit = parse_page(start_position, items)

    result = await db.execute(_guild_rewards(XpRoleReward, gid).offset(offset).limit(limit))
    return {
        "guildId": str(gid),
        "rewards": [
            {"level": r.level, "roleId": str(r.role_id), "dateAdded": r.date_added}
            for r in result.scalars()
        ],
    }


async def get_guild_xp_currency_rewards(
    db: AsyncSession, guild_id: str, start_position: object, items: object
) -> dict[str, Any]:
    gid = parse_snowflake(guild_id, "guildId")
    offset, limit = parse_page(start_position, items)

    result = await db.execute(_guild_rewards(XpCurrencyReward, gid).offset(offset).limit(limit))
    return {
        "guildId": str(gid),
        "rewards": [
            {"level": r.level, "amount": r.amount, "dateAdded": r.date_added}
            for r in result.scalars()
        ],
    }
