"""Club lookups, members and the club leaderboard."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from nadeko_connector.arguments import parse_page, parse_snowflake
from nadeko_connector.db.models import Club, DiscordUser
from nadeko_connector.errors import InvalidArgument, NotFound
from nadeko_connector.xp.levels import calc_level

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def parse_club_name(name: str) -> tuple[str, int]:
    """Split ``Name#Discrim`` into its parts.

    Raises:
        InvalidArgument: If the discriminator is missing or not a number.
    """
    club_name, sep, discrim = name.rpartition("#")
    if not sep or not club_name or not (discrim.isascii() and discrim.isdigit()):
        msg = "name must be the name of the club in name#discrim format as a string."
        raise InvalidArgument(msg)
    return club_name, int(discrim)


def full_name(club: Club) -> str:
    return f"{club.name}#{club.discrim}"


def _member_count():  # noqa: ANN202
    return (
        select(func.count(DiscordUser.id))
        .where(DiscordUser.club_id == Club.id)
        .correlate(Club)
        .scalar_subquery()
    )


async def _find_club(db: AsyncSession, name: str) -> Club:
    club_name, discrim = parse_club_name(name)
    club = await db.scalar(select(Club).where(Club.name == club_name, Club.discrim == discrim))
    if club is None:
        msg = f"Club {name} not found."
        raise NotFound(msg)
    return club


async def _club_info(db: AsyncSession, club: Club) -> dict[str, Any]:
    owner = await db.get(DiscordUser, club.owner_id)
    member_count = await db.scalar(select(func.count(DiscordUser.id)).where(DiscordUser.club_id == club.id))
    higher = await db.scalar(select(func.count(Club.id)).where(Club.xp > club.xp))
    return {
        "club": {
            "id": club.id,
            "name": full_name(club),
            "owner": {
                "userId": str(owner.user_id) if owner else None,
                "username": owner.username if owner else None,
            },
            "xp": club.xp,
            **calc_level(max(club.xp, 0)),
            "rank": (higher or 0) + 1,
            "minimumLevelRequired": club.minimum_level_req,
            "description": club.description,
            "imageUrl": club.image_url,
            "memberCount": member_count or 0,
        },
    }


async def get_club_info(db: AsyncSession, name: str) -> dict[str, Any]:
    return await _club_info(db, await _find_club(db, name))


async def get_club_info_by_user(db: AsyncSession, user_id: str) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    user = await db.scalar(select(DiscordUser).where(DiscordUser.user_id == uid))
    if user is None:
        msg = f"User {uid} not found."
        raise NotFound(msg)
    if user.club_id is None:
        msg = f"User {uid} is not in a club."
        raise NotFound(msg)
    club = await db.get(Club, user.club_id)
    if club is None:
        msg = f"Club of user {uid} not found."
        raise NotFound(msg)
    return await get_club_info(db, full_name(club))


async def get_club_members(db: AsyncSession, name: str, start_position: object, items: object) -> dict[str, Any]:
    """Members by lifetime XP, highest first. The owner always counts as an admin."""
    offset, limit = parse_page(start_position, items)
    club = await _find_club(db, name)

    result = await db.execute(
        select(DiscordUser)
        .where(DiscordUser.club_id == club.id)
        .order_by(DiscordUser.total_xp.desc(), DiscordUser.id)
        .offset(offset)
        .limit(limit)
    )
    return {
        "club": full_name(club),
        "members": [
            {
                "rank": offset + index + 1,
                "userId": str(member.user_id),
                "username": member.username,
                "totalXp": member.total_xp,
                "level": calc_level(max(member.total_xp, 0))["level"],
                "isAdmin": bool(member.is_club_admin) or member.id == club.owner_id,
            }
            for index, member in enumerate(result.scalars())
        ],
    }


async def get_club_leaderboard(db: AsyncSession, start_position: object, items: object) -> dict[str, Any]:
    offset, limit = parse_page(start_position, items)
    member_count = _member_count().label("member_count")

    result = await db.execute(
        select(Club, member_count)
        .order_by(Club.xp.desc(), Club.id)
        .offset(offset)
        .limit(limit)
    )
    return {
        "leaderboard": [
            {
                "rank": offset + index + 1,
                "name": full_name(club),
                "xp": club.xp,
                "level": calc_level(max(club.xp, 0))["level"],
                "memberCount": count,
            }
            for index, (club, count) in enumerate(result.all())
        ],
    }
