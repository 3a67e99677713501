"""Level computation.

The XP needed to pass level n (1-indexed) is ``36 + 9 * (n - 1)``, the same
schedule the bot uses, so levels reported here match the bot's own cards.
"""

from __future__ import annotations

import math

from nadeko_connector.errors import InvalidArgument

BASE_XP = 36
XP_STEP = 9


def xp_for_level(level: int) -> int:
    """XP required to go from ``level`` to ``level + 1``."""
    return BASE_XP + XP_STEP * level


def level_floor(level: int) -> int:
    """Cumulative XP at which ``level`` is reached."""
    return BASE_XP * level + XP_STEP * level * (level - 1) // 2


def calc_level(total_xp: int) -> dict[str, int]:
    """Compute level info from total XP.

    Solves ``level_floor(n) <= total_xp`` for the largest n in constant time,
    then nudges n by at most one step so integer rounding in ``isqrt`` can't
    disagree with the cumulative schedule. Hitting a threshold exactly counts
    as reaching that level.

    Raises:
        InvalidArgument: If ``total_xp`` is negative or not an integer.
    """
    if isinstance(total_xp, bool) or not isinstance(total_xp, int):
        msg = "xp must be a non-negative integer."
        raise InvalidArgument(msg)
    if total_xp < 0:
        msg = "xp must be a non-negative integer."
        raise InvalidArgument(msg)

    # 9n^2 + 63n - 2x <= 0
    level = (math.isqrt(63 * 63 + 72 * total_xp) - 63) // 18
    while level_floor(level + 1) <= total_xp:
        level += 1
    while level > 0 and level_floor(level) > total_xp:
        level -= 1

    return {
        "level": level,
        "levelXp": total_xp - level_floor(level),
        "requiredXp": xp_for_level(level),
    }
