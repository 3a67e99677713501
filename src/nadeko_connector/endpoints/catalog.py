"""The endpoint catalog and each endpoint's parameter schema.

Parameters are listed in the order handlers receive them.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from nadeko_connector.errors import UnknownEndpoint


class Endpoint(str, Enum):
    GET_BOT_INFO = "getBotInfo"
    GET_TABLES = "getTables"
    GET_FIELDS = "getFields"
    EXEC_SQL = "execSql"
    GET_CURRENCY = "getCurrency"
    SET_CURRENCY = "setCurrency"
    ADD_CURRENCY = "addCurrency"
    SUBTRACT_CURRENCY = "subtractCurrency"
    CREATE_TRANSACTION = "createTransaction"
    GET_TRANSACTIONS = "getTransactions"
    GET_GUILD_RANK = "getGuildRank"
    GET_GUILD_XP = "getGuildXp"
    SET_GUILD_XP = "setGuildXp"
    ADD_GUILD_XP = "addGuildXp"
    SUBTRACT_GUILD_XP = "subtractGuildXp"
    AWARD_GUILD_XP = "awardGuildXp"
    GET_GUILD_XP_LEADERBOARD = "getGuildXpLeaderboard"
    GET_GUILD_XP_ROLE_REWARDS = "getGuildXpRoleRewards"
    GET_GUILD_XP_CURRENCY_REWARDS = "getGuildXpCurrencyRewards"
    GET_GLOBAL_RANK = "getGlobalRank"
    GET_GLOBAL_XP = "getGlobalXp"
    GET_GLOBAL_XP_LEADERBOARD = "getGlobalXpLeaderboard"
    GET_CLUB_LEADERBOARD = "getClubLeaderboard"
    GET_CLUB_INFO = "getClubInfo"
    GET_CLUB_INFO_BY_USER = "getClubInfoByUser"
    GET_CLUB_MEMBERS = "getClubMembers"

    @classmethod
    def resolve(cls, name: str) -> Endpoint:
        """Look up an endpoint by name, ignoring case."""
        endpoint = _BY_LOWER_NAME.get(name.lower())
        if endpoint is None:
            raise UnknownEndpoint
        return endpoint

    @property
    def mutating(self) -> bool:
        return self in MUTATING_ENDPOINTS

    @property
    def params(self) -> tuple[Param, ...]:
        return ENDPOINT_PARAMS[self]


_BY_LOWER_NAME: dict[str, Endpoint] = {e.value.lower(): e for e in Endpoint}

MUTATING_ENDPOINTS: frozenset[Endpoint] = frozenset({
    Endpoint.EXEC_SQL,
    Endpoint.SET_CURRENCY,
    Endpoint.ADD_CURRENCY,
    Endpoint.SUBTRACT_CURRENCY,
    Endpoint.CREATE_TRANSACTION,
    Endpoint.SET_GUILD_XP,
    Endpoint.ADD_GUILD_XP,
    Endpoint.SUBTRACT_GUILD_XP,
    Endpoint.AWARD_GUILD_XP,
})


class Param(NamedTuple):
    name: str
    type: str  # "string" | "number"
    hint: str


_ID_HINT = "must be specified as a string to avoid precision loss."
_POSITION_HINT = "startPosition must be a non-negative integer value."
_ITEMS_HINT = "items must be a positive non-zero integer value."

USER_ID = Param("userId", "string", f"userId {_ID_HINT}")
GUILD_ID = Param("guildId", "string", f"guildId {_ID_HINT}")
START_POSITION = Param("startPosition", "number", _POSITION_HINT)
ITEMS = Param("items", "number", _ITEMS_HINT)
CURRENCY = Param("currency", "number", "currency must be a negative or positive integer value.")
REASON = Param("reason", "string", "reason for the transaction must be a non empty string.")
XP = Param("xp", "number", "xp must be a positive or negative integer value.")
CLUB_NAME = Param("name", "string", "name must be the name of the club in name#discrim format as a string.")

ENDPOINT_PARAMS: dict[Endpoint, tuple[Param, ...]] = {
    Endpoint.GET_BOT_INFO: (),
    Endpoint.GET_TABLES: (),
    Endpoint.GET_FIELDS: (
        Param(
            "table",
            "string",
            "table must be a name of a table present in the database. Use getTables to get a list of tables.",
        ),
    ),
    Endpoint.EXEC_SQL: (
        Param("command", "string", "command must be a valid SQL command string that can be executed on the database."),
    ),
    Endpoint.GET_CURRENCY: (USER_ID,),
    Endpoint.SET_CURRENCY: (USER_ID, CURRENCY),
    Endpoint.ADD_CURRENCY: (USER_ID, CURRENCY, REASON),
    Endpoint.SUBTRACT_CURRENCY: (USER_ID, CURRENCY, REASON),
    Endpoint.CREATE_TRANSACTION: (USER_ID, CURRENCY, REASON),
    Endpoint.GET_TRANSACTIONS: (USER_ID, START_POSITION, ITEMS),
    Endpoint.GET_GUILD_RANK: (USER_ID, GUILD_ID),
    Endpoint.GET_GUILD_XP: (USER_ID, GUILD_ID),
    Endpoint.SET_GUILD_XP: (
        USER_ID,
        GUILD_ID,
        XP,
        Param("awardedXp", "number", "awardedXp must be a positive or negative integer value."),
    ),
    Endpoint.ADD_GUILD_XP: (USER_ID, GUILD_ID, XP),
    Endpoint.SUBTRACT_GUILD_XP: (USER_ID, GUILD_ID, XP),
    Endpoint.AWARD_GUILD_XP: (USER_ID, GUILD_ID, XP),
    Endpoint.GET_GUILD_XP_LEADERBOARD: (GUILD_ID, START_POSITION, ITEMS),
    Endpoint.GET_GUILD_XP_ROLE_REWARDS: (GUILD_ID, START_POSITION, ITEMS),
    Endpoint.GET_GUILD_XP_CURRENCY_REWARDS: (GUILD_ID, START_POSITION, ITEMS),
    Endpoint.GET_GLOBAL_RANK: (USER_ID,),
    Endpoint.GET_GLOBAL_XP: (USER_ID,),
    Endpoint.GET_GLOBAL_XP_LEADERBOARD: (START_POSITION, ITEMS),
    Endpoint.GET_CLUB_LEADERBOARD: (START_POSITION, ITEMS),
    Endpoint.GET_CLUB_INFO: (CLUB_NAME,),
    Endpoint.GET_CLUB_INFO_BY_USER: (USER_ID,),
    Endpoint.GET_CLUB_MEMBERS: (CLUB_NAME, START_POSITION, ITEMS),
}
