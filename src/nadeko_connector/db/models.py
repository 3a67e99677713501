"""ORM models for the tables NadekoBot already maps in its SQLite database.

The bot creates and migrates these tables; only the columns this service
reads or writes are mapped. Timestamps stay as the text the bot writes
(``YYYY-MM-DD HH:MM:SS.fff``) so they round-trip unchanged.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nadeko_connector.db.base import Base


# ---------------------------------------------------------------------------
# Users & currency
# ---------------------------------------------------------------------------


class DiscordUser(Base):
    """Maps to the 'DiscordUser' table."""

    __tablename__ = "DiscordUser"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column("UserId", BigInteger, unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column("Username", Text, nullable=True)
    discriminator: Mapped[str | None] = mapped_column("Discriminator", Text, nullable=True)
    avatar_id: Mapped[str | None] = mapped_column("AvatarId", Text, nullable=True)
    club_id: Mapped[int | None] = mapped_column("ClubId", Integer, ForeignKey("Clubs.Id"), nullable=True)
    is_club_admin: Mapped[bool] = mapped_column("IsClubAdmin", Boolean, default=False, nullable=False)
    total_xp: Mapped[int] = mapped_column("TotalXp", Integer, default=0, nullable=False)
    currency_amount: Mapped[int] = mapped_column("CurrencyAmount", BigInteger, default=0, nullable=False)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


class CurrencyTransaction(Base):
    """Append-only currency ledger. Ids are assigned as MAX(Id) + 1 by the writer."""

    __tablename__ = "CurrencyTransactions"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True, autoincrement=False)
    amount: Mapped[int] = mapped_column("Amount", BigInteger, nullable=False)
    reason: Mapped[str | None] = mapped_column("Reason", Text, nullable=True)
    user_id: Mapped[int] = mapped_column("UserId", BigInteger, nullable=False, index=True)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


# ---------------------------------------------------------------------------
# XP
# ---------------------------------------------------------------------------


class UserXpStats(Base):
    """Per (user, guild) XP record: earned Xp plus manually AwardedXp."""

    __tablename__ = "UserXpStats"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column("UserId", BigInteger, nullable=False)
    guild_id: Mapped[int] = mapped_column("GuildId", BigInteger, nullable=False)
    xp: Mapped[int] = mapped_column("Xp", Integer, default=0, nullable=False)
    awarded_xp: Mapped[int] = mapped_column("AwardedXp", Integer, default=0, nullable=False)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


class GuildConfig(Base):
    """Maps to the 'GuildConfigs' table (only the guild id is needed)."""

    __tablename__ = "GuildConfigs"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    guild_id: Mapped[int] = mapped_column("GuildId", BigInteger, unique=True, nullable=False)


class XpSettings(Base):
    __tablename__ = "XpSettings"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    guild_config_id: Mapped[int] = mapped_column(
        "GuildConfigId", Integer, ForeignKey("GuildConfigs.Id"), nullable=False
    )


class XpRoleReward(Base):
    __tablename__ = "XpRoleReward"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    xp_settings_id: Mapped[int] = mapped_column("XpSettingsId", Integer, ForeignKey("XpSettings.Id"), nullable=False)
    level: Mapped[int] = mapped_column("Level", Integer, nullable=False)
    role_id: Mapped[int] = mapped_column("RoleId", BigInteger, nullable=False)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


class XpCurrencyReward(Base):
    __tablename__ = "XpCurrencyReward"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    xp_settings_id: Mapped[int] = mapped_column("XpSettingsId", Integer, ForeignKey("XpSettings.Id"), nullable=False)
    level: Mapped[int] = mapped_column("Level", Integer, nullable=False)
    amount: Mapped[int] = mapped_column("Amount", Integer, nullable=False)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


# ---------------------------------------------------------------------------
# Clubs
# ---------------------------------------------------------------------------


class Club(Base):
    """Maps to the 'Clubs' table. Clubs are addressed as ``Name#Discrim``."""

    __tablename__ = "Clubs"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    name: Mapped[str] = mapped_column("Name", Text, nullable=False)
    discrim: Mapped[int] = mapped_column("Discrim", Integer, nullable=False)
    image_url: Mapped[str | None] = mapped_column("ImageUrl", Text, nullable=True)
    minimum_level_req: Mapped[int] = mapped_column("MinimumLevelReq", Integer, default=5, nullable=False)
    xp: Mapped[int] = mapped_column("Xp", Integer, default=0, nullable=False)
    owner_id: Mapped[int] = mapped_column("OwnerId", Integer, nullable=False)
    description: Mapped[str | None] = mapped_column("Description", Text, nullable=True)
    date_added: Mapped[str | None] = mapped_column("DateAdded", String, nullable=True)


# ---------------------------------------------------------------------------
# Bot configuration
# ---------------------------------------------------------------------------


class BotConfig(Base):
    """Singleton row with currency display strings and XP tuning."""

    __tablename__ = "BotConfig"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    currency_sign: Mapped[str | None] = mapped_column("CurrencySign", Text, nullable=True)
    currency_name: Mapped[str | None] = mapped_column("CurrencyName", Text, nullable=True)
    currency_plural_name: Mapped[str | None] = mapped_column("CurrencyPluralName", Text, nullable=True)
    xp_per_message: Mapped[int] = mapped_column("XpPerMessage", Integer, default=3, nullable=False)
    xp_minutes_timeout: Mapped[int] = mapped_column("XpMinutesTimeout", Integer, default=5, nullable=False)
