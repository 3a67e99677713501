"""Shared test fixtures.

Every test gets its own SQLite file built from the ORM metadata and seeded
with a small bot population (see ``_seed``).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from nadeko_connector.auth.jwt import create_endpoint_token
from nadeko_connector.config import BotCredentials, Settings
from nadeko_connector.database import close_db, get_engine, get_session, init_db
from nadeko_connector.db.base import Base
from nadeko_connector.db.models import (
    BotConfig,
    Club,
    CurrencyTransaction,
    DiscordUser,
    GuildConfig,
    UserXpStats,
    XpCurrencyReward,
    XpRoleReward,
    XpSettings,
)
from nadeko_connector.main import create_app

SECRET = "connector-test-secret-0123456789abcdef"

BOT_ID = "116275390695079945"
OWNER_ID = "145964622984380416"
ALICE = "145964622984380416"
BOB = "216303189073461248"
CAROL = "308286829913604097"
DAVE = "414881497313681409"
ERIN = "512345678901234567"
NOBODY = "999999999999999999"

GUILD = "117523346618318850"
OTHER_GUILD = "228923346618318851"

CREDENTIALS = BotCredentials.model_validate({"ClientId": int(BOT_ID), "OwnerIds": [int(OWNER_ID)]})


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


def token_for(claims: dict, secret: str = SECRET) -> str:
    """Sign endpoint parameters the way a client would."""
    return create_endpoint_token(claims, secret)


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """A session from the application's factory, closed on exit."""
    sessions = get_session()
    session = await anext(sessions)
    try:
        yield session
    finally:
        await sessions.aclose()


async def _seed(db: AsyncSession) -> None:
    ts = "2021-03-04 05:06:07.890"
    db.add_all([
        Club(id=1, name="Nadeko Fans", discrim=1, xp=5000, owner_id=2, minimum_level_req=5,
             description="Flowers for everyone", image_url="https://example.com/fans.png", date_added=ts),
        Club(id=2, name="Quiet", discrim=7, xp=100, owner_id=4, minimum_level_req=1,
             description=None, image_url=None, date_added=ts),
    ])
    db.add_all([
        DiscordUser(id=1, user_id=int(BOT_ID), username="Nadeko", discriminator="6520",
                    total_xp=0, currency_amount=1_000_000, date_added=ts),
        DiscordUser(id=2, user_id=int(ALICE), username="Alice", discriminator="0001", club_id=1,
                    is_club_admin=False, total_xp=900, currency_amount=500, date_added=ts),
        DiscordUser(id=3, user_id=int(BOB), username="Bob", discriminator="0002", club_id=1,
                    is_club_admin=True, total_xp=2000, currency_amount=50, date_added=ts),
        DiscordUser(id=4, user_id=int(CAROL), username="Carol", discriminator="0003", club_id=2,
                    is_club_admin=False, total_xp=100, currency_amount=0, date_added=ts),
        DiscordUser(id=5, user_id=int(DAVE), username="Dave", discriminator="0004",
                    total_xp=20, currency_amount=10, date_added=ts),
        DiscordUser(id=6, user_id=int(ERIN), username="Erin", discriminator="0005", club_id=1,
                    is_club_admin=False, total_xp=50, currency_amount=0, date_added=ts),
    ])
    db.add_all([
        UserXpStats(id=1, user_id=int(BOB), guild_id=int(GUILD), xp=300, awarded_xp=50, date_added=ts),
        UserXpStats(id=2, user_id=int(ALICE), guild_id=int(GUILD), xp=100, awarded_xp=0, date_added=ts),
        UserXpStats(id=3, user_id=int(CAROL), guild_id=int(GUILD), xp=36, awarded_xp=0, date_added=ts),
        UserXpStats(id=4, user_id=int(DAVE), guild_id=int(GUILD), xp=20, awarded_xp=10, date_added=ts),
        UserXpStats(id=5, user_id=int(ALICE), guild_id=int(OTHER_GUILD), xp=500, awarded_xp=0, date_added=ts),
    ])
    db.add(CurrencyTransaction(id=7, amount=100, reason="daily", user_id=int(ALICE), date_added=ts))
    db.add(BotConfig(id=1, currency_sign="🌸", currency_name="Flower", currency_plural_name="Flowers",
                     xp_per_message=3, xp_minutes_timeout=5))
    db.add(GuildConfig(id=1, guild_id=int(GUILD)))
    db.add(XpSettings(id=1, guild_config_id=1))
    db.add_all([
        XpRoleReward(id=1, xp_settings_id=1, level=10, role_id=333, date_added=ts),
        XpRoleReward(id=2, xp_settings_id=1, level=5, role_id=222, date_added=ts),
        XpCurrencyReward(id=1, xp_settings_id=1, level=3, amount=100, date_added=ts),
        XpCurrencyReward(id=2, xp_settings_id=1, level=1, amount=10, date_added=ts),
    ])
    await db.commit()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[str, None]:
    """Create and seed a fresh bot database; yields its URL."""
    url = sqlite_url(tmp_path / "NadekoBot.db")
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with open_session() as session:
        await _seed(session)

    yield url

    await close_db()


@pytest_asyncio.fixture
async def db_session(database: str) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions."""
    async with open_session() as session:
        yield session


@pytest.fixture
def settings(database: str) -> Settings:
    return Settings(database_url=database, password=SECRET, log_format="console")


@asynccontextmanager
async def app_client(settings: Settings, **transport_options: object) -> AsyncIterator[AsyncClient]:
    """HTTP client for an app built from ``settings``.

    ASGITransport doesn't run the lifespan, so the state startup would load
    is filled in here; the database is already initialised by ``database``.
    """
    app = create_app(settings)
    app.state.credentials = CREDENTIALS
    transport = ASGITransport(app=app, **transport_options)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def client(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client against the seeded database."""
    async with app_client(settings) as ac:
        yield ac
