"""End-to-end tests for ``GET /{endpoint}/{token}``."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from nadeko_connector.config import Settings
from nadeko_connector.endpoints import dispatcher
from nadeko_connector.endpoints.catalog import Endpoint
from tests.conftest import ALICE, BOB, GUILD, NOBODY, app_client, token_for


async def _call(client: AsyncClient, endpoint: str, claims: dict) -> dict:
    response = await client.get(f"/{endpoint}/{token_for(claims)}")
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_get_currency(client: AsyncClient) -> None:
    data = await _call(client, "getCurrency", {"userId": ALICE})
    assert data == {"userId": ALICE, "balance": 500, "success": True}


@pytest.mark.asyncio
async def test_endpoint_name_case_insensitive(client: AsyncClient) -> None:
    data = await _call(client, "GetCurrency", {"userId": ALICE})
    assert data["success"] is True


@pytest.mark.asyncio
async def test_add_then_transactions(client: AsyncClient) -> None:
    added = await _call(client, "addCurrency", {"userId": ALICE, "currency": 50, "reason": "gift"})
    assert added["success"] is True
    assert added["balance"] == 550

    data = await _call(client, "getTransactions", {"userId": ALICE, "startPosition": 0, "items": 1})
    assert data["transactions"][0]["amount"] == 50
    assert data["transactions"][0]["reason"] == "gift"


@pytest.mark.asyncio
async def test_missing_property(client: AsyncClient) -> None:
    data = await _call(client, "addCurrency", {"userId": ALICE, "currency": 50})
    assert data["success"] is False
    assert data["error"].startswith("Invalid properties specified: reason.")


@pytest.mark.asyncio
async def test_create_transaction_requires_reason(client: AsyncClient) -> None:
    data = await _call(client, "createTransaction", {"userId": ALICE, "currency": 5})
    assert data["success"] is False
    assert data["error"].startswith("Invalid properties specified: reason.")


@pytest.mark.asyncio
async def test_numeric_user_id_rejected(client: AsyncClient) -> None:
    data = await _call(client, "getCurrency", {"userId": int(ALICE)})
    assert data["success"] is False
    assert "userId" in data["error"]


@pytest.mark.asyncio
async def test_unknown_endpoint(client: AsyncClient) -> None:
    data = await _call(client, "dropEverything", {})
    assert data == {"error": "Invalid endpoint specified.", "success": False}


@pytest.mark.asyncio
async def test_bad_token(client: AsyncClient) -> None:
    response = await client.get("/getCurrency/not.a.token")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["error"].startswith("Invalid token.")


@pytest.mark.asyncio
async def test_token_signed_with_other_secret(client: AsyncClient) -> None:
    token = token_for({"userId": ALICE}, secret="someone-elses-secret-0123456789abcdef")
    data = (await client.get(f"/getCurrency/{token}")).json()
    assert data["success"] is False


@pytest.mark.asyncio
async def test_not_found_is_envelope(client: AsyncClient) -> None:
    data = await _call(client, "getCurrency", {"userId": NOBODY})
    assert data == {"error": f"User {NOBODY} not found.", "success": False}


@pytest.mark.asyncio
async def test_insufficient_funds(client: AsyncClient) -> None:
    data = await _call(client, "subtractCurrency", {"userId": BOB, "currency": 51, "reason": "shop"})
    assert data["success"] is False

    balance = await _call(client, "getCurrency", {"userId": BOB})
    assert balance["balance"] == 50


@pytest.mark.asyncio
async def test_guild_xp_flow(client: AsyncClient) -> None:
    data = await _call(client, "awardGuildXp", {"userId": ALICE, "guildId": GUILD, "xp": 300})
    assert data["guildXp"] == 400
    assert data["guildRank"] == 1

    board = await _call(client, "getGuildXpLeaderboard", {"guildId": GUILD, "startPosition": 0, "items": 1})
    assert board["leaderboard"][0]["userId"] == ALICE


@pytest.mark.asyncio
async def test_club_info(client: AsyncClient) -> None:
    data = await _call(client, "getClubInfo", {"name": "Nadeko Fans#1"})
    assert data["club"]["memberCount"] == 3


@pytest.mark.asyncio
async def test_bot_info(client: AsyncClient) -> None:
    data = await _call(client, "getBotInfo", {})
    assert data["bot"]["currency"]["pluralName"] == "Flowers"


@pytest.mark.asyncio
async def test_store_error_hidden(client: AsyncClient) -> None:
    data = await _call(client, "execSql", {"command": "SELEKT nonsense"})
    assert data == {"error": "Database operation failed.", "success": False}


@pytest.mark.asyncio
async def test_disabled_endpoint(settings: Settings) -> None:
    settings = settings.model_copy(update={"disabled_endpoints": ["addCurrency"]})
    async with app_client(settings) as client:
        data = await _call(client, "addCurrency", {"userId": ALICE, "currency": 50, "reason": "gift"})
        assert data == {"error": "Endpoint addCurrency is disabled.", "success": False}

        balance = await _call(client, "getCurrency", {"userId": ALICE})
        assert balance["balance"] == 500


@pytest.mark.asyncio
async def test_read_only(settings: Settings) -> None:
    settings = settings.model_copy(update={"read_only": True})
    async with app_client(settings) as client:
        data = await _call(client, "setCurrency", {"userId": ALICE, "currency": 1})
        assert data["success"] is False
        assert "disabled" in data["error"]

        data = await _call(client, "getGuildXp", {"userId": ALICE, "guildId": GUILD})
        assert data["success"] is True


@pytest.mark.asyncio
async def test_unexpected_error_is_generic(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    async def boom(_ctx):
        raise RuntimeError("secret internals")

    monkeypatch.setitem(dispatcher.HANDLERS, Endpoint.GET_TABLES, boom)
    async with app_client(settings, raise_app_exceptions=False) as client:
        response = await client.get(f"/getTables/{token_for({})}")
    assert response.status_code == 200
    assert response.json() == {"error": "An error occurred.", "success": False}


@pytest.mark.asyncio
async def test_unmatched_path_is_envelope(client: AsyncClient) -> None:
    response = await client.get("/getCurrency")
    assert response.status_code == 404
    assert response.json() == {"error": "Invalid endpoint specified.", "success": False}
