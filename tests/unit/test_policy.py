"""Tests for the endpoint catalog and operator policy."""

import dataclasses

import pytest

from nadeko_connector.endpoints.catalog import ENDPOINT_PARAMS, MUTATING_ENDPOINTS, Endpoint
from nadeko_connector.endpoints.policy import EndpointPolicy
from nadeko_connector.errors import EndpointDisabled, UnknownEndpoint


class TestCatalog:
    def test_catalog_size(self):
        assert len(Endpoint) == 26

    def test_every_endpoint_has_a_schema(self):
        assert set(ENDPOINT_PARAMS) == set(Endpoint)

    def test_resolve_ignores_case(self):
        assert Endpoint.resolve("getcurrency") is Endpoint.GET_CURRENCY
        assert Endpoint.resolve("GETGUILDXPLEADERBOARD") is Endpoint.GET_GUILD_XP_LEADERBOARD

    def test_resolve_unknown(self):
        with pytest.raises(UnknownEndpoint, match="Invalid endpoint specified."):
            Endpoint.resolve("dropTables")

    def test_mutating_flags(self):
        assert Endpoint.EXEC_SQL.mutating
        assert Endpoint.AWARD_GUILD_XP.mutating
        assert not Endpoint.GET_CURRENCY.mutating
        assert len(MUTATING_ENDPOINTS) == 9

    def test_param_order(self):
        names = [p.name for p in Endpoint.SET_GUILD_XP.params]
        assert names == ["userId", "guildId", "xp", "awardedXp"]

    def test_ids_are_strings(self):
        for params in ENDPOINT_PARAMS.values():
            for param in params:
                if param.name.endswith("Id"):
                    assert param.type == "string", param.name


class TestEndpointPolicy:
    def test_default_enables_everything(self):
        policy = EndpointPolicy()
        assert policy.enabled_endpoints() == list(Endpoint)

    def test_from_names(self):
        policy = EndpointPolicy.from_names(["addCurrency", "EXECSQL"])
        assert policy.disabled == frozenset({Endpoint.ADD_CURRENCY, Endpoint.EXEC_SQL})
        assert not policy.is_enabled(Endpoint.ADD_CURRENCY)
        assert policy.is_enabled(Endpoint.SUBTRACT_CURRENCY)

    def test_unknown_name_is_config_error(self):
        with pytest.raises(ValueError, match="notAnEndpoint"):
            EndpointPolicy.from_names(["notAnEndpoint"])

    def test_read_only_disables_mutating(self):
        policy = EndpointPolicy(read_only=True)
        assert policy.effective_disabled == MUTATING_ENDPOINTS
        assert len(policy.enabled_endpoints()) == 17
        assert policy.is_enabled(Endpoint.GET_TRANSACTIONS)

    def test_read_only_keeps_explicit_disables(self):
        policy = EndpointPolicy.from_names(["getTables"]).as_read_only()
        assert Endpoint.GET_TABLES in policy.effective_disabled
        assert Endpoint.SET_CURRENCY in policy.effective_disabled

    def test_as_read_only_returns_new_value(self):
        policy = EndpointPolicy()
        read_only = policy.as_read_only()
        assert read_only.read_only
        assert not policy.read_only

    def test_immutable(self):
        policy = EndpointPolicy()
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.read_only = True  # type: ignore[misc]

    def test_ensure_enabled(self):
        policy = EndpointPolicy.from_names(["addCurrency"])
        policy.ensure_enabled(Endpoint.GET_CURRENCY)
        with pytest.raises(EndpointDisabled, match="Endpoint addCurrency is disabled."):
            policy.ensure_enabled(Endpoint.ADD_CURRENCY)
