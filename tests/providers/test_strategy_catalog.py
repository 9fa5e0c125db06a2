"""
Tests for the Troves strategies catalog provider.

Outbound HTTP is served by ``httpx.MockTransport``; time is driven by a fake
clock so cache expiry is deterministic.
"""

import json

import httpx
import pytest

from troves_assistant.exceptions import StrategyFetchError
from troves_assistant.providers.strategies import StrategyCatalogProvider

API_URL = "https://troves.test/api/strategies"


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CatalogServer:
    """Mock transport handler that counts requests and can be switched to fail."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = 0
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        assert str(request.url) == API_URL
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "down"})
        return httpx.Response(200, json=self.payload)


@pytest.fixture
def server(catalog_payload):
    return CatalogServer(catalog_payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider(server, clock):
    return StrategyCatalogProvider(
        api_url=API_URL,
        cache_ttl_seconds=3600,
        transport=httpx.MockTransport(server),
        clock=clock,
    )


# =============================================================================
# Caching
# =============================================================================


class TestCatalogCache:

    @pytest.mark.asyncio
    async def test_second_call_within_ttl_uses_cache(self, provider, server, clock):
        first = await provider.fetch_strategies()
        clock.now += 3599
        second = await provider.fetch_strategies()

        assert server.calls == 1
        assert first is second
        assert len(first.strategies) == 3
        assert first.last_updated == "2024-11-20T10:00:00.000Z"

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self, provider, server, clock):
        await provider.fetch_strategies()
        clock.now += 3600
        await provider.fetch_strategies()

        assert server.calls == 2

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, provider, server):
        await provider.fetch_strategies()
        await provider.fetch_strategies(force_refresh=True)

        assert server.calls == 2

    @pytest.mark.asyncio
    async def test_stale_cache_served_when_refresh_fails(self, provider, server, clock):
        cached = await provider.fetch_strategies()
        server.status_code = 503
        clock.now += 7200

        result = await provider.fetch_strategies()

        assert result is cached
        assert server.calls == 2

    @pytest.mark.asyncio
    async def test_failure_without_cache_raises(self, provider, server):
        server.status_code = 500

        with pytest.raises(StrategyFetchError, match="Failed to fetch strategies"):
            await provider.fetch_strategies()

    @pytest.mark.asyncio
    async def test_payload_without_strategies_is_rejected(self, clock):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": True}))
        provider = StrategyCatalogProvider(api_url=API_URL, transport=transport, clock=clock)

        with pytest.raises(StrategyFetchError, match="Invalid response from strategies API"):
            await provider.fetch_strategies()

    @pytest.mark.asyncio
    async def test_malformed_entry_is_skipped(self, provider, catalog_payload):
        catalog_payload["strategies"][2]["contract"] = "not-a-list"
        catalog_payload["strategies"].append({"name": "No id"})

        catalog = await provider.fetch_strategies()

        assert [s.id for s in catalog.strategies] == ["vesu_fusion_eth", "ekubo_cl_xstrkstrk"]
        assert await provider.get_strategy_by_id("vesu_fusion_eth") is not None

    @pytest.mark.asyncio
    async def test_null_metrics_default(self, provider, catalog_payload):
        entry = catalog_payload["strategies"][2]
        entry.update(tvlUsd=None, riskFactor=None, leverage=None)
        catalog_payload["strategies"][0]["apySplit"]["rewardsApy"] = None

        usdc = await provider.get_strategy_by_id("usdc_sensei")
        eth = await provider.get_strategy_by_id("vesu_fusion_eth")

        assert usdc.tvl_usd == 0.0
        assert usdc.risk_factor == 0.0
        assert usdc.leverage == 1.0
        assert eth.apy_split.rewards_apy == 0.0
        top = await provider.get_top_strategies_by_tvl(3)
        assert [s.id for s in top] == ["vesu_fusion_eth", "ekubo_cl_xstrkstrk", "usdc_sensei"]

    @pytest.mark.asyncio
    async def test_clear_cache_forces_fetch(self, provider, server):
        await provider.fetch_strategies()
        provider.clear_cache()
        await provider.fetch_strategies()

        assert server.calls == 2


# =============================================================================
# Lookups and filters
# =============================================================================


class TestCatalogQueries:

    @pytest.mark.asyncio
    async def test_get_strategy_by_id_is_case_insensitive(self, provider):
        strategy = await provider.get_strategy_by_id("VESU_Fusion_ETH")

        assert strategy is not None
        assert strategy.name == "Vesu Fusion ETH"
        assert await provider.get_strategy_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_contract_address_lookups(self, provider):
        assert await provider.get_contract_address_by_strategy_id("ekubo_cl_xstrkstrk") == "0x0def02"
        assert await provider.get_contract_address_by_strategy_id("missing") is None

        strategy = await provider.get_strategy_by_contract_address("0x0ABC01")
        assert strategy.id == "vesu_fusion_eth"

    @pytest.mark.asyncio
    async def test_search_by_token_matches_substrings(self, provider):
        strk = await provider.search_strategies_by_token("strk")
        usdc = await provider.search_strategies_by_token("USDC")

        assert [s.id for s in strk] == ["ekubo_cl_xstrkstrk"]
        assert [s.id for s in usdc] == ["usdc_sensei"]
        assert await provider.search_strategies_by_token("DOGE") == []

    @pytest.mark.asyncio
    async def test_top_by_apy_skips_missing_apy(self, provider):
        top = await provider.get_top_strategies_by_apy(5)

        assert [s.id for s in top] == ["ekubo_cl_xstrkstrk", "vesu_fusion_eth"]
        assert len(await provider.get_top_strategies_by_apy(1)) == 1

    @pytest.mark.asyncio
    async def test_top_by_apy_skips_nan_apy(self, catalog_payload, clock):
        catalog_payload["strategies"][1]["apy"] = float("nan")
        body = json.dumps(catalog_payload)
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=body, headers={"content-type": "application/json"})
        )
        provider = StrategyCatalogProvider(api_url=API_URL, transport=transport, clock=clock)

        top = await provider.get_top_strategies_by_apy(5)

        assert "NaN" in body
        assert [s.id for s in top] == ["vesu_fusion_eth"]

    @pytest.mark.asyncio
    async def test_top_by_tvl(self, provider):
        top = await provider.get_top_strategies_by_tvl(2)

        assert [s.id for s in top] == ["usdc_sensei", "vesu_fusion_eth"]

    @pytest.mark.asyncio
    async def test_audited_and_status_filters(self, provider):
        audited = await provider.get_audited_strategies()
        hot = await provider.get_strategies_by_status("hot")

        assert {s.id for s in audited} == {"vesu_fusion_eth", "usdc_sensei"}
        assert [s.id for s in hot] == ["vesu_fusion_eth"]


class TestCatalogHealth:

    @pytest.mark.asyncio
    async def test_health_check_reports_healthy(self, provider):
        health = await provider.health_check()

        assert health["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_check_reports_error(self, provider, server):
        server.status_code = 502

        health = await provider.health_check()

        assert health["status"] == "error"

    @pytest.mark.asyncio
    async def test_unconfigured_url_is_unavailable(self):
        provider = StrategyCatalogProvider(api_url="")

        assert (await provider.health_check())["status"] == "unavailable"
