"""
Tool registry and executor tests.

The registry runs against mocked contract reader and catalog objects so every
handler path can be driven without network access.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from troves_assistant.core.agent.tools import (
    GetStrategyInput,
    TopStrategiesByApyInput,
    ToolExecutor,
    ToolRegistry,
    VaultBalanceInput,
    parse_tool_call,
)
from troves_assistant.exceptions import ContractCallError
from troves_assistant.providers.llm import ToolCall
from troves_assistant.types.vault import VaultSettings, YieldData

EXPECTED_TOOLS = {
    "list_strategies",
    "get_strategy",
    "search_strategies_by_token",
    "get_top_strategies_by_apy",
    "get_top_strategies_by_tvl",
    "get_vault_balance",
    "get_vault_yield",
    "get_vault_tvl",
    "get_vault_settings",
}


def call(name, **arguments):
    return ToolCall(id=f"toolu_{name}", name=name, arguments=arguments)


@pytest.fixture
def contracts():
    contracts = MagicMock()
    contracts.known_vaults.return_value = ["vesuEth", "ekuboStrkXstrk", "usdc_sensei"]
    contracts.get_user_balance = AsyncMock(return_value="1500000000000000000")
    contracts.compute_yield = AsyncMock(return_value=YieldData(yield_before="100", yield_after="110"))
    contracts.get_total_assets = AsyncMock(return_value="5000000")
    contracts.get_settings = AsyncMock(
        return_value=VaultSettings(default_pool_index=0, fee_bps=1000, fee_receiver="0xfee")
    )
    return contracts


@pytest.fixture
def catalog(catalog_response, strategies):
    catalog = MagicMock()
    catalog.fetch_strategies = AsyncMock(return_value=catalog_response)
    catalog.get_audited_strategies = AsyncMock(return_value=[s for s in strategies if s.is_audited])
    catalog.get_strategy_by_id = AsyncMock(return_value=None)
    catalog.search_strategies_by_token = AsyncMock(return_value=[])
    catalog.get_top_strategies_by_apy = AsyncMock(return_value=strategies[:2])
    catalog.get_top_strategies_by_tvl = AsyncMock(return_value=strategies[2:])
    return catalog


@pytest.fixture
def executor(contracts, catalog):
    return ToolExecutor(ToolRegistry(contracts, catalog))


# =============================================================================
# Input validation
# =============================================================================


class TestParseToolCall:

    def test_dispatches_on_tool_name(self):
        params = parse_tool_call(call("get_strategy", strategy_id="vesu_fusion_eth"))

        assert isinstance(params, GetStrategyInput)
        assert params.strategy_id == "vesu_fusion_eth"

    def test_defaults_and_null_arguments(self):
        top = parse_tool_call(call("get_top_strategies_by_apy"))
        balance = parse_tool_call(call("get_vault_balance", wallet_address="0x1", vault_type=None))

        assert isinstance(top, TopStrategiesByApyInput)
        assert top.limit == 5
        assert isinstance(balance, VaultBalanceInput)
        assert balance.vault_type is None

    def test_rejects_bad_arguments(self):
        with pytest.raises(ValidationError):
            parse_tool_call(call("get_top_strategies_by_apy", limit=0))
        with pytest.raises(ValidationError):
            parse_tool_call(call("get_strategy"))


# =============================================================================
# Registry
# =============================================================================


def test_registry_exposes_all_tools(contracts, catalog):
    registry = ToolRegistry(contracts, catalog)

    definitions = registry.get_definitions()

    assert {d.name for d in definitions} == EXPECTED_TOOLS
    balance = registry.get_tool("get_vault_balance").definition.to_anthropic_format()
    assert balance["input_schema"]["required"] == ["wallet_address"]
    assert "vault_type" in balance["input_schema"]["properties"]


# =============================================================================
# Execution
# =============================================================================


class TestExecutor:

    @pytest.mark.asyncio
    async def test_unknown_tool(self, executor):
        outcome = await executor.execute(call("drain_vault"))

        assert not outcome.success
        assert outcome.message == "Unknown tool: drain_vault"

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, executor):
        outcome = await executor.execute(call("get_top_strategies_by_tvl", limit=500))

        assert not outcome.success
        assert outcome.message == "Invalid arguments for get_top_strategies_by_tvl"

    @pytest.mark.asyncio
    async def test_handler_exceptions_are_contained(self, executor, catalog):
        catalog.get_strategy_by_id.side_effect = RuntimeError("catalog down")

        outcome = await executor.execute(call("get_strategy", strategy_id="x"))

        assert not outcome.success
        assert outcome.message == "Error executing get_strategy: catalog down"

    @pytest.mark.asyncio
    async def test_list_strategies(self, executor):
        outcome = await executor.execute(call("list_strategies"))

        assert outcome.success
        assert "Troves Strategies (3)" in outcome.message
        assert outcome.data == ["vesu_fusion_eth", "ekubo_cl_xstrkstrk", "usdc_sensei"]

    @pytest.mark.asyncio
    async def test_list_audited_strategies(self, executor):
        outcome = await executor.execute(call("list_strategies", audited_only=True))

        assert outcome.data == ["vesu_fusion_eth", "usdc_sensei"]

    @pytest.mark.asyncio
    async def test_get_missing_strategy(self, executor):
        outcome = await executor.execute(call("get_strategy", strategy_id="nope"))

        assert not outcome.success
        assert outcome.message == "Strategy not found: nope"

    @pytest.mark.asyncio
    async def test_search_without_matches(self, executor):
        outcome = await executor.execute(call("search_strategies_by_token", token_symbol="doge"))

        assert outcome.success
        assert outcome.message == "No strategies found for token DOGE."

    @pytest.mark.asyncio
    async def test_top_by_apy_is_numbered(self, executor, catalog):
        outcome = await executor.execute(call("get_top_strategies_by_apy", limit=2))

        catalog.get_top_strategies_by_apy.assert_awaited_once_with(2)
        assert "Top 2 Strategies by APY" in outcome.message
        assert "1. **Vesu Fusion ETH**" in outcome.message

    @pytest.mark.asyncio
    async def test_vault_tool_without_vault_lists_choices(self, executor, contracts):
        outcome = await executor.execute(call("get_vault_yield"))

        assert not outcome.success
        assert outcome.message.startswith("Please specify which vault you'd like to check the yield for:")
        assert "• **vesuEth** - Vesu Fusion ETH (vfETH)" in outcome.message
        assert "• **usdc_sensei** - usdc_sensei" in outcome.message
        contracts.compute_yield.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_balance_requires_wallet(self, executor):
        outcome = await executor.execute(call("get_vault_balance", vault_type="vesuEth"))

        assert not outcome.success
        assert outcome.message == "Wallet address is required to check balance."

    @pytest.mark.asyncio
    async def test_balance_is_scaled_by_vault_decimals(self, executor, contracts):
        outcome = await executor.execute(call("get_vault_balance", wallet_address="0xabc", vault_type="vesuEth"))

        contracts.get_user_balance.assert_awaited_once_with("0xabc", "vesuEth")
        assert outcome.success
        assert "`1.5`" in outcome.message
        assert outcome.data["formatted_balance"] == "1.5"

    @pytest.mark.asyncio
    async def test_yield_tvl_and_settings(self, executor):
        yield_outcome = await executor.execute(call("get_vault_yield", vault_type="vesuEth"))
        tvl_outcome = await executor.execute(call("get_vault_tvl", vault_type="vesuEth"))
        settings_outcome = await executor.execute(call("get_vault_settings", vault_type="vesuEth"))

        assert "**Before:** 100" in yield_outcome.message
        assert "`5000000`" in tvl_outcome.message
        assert "**Fee:** 10%" in settings_outcome.message

    @pytest.mark.asyncio
    async def test_contract_errors_reported_per_tool(self, executor, contracts):
        contracts.get_total_assets.side_effect = ContractCallError("Failed to fetch total assets")

        outcome = await executor.execute(call("get_vault_tvl", vault_type="vesuEth"))

        assert not outcome.success
        assert outcome.message == "Error getting TVL: Failed to fetch total assets"
