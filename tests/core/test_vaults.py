from unittest.mock import AsyncMock, MagicMock

import pytest

from troves_assistant.core.vaults import (
    UNKNOWN_VAULT,
    VaultType,
    as_vault_type,
    get_vault_info,
    resolve_vault_info,
)


def test_vault_keys_match_case_insensitively():
    assert as_vault_type("vesuEth") is VaultType.VESU_ETH
    assert as_vault_type("EKUBOSTRKXSTRK") is VaultType.EKUBO_STRK_XSTRK
    assert as_vault_type("vesu_fusion_eth") is None


def test_static_vault_info():
    assert get_vault_info("vesuUsdc").decimals == 6
    assert get_vault_info("vesuUsdt").name == "Vesu Fusion USDT (vfUSDT)"
    assert get_vault_info("ekuboStrkXstrk").decimals == 18
    assert get_vault_info("unknown") is UNKNOWN_VAULT


@pytest.mark.asyncio
async def test_static_keys_skip_catalog():
    catalog = MagicMock()
    catalog.get_strategy_by_id = AsyncMock()

    info = await resolve_vault_info("vesuEth", catalog)

    assert info.name == "Vesu Fusion ETH (vfETH)"
    catalog.get_strategy_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_strategy_ids_use_catalog_entry(strategies):
    catalog = MagicMock()
    catalog.get_strategy_by_id = AsyncMock(return_value=strategies[2])

    info = await resolve_vault_info("usdc_sensei", catalog)

    assert info.name == "USDC Sensei"
    assert info.decimals == 6


@pytest.mark.asyncio
async def test_catalog_errors_fall_back_to_unknown():
    catalog = MagicMock()
    catalog.get_strategy_by_id = AsyncMock(side_effect=RuntimeError("down"))

    assert await resolve_vault_info("whatever", catalog) is UNKNOWN_VAULT
    assert await resolve_vault_info("whatever") is UNKNOWN_VAULT
