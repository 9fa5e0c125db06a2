"""Directory of the fixed Troves vaults and display metadata for any vault id."""

import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel

from ..providers.strategies import StrategyCatalogProvider

logger = logging.getLogger(__name__)


class VaultType(str, Enum):
    VESU_ETH = "vesuEth"
    VESU_STRK = "vesuStrk"
    VESU_USDC = "vesuUsdc"
    VESU_USDT = "vesuUsdt"
    EKUBO_STRK_XSTRK = "ekuboStrkXstrk"


class VaultInfo(BaseModel):
    name: str
    description: str
    decimals: int = 18


_VESU_DESCRIPTION = (
    "Rebalancing vault that supplies {token} to multiple Vesu pools for optimized yield. "
    "Uses Vesu lending protocol with automated rebalancing across verified pools."
)

VAULT_INFO: Dict[VaultType, VaultInfo] = {
    VaultType.VESU_ETH: VaultInfo(
        name="Vesu Fusion ETH (vfETH)",
        description=_VESU_DESCRIPTION.format(token="ETH"),
        decimals=18,
    ),
    VaultType.VESU_STRK: VaultInfo(
        name="Vesu Fusion STRK (vfSTRK)",
        description=_VESU_DESCRIPTION.format(token="STRK"),
        decimals=18,
    ),
    VaultType.VESU_USDC: VaultInfo(
        name="Vesu Fusion USDC (vfUSDC)",
        description=_VESU_DESCRIPTION.format(token="USDC"),
        decimals=6,
    ),
    VaultType.VESU_USDT: VaultInfo(
        name="Vesu Fusion USDT (vfUSDT)",
        description=_VESU_DESCRIPTION.format(token="USDT"),
        decimals=6,
    ),
    VaultType.EKUBO_STRK_XSTRK: VaultInfo(
        name="Ekubo CL xSTRK/STRK",
        description=(
            "Concentrated liquidity vault for xSTRK/STRK pair on Ekubo. Automatically manages "
            "LP positions within optimal price ranges and reinvests trading fees."
        ),
        decimals=18,
    ),
}

UNKNOWN_VAULT = VaultInfo(
    name="Unknown Vault",
    description="Vault information not available",
    decimals=18,
)


def as_vault_type(identifier: str) -> Optional[VaultType]:
    """Match a fixed vault key, ignoring case."""
    lowered = (identifier or "").strip().lower()
    for vault_type in VaultType:
        if vault_type.value.lower() == lowered:
            return vault_type
    return None


def get_vault_info(identifier: str) -> VaultInfo:
    vault_type = as_vault_type(identifier)
    if vault_type is None:
        return UNKNOWN_VAULT
    return VAULT_INFO[vault_type]


async def resolve_vault_info(
    identifier: str,
    catalog: Optional[StrategyCatalogProvider] = None,
) -> VaultInfo:
    """Static info for fixed vault keys, otherwise derived from the catalog entry."""
    vault_type = as_vault_type(identifier)
    if vault_type is not None:
        return VAULT_INFO[vault_type]
    if catalog is None:
        return UNKNOWN_VAULT

    try:
        strategy = await catalog.get_strategy_by_id(identifier)
    except Exception as e:
        logger.warning(f"Could not load catalog info for {identifier}: {e}")
        return UNKNOWN_VAULT

    if strategy is None:
        return UNKNOWN_VAULT
    decimals = strategy.deposit_token[0].decimals if strategy.deposit_token else 18
    return VaultInfo(
        name=strategy.name,
        description=strategy.apy_methodology or UNKNOWN_VAULT.description,
        decimals=decimals,
    )
