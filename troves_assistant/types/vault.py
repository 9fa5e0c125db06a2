from typing import List
from pydantic import BaseModel, Field


class VaultSettings(BaseModel):
    default_pool_index: int = Field(description="Index of the default lending pool")
    fee_bps: int = Field(description="Performance fee in basis points")
    fee_receiver: str = Field(description="Address receiving fees (hex)")


class AllowedPool(BaseModel):
    pool_id: str = Field(description="Pool identifier (hex felt)")
    max_weight: int = Field(description="Maximum allocation weight in basis points")
    v_token: str = Field(description="vToken address for the pool (hex)")


class YieldData(BaseModel):
    yield_before: str = Field(description="Assets before the pending yield is applied")
    yield_after: str = Field(description="Assets after the pending yield is applied")


class ContractData(BaseModel):
    vault_type: str = Field(description="Vault key or strategy id")
    contract_address: str = Field(description="Resolved vault contract address")
    total_assets: str
    asset: str = Field(description="Underlying asset address (hex)")
    settings: VaultSettings
    allowed_pools: List[AllowedPool] = Field(default_factory=list)
    previous_index: str
