import math
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CatalogModel(BaseModel):
    """Catalog payloads use camelCase keys; accept both spellings and keep unknown keys out."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class DepositToken(_CatalogModel):
    symbol: str = Field(description="Token symbol (e.g. STRK, USDC)")
    name: str = Field(default="", description="Full token name")
    address: str = Field(default="", description="Token contract address")
    decimals: int = Field(default=18, description="Token decimal places")


class ContractInfo(_CatalogModel):
    name: str = Field(default="", description="Contract label")
    address: str = Field(description="Deployed contract address")


class ApySplit(_CatalogModel):
    base_apy: Optional[float] = Field(default=None, alias="baseApy")
    rewards_apy: float = Field(default=0.0, alias="rewardsApy")

    @field_validator("rewards_apy", mode="before")
    @classmethod
    def _null_rewards(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class StrategyStatus(_CatalogModel):
    number: int = 0
    value: str = ""


class Curator(_CatalogModel):
    name: str
    logo: str = ""


class Strategy(_CatalogModel):
    """A single catalog entry. APY values are fractions (0.05 == 5%)."""

    id: str = Field(description="Strategy identifier, compared case-insensitively")
    name: str = Field(description="Display name")
    apy: Optional[float] = Field(default=None, description="Total APY as a fraction")
    apy_split: ApySplit = Field(default_factory=ApySplit, alias="apySplit")
    apy_methodology: str = Field(default="", alias="apyMethodology")
    deposit_token: List[DepositToken] = Field(default_factory=list, alias="depositToken")
    leverage: float = Field(default=1.0)
    contract: List[ContractInfo] = Field(default_factory=list)
    tvl_usd: float = Field(default=0.0, alias="tvlUsd")
    status: StrategyStatus = Field(default_factory=StrategyStatus)
    risk_factor: float = Field(default=0.0, alias="riskFactor")
    logos: List[str] = Field(default_factory=list)
    is_audited: bool = Field(default=False, alias="isAudited")
    audit_url: Optional[str] = Field(default=None, alias="auditUrl")
    curator: Optional[Curator] = None

    @field_validator("tvl_usd", "risk_factor", mode="before")
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("leverage", mode="before")
    @classmethod
    def _null_leverage(cls, value: Any) -> Any:
        return 1.0 if value is None else value

    @property
    def has_valid_apy(self) -> bool:
        return self.apy is not None and not math.isnan(self.apy)

    @property
    def token_symbols(self) -> List[str]:
        return [token.symbol for token in self.deposit_token]

    @property
    def primary_contract_address(self) -> Optional[str]:
        return self.contract[0].address if self.contract else None

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StrategiesResponse(_CatalogModel):
    status: bool = True
    strategies: List[Strategy]
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
