from .envelope import ApiEnvelope, error_envelope, success_envelope, utc_timestamp
from .strategy import (
    ApySplit,
    ContractInfo,
    Curator,
    DepositToken,
    StrategiesResponse,
    Strategy,
    StrategyStatus,
)
from .vault import AllowedPool, ContractData, VaultSettings, YieldData

__all__ = [
    "ApiEnvelope",
    "error_envelope",
    "success_envelope",
    "utc_timestamp",
    "ApySplit",
    "ContractInfo",
    "Curator",
    "DepositToken",
    "StrategiesResponse",
    "Strategy",
    "StrategyStatus",
    "AllowedPool",
    "ContractData",
    "VaultSettings",
    "YieldData",
]
