"""Shared fixtures: a small strategies catalog payload and helpers built on it."""

import copy

import pytest

from troves_assistant.types.strategy import StrategiesResponse


SAMPLE_CATALOG = {
    "status": True,
    "lastUpdated": "2024-11-20T10:00:00.000Z",
    "strategies": [
        {
            "id": "vesu_fusion_eth",
            "name": "Vesu Fusion ETH",
            "apy": 0.0523,
            "apySplit": {"baseApy": 0.04, "rewardsApy": 0.0123},
            "apyMethodology": "Weighted average of the supply APY across allowed Vesu pools",
            "depositToken": [
                {"symbol": "ETH", "name": "Ether", "address": "0x049d36", "decimals": 18},
            ],
            "leverage": 1,
            "contract": [{"name": "Vault", "address": "0x0abc01"}],
            "tvlUsd": 1500000.4,
            "status": {"number": 1, "value": "Hot & New 🔥"},
            "riskFactor": 1.5,
            "logos": [],
            "isAudited": True,
            "auditUrl": "https://docs.troves.fi/audits/vesu.pdf",
            "curator": {"name": "Troves", "logo": ""},
        },
        {
            "id": "ekubo_cl_xstrkstrk",
            "name": "Ekubo xSTRK/STRK",
            "apy": 0.12,
            "depositToken": [
                {"symbol": "xSTRK", "decimals": 18},
                {"symbol": "STRK", "decimals": 18},
            ],
            "leverage": 1,
            "contract": [{"name": "Vault", "address": "0x0def02"}],
            "tvlUsd": 800000,
            "status": {"number": 2, "value": "Active"},
            "riskFactor": 2.5,
            "isAudited": False,
        },
        {
            "id": "usdc_sensei",
            "name": "USDC Sensei",
            "apy": None,
            "depositToken": [{"symbol": "USDC", "decimals": 6}],
            "contract": [{"name": "Vault", "address": "0x0aaa03"}],
            "tvlUsd": 2500000,
            "status": {"number": 2, "value": "Active"},
            "isAudited": True,
        },
    ],
}


@pytest.fixture
def catalog_payload():
    """Fresh copy of the sample catalog payload."""
    return copy.deepcopy(SAMPLE_CATALOG)


@pytest.fixture
def catalog_response(catalog_payload):
    return StrategiesResponse.model_validate(catalog_payload)


@pytest.fixture
def strategies(catalog_response):
    return list(catalog_response.strategies)
