"""
Troves API endpoints.

Every response uses the ``{success, data | message, error?, timestamp}``
envelope. Vault endpoints accept an optional ``vault`` query parameter (a
vault key or a strategy id) and default to the first known vault.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import Settings
from ..core.formatting import supply_basis_points
from ..core.vaults import resolve_vault_info
from ..dependencies import ServiceContainer, get_services
from ..exceptions import ContractNotFoundError, InvalidAmountError, StrategyFetchError
from ..types.envelope import error_envelope, success_envelope, utc_timestamp

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/troves")


class QueryRequest(BaseModel):
    query: Optional[str] = Field(default=None, description="Natural-language question")


def _error_response(message: str, exc: Exception, config: Settings) -> JSONResponse:
    if isinstance(exc, ContractNotFoundError):
        return JSONResponse(status_code=404, content=error_envelope(str(exc)))
    if isinstance(exc, InvalidAmountError):
        return JSONResponse(status_code=400, content=error_envelope(str(exc)))

    logger.error(f"{message}: {exc}")
    detail = None if config.is_production else str(exc)
    return JSONResponse(status_code=500, content=error_envelope(message, detail))


def _missing(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content=error_envelope(message))


def _pick_vault(services: ServiceContainer, vault: Optional[str]) -> str:
    if vault and vault.strip():
        return vault.strip()
    known = services.contracts.known_vaults()
    if not known:
        raise ContractNotFoundError("default")
    return known[0]


# =============================================================================
# Vault endpoints
# =============================================================================

@router.get("/status")
async def get_status(
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    """Aggregate contract data, yield and supply for one vault."""
    try:
        vault_id = _pick_vault(services, vault)
        contract_data = await services.contracts.get_contract_data(vault_id)
        yield_data = await services.contracts.compute_yield(vault_id)
        total_supply = await services.contracts.get_total_supply(vault_id)
    except Exception as e:
        return _error_response("Failed to fetch contract status", e, services.settings)

    return success_envelope({
        **contract_data.model_dump(),
        "yield": yield_data.model_dump(),
        "total_supply": total_supply,
        "timestamp": utc_timestamp(),
    })


@router.get("/balance/{address}")
async def get_balance(
    address: str,
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    """Share balance of ``address`` and its fraction of total supply."""
    try:
        vault_id = _pick_vault(services, vault)
        balance = await services.contracts.get_user_balance(address, vault_id)
        total_supply = await services.contracts.get_total_supply(vault_id)
        total_assets = await services.contracts.get_total_assets(vault_id)
    except Exception as e:
        return _error_response("Failed to fetch user balance", e, services.settings)

    return success_envelope({
        "address": address,
        "vault": vault_id,
        "balance": balance,
        "total_supply": total_supply,
        "total_assets": total_assets,
        "percentage": supply_basis_points(balance, total_supply) / 100,
        "timestamp": utc_timestamp(),
    })


@router.get("/yield")
async def get_yield(
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    try:
        vault_id = _pick_vault(services, vault)
        yield_data = await services.contracts.compute_yield(vault_id)
        total_assets = await services.contracts.get_total_assets(vault_id)
    except Exception as e:
        return _error_response("Failed to fetch yield information", e, services.settings)

    return success_envelope({
        **yield_data.model_dump(),
        "vault": vault_id,
        "total_assets": total_assets,
        "timestamp": utc_timestamp(),
    })


@router.get("/pools")
async def get_pools(
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    try:
        vault_id = _pick_vault(services, vault)
        pools = await services.contracts.get_allowed_pools(vault_id)
        vault_settings = await services.contracts.get_settings(vault_id)
    except Exception as e:
        return _error_response("Failed to fetch pools information", e, services.settings)

    return success_envelope({
        "vault": vault_id,
        "pools": [pool.model_dump() for pool in pools],
        "settings": vault_settings.model_dump(),
        "timestamp": utc_timestamp(),
    })


@router.get("/vaults")
async def list_vaults(services: ServiceContainer = Depends(get_services)):
    """Configured vaults plus any strategy ids resolved so far."""
    try:
        vaults = []
        for vault_id in services.contracts.known_vaults():
            info = await resolve_vault_info(vault_id, services.catalog)
            vaults.append({
                "vault": vault_id,
                "name": info.name,
                "description": info.description,
                "decimals": info.decimals,
            })
    except Exception as e:
        return _error_response("Failed to list vaults", e, services.settings)

    return success_envelope(vaults)


@router.get("/convert/shares")
async def convert_to_shares(
    assets: Optional[str] = Query(None, description="Asset amount in raw units"),
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    if not assets:
        return _missing("Assets amount is required")
    try:
        vault_id = _pick_vault(services, vault)
        shares = await services.contracts.convert_to_shares(assets, vault_id)
    except Exception as e:
        return _error_response("Failed to convert assets to shares", e, services.settings)

    return success_envelope({"vault": vault_id, "assets": assets, "shares": shares, "timestamp": utc_timestamp()})


@router.get("/convert/assets")
async def convert_to_assets(
    shares: Optional[str] = Query(None, description="Share amount in raw units"),
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    if not shares:
        return _missing("Shares amount is required")
    try:
        vault_id = _pick_vault(services, vault)
        assets = await services.contracts.convert_to_assets(shares, vault_id)
    except Exception as e:
        return _error_response("Failed to convert shares to assets", e, services.settings)

    return success_envelope({"vault": vault_id, "shares": shares, "assets": assets, "timestamp": utc_timestamp()})


@router.get("/preview/deposit")
async def preview_deposit(
    assets: Optional[str] = Query(None, description="Asset amount in raw units"),
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    if not assets:
        return _missing("Assets amount is required")
    try:
        vault_id = _pick_vault(services, vault)
        shares = await services.contracts.preview_deposit(assets, vault_id)
    except Exception as e:
        return _error_response("Failed to preview deposit", e, services.settings)

    return success_envelope({"vault": vault_id, "assets": assets, "shares": shares, "timestamp": utc_timestamp()})


@router.get("/preview/withdraw")
async def preview_withdraw(
    assets: Optional[str] = Query(None, description="Asset amount in raw units"),
    vault: Optional[str] = Query(None, description="Vault key or strategy id"),
    services: ServiceContainer = Depends(get_services),
):
    if not assets:
        return _missing("Assets amount is required")
    try:
        vault_id = _pick_vault(services, vault)
        shares = await services.contracts.preview_withdraw(assets, vault_id)
    except Exception as e:
        return _error_response("Failed to preview withdraw", e, services.settings)

    return success_envelope({"vault": vault_id, "assets": assets, "shares": shares, "timestamp": utc_timestamp()})


# =============================================================================
# AI query
# =============================================================================

@router.post("/query")
async def process_query(
    request: QueryRequest,
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    services: ServiceContainer = Depends(get_services),
):
    """Answer a natural-language question. The ``x-user-id`` header keys the conversation."""
    if not request.query or not request.query.strip():
        return _missing("Query is required")

    user_id = x_user_id or "api-user"
    try:
        result = await services.processor.process_query(request.query, user_id)
    except Exception as e:
        return _error_response("Failed to process query", e, services.settings)

    return success_envelope(result.model_dump(exclude_none=True))


# =============================================================================
# Strategy catalog
# =============================================================================

@router.get("/strategies")
async def list_strategies(
    audited: Optional[bool] = Query(None, description="Only audited (true) or unaudited (false)"),
    status: Optional[str] = Query(None, description="Status label substring, e.g. 'hot'"),
    services: ServiceContainer = Depends(get_services),
):
    try:
        catalog = await services.catalog.fetch_strategies()
        strategies = list(catalog.strategies)
        if audited is not None:
            strategies = [s for s in strategies if s.is_audited == audited]
        if status:
            wanted = status.lower()
            strategies = [s for s in strategies if wanted in s.status.value.lower()]
    except Exception as e:
        return _error_response("Failed to fetch strategies", e, services.settings)

    return success_envelope({
        "strategies": [s.to_api() for s in strategies],
        "count": len(strategies),
        "last_updated": catalog.last_updated,
    })


@router.get("/strategies/top/apy")
async def top_strategies_by_apy(
    limit: int = Query(10, ge=1, le=100),
    services: ServiceContainer = Depends(get_services),
):
    try:
        strategies = await services.catalog.get_top_strategies_by_apy(limit)
    except Exception as e:
        return _error_response("Failed to fetch top strategies by APY", e, services.settings)
    return success_envelope([s.to_api() for s in strategies])


@router.get("/strategies/top/tvl")
async def top_strategies_by_tvl(
    limit: int = Query(10, ge=1, le=100),
    services: ServiceContainer = Depends(get_services),
):
    try:
        strategies = await services.catalog.get_top_strategies_by_tvl(limit)
    except Exception as e:
        return _error_response("Failed to fetch top strategies by TVL", e, services.settings)
    return success_envelope([s.to_api() for s in strategies])


@router.get("/strategies/search")
async def search_strategies(
    token: Optional[str] = Query(None, description="Deposit token symbol (substring, case-insensitive)"),
    services: ServiceContainer = Depends(get_services),
):
    if not token or not token.strip():
        return _missing("Token symbol is required")
    try:
        strategies = await services.catalog.search_strategies_by_token(token)
    except Exception as e:
        return _error_response("Failed to search strategies", e, services.settings)
    return success_envelope([s.to_api() for s in strategies])


@router.get("/strategies/{strategy_id}")
async def get_strategy(
    strategy_id: str,
    services: ServiceContainer = Depends(get_services),
):
    try:
        strategy = await services.catalog.get_strategy_by_id(strategy_id)
    except StrategyFetchError as e:
        return _error_response("Failed to fetch strategy", e, services.settings)

    if strategy is None:
        return JSONResponse(status_code=404, content=error_envelope(f"Strategy not found: {strategy_id}"))
    return success_envelope(strategy.to_api())
