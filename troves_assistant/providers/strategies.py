"""
Troves strategies catalog provider.

The catalog is a single JSON document listing every yield strategy with its
APY, TVL, deposit tokens and contract addresses. There is no per-strategy
endpoint, so every lookup works against an in-memory snapshot that is
refreshed at most once per TTL window. When a refresh fails the previous
snapshot keeps being served.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .base import Provider
from ..config import DEFAULT_STRATEGIES_API_URL
from ..exceptions import StrategyFetchError
from ..types.strategy import StrategiesResponse, Strategy

logger = logging.getLogger(__name__)


class StrategyCatalogProvider(Provider):
    """
    Fetches and caches the Troves strategies catalog.

    Provides:
    - Cached catalog snapshot (wholesale replacement on refresh)
    - Lookup by strategy id or contract address
    - Token search, top-N by APY / TVL, audited and status filters
    """

    name = "troves_strategies"
    timeout_s = 15

    def __init__(
        self,
        api_url: str = DEFAULT_STRATEGIES_API_URL,
        cache_ttl_seconds: int = 3600,
        timeout_s: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_url = api_url
        self._cache_ttl_seconds = cache_ttl_seconds
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._transport = transport
        self._clock = clock

        self._cached: Optional[StrategiesResponse] = None
        self._last_fetch: float = 0.0
        self._cache_lock = asyncio.Lock()

    async def ready(self) -> bool:
        """The catalog is public and needs no credentials."""
        return bool(self.api_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "No catalog URL configured"}

        try:
            async with httpx.AsyncClient(timeout=5, transport=self._transport) as client:
                resp = await client.get(self.api_url)
                resp.raise_for_status()
                return {
                    "status": "healthy",
                    "latency_ms": int(resp.elapsed.total_seconds() * 1000),
                    "cached_strategies": len(self._cached.strategies) if self._cached else 0,
                }
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    def _cache_is_fresh(self) -> bool:
        if self._cached is None:
            return False
        return (self._clock() - self._last_fetch) < self._cache_ttl_seconds

    async def _request_catalog(self) -> StrategiesResponse:
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            resp = await client.get(self.api_url)
            resp.raise_for_status()
            payload = resp.json()

        if not isinstance(payload, dict) or not isinstance(payload.get("strategies"), list):
            raise StrategyFetchError("Invalid response from strategies API")

        strategies: List[Strategy] = []
        for entry in payload["strategies"]:
            try:
                strategies.append(Strategy.model_validate(entry))
            except ValidationError as e:
                entry_id = entry.get("id") if isinstance(entry, dict) else None
                logger.warning(f"Skipping invalid strategy {entry_id!r} in catalog: {e}")

        try:
            return StrategiesResponse.model_validate({**payload, "strategies": strategies})
        except ValidationError as e:
            raise StrategyFetchError(f"Invalid response from strategies API: {e}") from e

    async def fetch_strategies(self, force_refresh: bool = False) -> StrategiesResponse:
        """
        Return the catalog, hitting the network only when the cache is stale.

        Args:
            force_refresh: Bypass the cache and always perform a fetch.

        Returns:
            The cached snapshot or a freshly fetched one.

        Raises:
            StrategyFetchError: The fetch failed and nothing is cached.
        """
        async with self._cache_lock:
            if not force_refresh and self._cache_is_fresh():
                return self._cached

            try:
                catalog = await self._request_catalog()
            except Exception as e:
                logger.error(f"Error fetching strategies: {e}")
                if self._cached is not None:
                    logger.warning("Returning stale cached strategies due to fetch error")
                    return self._cached
                if isinstance(e, StrategyFetchError):
                    raise
                raise StrategyFetchError(f"Failed to fetch strategies: {e}") from e

            self._cached = catalog
            self._last_fetch = self._clock()
            logger.info(f"Fetched {len(catalog.strategies)} strategies from Troves API")
            return catalog

    async def get_strategy_by_id(self, strategy_id: str) -> Optional[Strategy]:
        catalog = await self.fetch_strategies()
        target = strategy_id.strip().lower()
        for strategy in catalog.strategies:
            if strategy.id.lower() == target:
                return strategy
        return None

    async def get_strategy_by_contract_address(self, contract_address: str) -> Optional[Strategy]:
        catalog = await self.fetch_strategies()
        target = contract_address.strip().lower()
        for strategy in catalog.strategies:
            if any(c.address.lower() == target for c in strategy.contract):
                return strategy
        return None

    async def get_contract_address_by_strategy_id(self, strategy_id: str) -> Optional[str]:
        strategy = await self.get_strategy_by_id(strategy_id)
        if strategy is None:
            return None
        return strategy.primary_contract_address

    async def search_strategies_by_token(self, token_symbol: str) -> List[Strategy]:
        """Strategies with any deposit token whose symbol contains ``token_symbol``."""
        catalog = await self.fetch_strategies()
        needle = token_symbol.strip().upper()
        return [
            strategy
            for strategy in catalog.strategies
            if any(needle in symbol.upper() for symbol in strategy.token_symbols)
        ]

    async def get_top_strategies_by_apy(self, limit: int = 10) -> List[Strategy]:
        catalog = await self.fetch_strategies()
        ranked = [s for s in catalog.strategies if s.has_valid_apy]
        ranked.sort(key=lambda s: s.apy, reverse=True)
        return ranked[: max(limit, 0)]

    async def get_top_strategies_by_tvl(self, limit: int = 10) -> List[Strategy]:
        catalog = await self.fetch_strategies()
        ranked = sorted(catalog.strategies, key=lambda s: s.tvl_usd, reverse=True)
        return ranked[: max(limit, 0)]

    async def get_audited_strategies(self) -> List[Strategy]:
        catalog = await self.fetch_strategies()
        return [s for s in catalog.strategies if s.is_audited]

    async def get_strategies_by_status(self, status_value: str) -> List[Strategy]:
        """Filter by status label substring, e.g. "hot" matches "Hot & New"."""
        catalog = await self.fetch_strategies()
        needle = status_value.strip().lower()
        return [s for s in catalog.strategies if needle in s.status.value.lower()]

    def clear_cache(self) -> None:
        self._cached = None
        self._last_fetch = 0.0
