"""
Starknet vault contract reader.

Resolves a vault identifier (a fixed vault key such as ``vesuEth`` or any
strategy id from the catalog) to a contract handle and wraps each read-only
entrypoint of the vault interface.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from starknet_py.contract import Contract
from starknet_py.net.full_node_client import FullNodeClient

from .abi import TROVES_ABI
from .base import Provider
from .strategies import StrategyCatalogProvider
from ..exceptions import ContractCallError, ContractNotFoundError, InvalidAmountError
from ..types.vault import AllowedPool, ContractData, VaultSettings, YieldData

logger = logging.getLogger(__name__)

ContractFactory = Callable[[str], Any]


def parse_int_argument(value: Any, label: str = "amount") -> int:
    """Parse a decimal or 0x-prefixed hex value into a non-negative int."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid {label}: {value!r}")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        try:
            number = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError as e:
            raise InvalidAmountError(f"Invalid {label}: {value!r}") from e
    if number < 0:
        raise InvalidAmountError(f"Invalid {label}: {value!r}")
    return number


def _to_hex(value: Any) -> str:
    if isinstance(value, int):
        return hex(value)
    return str(value)


class StarknetContractReader(Provider):
    """
    Read-only client for Troves vault contracts.

    Handles are resolved in order: cached handle, static configuration, then
    the strategy catalog's id -> address lookup. A resolved handle is kept for
    the lifetime of the reader.
    """

    name = "starknet"
    timeout_s = 30

    def __init__(
        self,
        rpc_url: str,
        static_addresses: Optional[Dict[str, str]] = None,
        catalog: Optional[StrategyCatalogProvider] = None,
        contract_factory: Optional[ContractFactory] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._static_addresses: Dict[str, str] = dict(static_addresses or {})
        self._catalog = catalog
        self._client: Optional[FullNodeClient] = None
        self._contract_factory = contract_factory or self._build_contract

        self._contracts: Dict[str, Any] = {}
        self._addresses: Dict[str, str] = {}
        self._resolve_lock = asyncio.Lock()

    @property
    def client(self) -> FullNodeClient:
        if self._client is None:
            self._client = FullNodeClient(node_url=self.rpc_url)
        return self._client

    def _build_contract(self, address: str) -> Contract:
        return Contract(
            address=address,
            abi=TROVES_ABI,
            provider=self.client,
            cairo_version=1,
        )

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "RPC URL not configured"}

        try:
            block_number = await asyncio.wait_for(self.client.get_block_number(), timeout=5)
            return {
                "status": "healthy",
                "block_number": block_number,
                "known_vaults": self.known_vaults(),
            }
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _static_key(self, identifier: str) -> Optional[str]:
        if identifier in self._static_addresses:
            return identifier
        lowered = identifier.lower()
        for key in self._static_addresses:
            if key.lower() == lowered:
                return key
        return None

    def known_vaults(self) -> List[str]:
        """Configured vault keys followed by strategy ids resolved so far."""
        vaults = list(self._static_addresses.keys())
        vaults.extend(key for key in self._addresses if key not in self._static_addresses)
        return vaults

    def get_available_vaults(self) -> List[str]:
        return self.known_vaults()

    async def _lookup_address(self, identifier: str) -> Optional[str]:
        static_key = self._static_key(identifier)
        if static_key is not None:
            return self._static_addresses[static_key]

        if self._catalog is None:
            return None
        try:
            return await self._catalog.get_contract_address_by_strategy_id(identifier)
        except Exception as e:
            logger.warning(f"Strategy lookup failed for {identifier}: {e}")
            return None

    async def _resolve(self, vault: str) -> Any:
        identifier = (vault or "").strip()
        if not identifier:
            raise ContractNotFoundError(vault)

        cache_key = self._static_key(identifier) or identifier
        contract = self._contracts.get(cache_key)
        if contract is not None:
            return contract

        async with self._resolve_lock:
            contract = self._contracts.get(cache_key)
            if contract is not None:
                return contract

            address = await self._lookup_address(identifier)
            if not address:
                raise ContractNotFoundError(identifier)

            contract = self._contract_factory(address)
            self._contracts[cache_key] = contract
            self._addresses[cache_key] = address
            if cache_key not in self._static_addresses:
                logger.info(f"Resolved strategy {cache_key} to contract {address}")
            return contract

    async def get_contract_address(self, vault: str) -> str:
        await self._resolve(vault)
        cache_key = self._static_key(vault.strip()) or vault.strip()
        return self._addresses[cache_key]

    async def _call(self, vault: str, function: str, *args: Any, error_message: str) -> Any:
        contract = await self._resolve(vault)
        try:
            result = await contract.functions[function].call(*args)
        except Exception as e:
            logger.error(f"Error calling {function} on {vault}: {e}")
            raise ContractCallError(error_message) from e
        return result[0]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_total_assets(self, vault: str) -> str:
        value = await self._call(vault, "total_assets", error_message="Failed to fetch total assets")
        return str(value)

    async def get_total_supply(self, vault: str) -> str:
        value = await self._call(vault, "total_supply", error_message="Failed to fetch total supply")
        return str(value)

    async def get_asset(self, vault: str) -> str:
        value = await self._call(vault, "asset", error_message="Failed to fetch asset address")
        return _to_hex(value)

    async def get_settings(self, vault: str) -> VaultSettings:
        value = await self._call(vault, "get_settings", error_message="Failed to fetch contract settings")
        try:
            return VaultSettings(
                default_pool_index=int(value["default_pool_index"]),
                fee_bps=int(value["fee_bps"]),
                fee_receiver=_to_hex(value["fee_receiver"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected settings payload from {vault}: {value!r}")
            raise ContractCallError("Failed to fetch contract settings") from e

    async def get_allowed_pools(self, vault: str) -> List[AllowedPool]:
        value = await self._call(vault, "get_allowed_pools", error_message="Failed to fetch allowed pools")
        try:
            return [
                AllowedPool(
                    pool_id=_to_hex(pool["pool_id"]),
                    max_weight=int(pool["max_weight"]),
                    v_token=_to_hex(pool["v_token"]),
                )
                for pool in value
            ]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected pools payload from {vault}: {value!r}")
            raise ContractCallError("Failed to fetch allowed pools") from e

    async def get_previous_index(self, vault: str) -> str:
        value = await self._call(vault, "get_previous_index", error_message="Failed to fetch previous index")
        return str(value)

    async def compute_yield(self, vault: str) -> YieldData:
        value = await self._call(vault, "compute_yield", error_message="Failed to compute yield")
        try:
            before, after = value[0], value[1]
        except (IndexError, TypeError) as e:
            raise ContractCallError("Failed to compute yield") from e
        return YieldData(yield_before=str(before), yield_after=str(after))

    async def get_user_balance(self, user_address: str, vault: str) -> str:
        account = parse_int_argument(user_address, "address")
        value = await self._call(vault, "balance_of", account, error_message="Failed to fetch user balance")
        return str(value)

    async def convert_to_shares(self, assets: str, vault: str) -> str:
        amount = parse_int_argument(assets, "assets")
        value = await self._call(
            vault, "convert_to_shares", amount, error_message="Failed to convert assets to shares"
        )
        return str(value)

    async def convert_to_assets(self, shares: str, vault: str) -> str:
        amount = parse_int_argument(shares, "shares")
        value = await self._call(
            vault, "convert_to_assets", amount, error_message="Failed to convert shares to assets"
        )
        return str(value)

    async def preview_deposit(self, assets: str, vault: str) -> str:
        amount = parse_int_argument(assets, "assets")
        value = await self._call(vault, "preview_deposit", amount, error_message="Failed to preview deposit")
        return str(value)

    async def preview_withdraw(self, assets: str, vault: str) -> str:
        amount = parse_int_argument(assets, "assets")
        value = await self._call(vault, "preview_withdraw", amount, error_message="Failed to preview withdraw")
        return str(value)

    async def get_contract_data(self, vault: str) -> ContractData:
        """Aggregate every vault read into one record."""
        contract_address = await self.get_contract_address(vault)
        total_assets, asset, vault_settings, allowed_pools, previous_index = await asyncio.gather(
            self.get_total_assets(vault),
            self.get_asset(vault),
            self.get_settings(vault),
            self.get_allowed_pools(vault),
            self.get_previous_index(vault),
        )
        return ContractData(
            vault_type=vault,
            contract_address=contract_address,
            total_assets=total_assets,
            asset=asset,
            settings=vault_settings,
            allowed_pools=allowed_pools,
            previous_index=previous_index,
        )
