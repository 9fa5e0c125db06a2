"""
Tool Registry and Executor for LLM-driven tool calling.

Raw tool calls from the model are validated into a closed set of input models
(discriminated on the tool name) before a handler runs. Handlers always return
a ``ToolOutcome`` whose message is ready to show to the user.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Coroutine, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..formatting import (
    format_balance,
    format_fee_percent,
    format_strategy_info,
    format_strategy_info_short,
)
from ..vaults import VaultType, get_vault_info, resolve_vault_info
from ...providers.llm.base import ToolCall, ToolDefinition, ToolParameter, ToolParameterType
from ...providers.starknet import StarknetContractReader
from ...providers.strategies import StrategyCatalogProvider


# =============================================================================
# Tool inputs
# =============================================================================

class ListStrategiesInput(BaseModel):
    tool: Literal["list_strategies"] = "list_strategies"
    audited_only: bool = False


class GetStrategyInput(BaseModel):
    tool: Literal["get_strategy"] = "get_strategy"
    strategy_id: str


class SearchStrategiesByTokenInput(BaseModel):
    tool: Literal["search_strategies_by_token"] = "search_strategies_by_token"
    token_symbol: str


class TopStrategiesByApyInput(BaseModel):
    tool: Literal["get_top_strategies_by_apy"] = "get_top_strategies_by_apy"
    limit: int = Field(default=5, ge=1, le=50)


class TopStrategiesByTvlInput(BaseModel):
    tool: Literal["get_top_strategies_by_tvl"] = "get_top_strategies_by_tvl"
    limit: int = Field(default=5, ge=1, le=50)


class VaultBalanceInput(BaseModel):
    tool: Literal["get_vault_balance"] = "get_vault_balance"
    wallet_address: Optional[str] = None
    vault_type: Optional[str] = None


class VaultYieldInput(BaseModel):
    tool: Literal["get_vault_yield"] = "get_vault_yield"
    vault_type: Optional[str] = None


class VaultTvlInput(BaseModel):
    tool: Literal["get_vault_tvl"] = "get_vault_tvl"
    vault_type: Optional[str] = None


class VaultSettingsInput(BaseModel):
    tool: Literal["get_vault_settings"] = "get_vault_settings"
    vault_type: Optional[str] = None


ToolInput = Annotated[
    Union[
        ListStrategiesInput,
        GetStrategyInput,
        SearchStrategiesByTokenInput,
        TopStrategiesByApyInput,
        TopStrategiesByTvlInput,
        VaultBalanceInput,
        VaultYieldInput,
        VaultTvlInput,
        VaultSettingsInput,
    ],
    Field(discriminator="tool"),
]

_tool_input_adapter = TypeAdapter(ToolInput)


def parse_tool_call(tool_call: ToolCall) -> ToolInput:
    """Validate a raw tool call into its typed input. Raises ``ValidationError``."""
    arguments = {k: v for k, v in tool_call.arguments.items() if v is not None and k != "tool"}
    return _tool_input_adapter.validate_python({"tool": tool_call.name, **arguments})


class ToolOutcome(BaseModel):
    """Result of a tool handler."""
    success: bool
    message: str
    data: Optional[Any] = None


class ToolInvocationRecord(BaseModel):
    tool_name: str
    result: ToolOutcome


# =============================================================================
# Registry
# =============================================================================

@dataclass
class RegisteredTool:
    """A tool registered in the registry with its definition and handler."""
    definition: ToolDefinition
    handler: Callable[..., Coroutine[Any, Any, ToolOutcome]]


_VAULT_PARAMETER_DESCRIPTION = (
    "Vault key ({keys}) or a strategy id from the catalog. "
    "Optional - if not provided, the available vaults are listed."
).format(keys=", ".join(v.value for v in VaultType))


def _vault_parameter() -> ToolParameter:
    return ToolParameter(
        name="vault_type",
        type=ToolParameterType.STRING,
        description=_VAULT_PARAMETER_DESCRIPTION,
        required=False,
    )


class ToolRegistry:
    """
    Registry of the Troves tools the LLM can call.

    Strategy tools read the catalog; vault tools read the vault contracts.
    """

    def __init__(
        self,
        contracts: StarknetContractReader,
        catalog: StrategyCatalogProvider,
        logger: Optional[logging.Logger] = None,
    ):
        self.contracts = contracts
        self.catalog = catalog
        self._tools: Dict[str, RegisteredTool] = {}
        self.logger = logger or logging.getLogger(__name__)
        self._register_default_tools()

    def register(
        self,
        name: str,
        definition: ToolDefinition,
        handler: Callable[..., Coroutine[Any, Any, ToolOutcome]],
    ) -> None:
        """Register a tool with its definition and handler."""
        self._tools[name] = RegisteredTool(definition=definition, handler=handler)

    def get_definitions(self) -> List[ToolDefinition]:
        """Get all tool definitions for passing to the LLM."""
        return [tool.definition for tool in self._tools.values()]

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def _register_default_tools(self) -> None:
        self.register(
            "list_strategies",
            ToolDefinition(
                name="list_strategies",
                description=(
                    "List all Troves yield strategies with APY, TVL and deposit tokens. "
                    "Use this when the user asks what strategies or vaults exist."
                ),
                parameters=[
                    ToolParameter(
                        name="audited_only",
                        type=ToolParameterType.BOOLEAN,
                        description="Only include audited strategies",
                        required=False,
                    ),
                ],
            ),
            self._handle_list_strategies,
        )

        self.register(
            "get_strategy",
            ToolDefinition(
                name="get_strategy",
                description=(
                    "Get full details for one strategy by its id, including APY breakdown, "
                    "methodology, risk factor and audit status."
                ),
                parameters=[
                    ToolParameter(
                        name="strategy_id",
                        type=ToolParameterType.STRING,
                        description="Strategy identifier (e.g. 'vesu_fusion_eth')",
                    ),
                ],
            ),
            self._handle_get_strategy,
        )

        self.register(
            "search_strategies_by_token",
            ToolDefinition(
                name="search_strategies_by_token",
                description="Find strategies that accept a given deposit token.",
                parameters=[
                    ToolParameter(
                        name="token_symbol",
                        type=ToolParameterType.STRING,
                        description="Token symbol such as STRK, ETH or USDC",
                    ),
                ],
            ),
            self._handle_search_strategies_by_token,
        )

        self.register(
            "get_top_strategies_by_apy",
            ToolDefinition(
                name="get_top_strategies_by_apy",
                description="Get the highest-yielding strategies, sorted by APY.",
                parameters=[
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Number of strategies to return (default 5)",
                        required=False,
                    ),
                ],
            ),
            self._handle_top_strategies_by_apy,
        )

        self.register(
            "get_top_strategies_by_tvl",
            ToolDefinition(
                name="get_top_strategies_by_tvl",
                description="Get the largest strategies, sorted by total value locked.",
                parameters=[
                    ToolParameter(
                        name="limit",
                        type=ToolParameterType.INTEGER,
                        description="Number of strategies to return (default 5)",
                        required=False,
                    ),
                ],
            ),
            self._handle_top_strategies_by_tvl,
        )

        self.register(
            "get_vault_balance",
            ToolDefinition(
                name="get_vault_balance",
                description="Get user balance for a specific vault and wallet address",
                parameters=[
                    ToolParameter(
                        name="wallet_address",
                        type=ToolParameterType.STRING,
                        description="User wallet address (required)",
                    ),
                    _vault_parameter(),
                ],
            ),
            self._handle_vault_balance,
        )

        self.register(
            "get_vault_yield",
            ToolDefinition(
                name="get_vault_yield",
                description="Get current yield information for a specific vault",
                parameters=[_vault_parameter()],
            ),
            self._handle_vault_yield,
        )

        self.register(
            "get_vault_tvl",
            ToolDefinition(
                name="get_vault_tvl",
                description="Get total value locked (TVL) for a specific vault",
                parameters=[_vault_parameter()],
            ),
            self._handle_vault_tvl,
        )

        self.register(
            "get_vault_settings",
            ToolDefinition(
                name="get_vault_settings",
                description="Get vault settings including fees and configuration",
                parameters=[_vault_parameter()],
            ),
            self._handle_vault_settings,
        )

    # -------------------------------------------------------------------------
    # Strategy handlers
    # -------------------------------------------------------------------------

    async def _handle_list_strategies(self, params: ListStrategiesInput) -> ToolOutcome:
        if params.audited_only:
            strategies = await self.catalog.get_audited_strategies()
        else:
            strategies = (await self.catalog.fetch_strategies()).strategies

        if not strategies:
            return ToolOutcome(success=True, message="No strategies are currently available.", data=[])

        lines = "\n".join(f"• {format_strategy_info_short(s)}" for s in strategies)
        return ToolOutcome(
            success=True,
            message=f"📋 **Troves Strategies ({len(strategies)}):**\n\n{lines}",
            data=[s.id for s in strategies],
        )

    async def _handle_get_strategy(self, params: GetStrategyInput) -> ToolOutcome:
        strategy = await self.catalog.get_strategy_by_id(params.strategy_id)
        if strategy is None:
            return ToolOutcome(success=False, message=f"Strategy not found: {params.strategy_id}")
        return ToolOutcome(success=True, message=format_strategy_info(strategy), data=strategy.to_api())

    async def _handle_search_strategies_by_token(self, params: SearchStrategiesByTokenInput) -> ToolOutcome:
        strategies = await self.catalog.search_strategies_by_token(params.token_symbol)
        if not strategies:
            return ToolOutcome(
                success=True,
                message=f"No strategies found for token {params.token_symbol.upper()}.",
                data=[],
            )
        lines = "\n".join(f"• {format_strategy_info_short(s)}" for s in strategies)
        return ToolOutcome(
            success=True,
            message=f"🔍 **Strategies for {params.token_symbol.upper()}:**\n\n{lines}",
            data=[s.id for s in strategies],
        )

    def _ranked(self, strategies, title: str) -> ToolOutcome:
        if not strategies:
            return ToolOutcome(success=True, message="No strategies are currently available.", data=[])
        lines = "\n".join(
            f"{index}. {format_strategy_info_short(s)}" for index, s in enumerate(strategies, start=1)
        )
        return ToolOutcome(
            success=True,
            message=f"🏆 **{title}:**\n\n{lines}",
            data=[s.id for s in strategies],
        )

    async def _handle_top_strategies_by_apy(self, params: TopStrategiesByApyInput) -> ToolOutcome:
        strategies = await self.catalog.get_top_strategies_by_apy(params.limit)
        return self._ranked(strategies, f"Top {len(strategies)} Strategies by APY")

    async def _handle_top_strategies_by_tvl(self, params: TopStrategiesByTvlInput) -> ToolOutcome:
        strategies = await self.catalog.get_top_strategies_by_tvl(params.limit)
        return self._ranked(strategies, f"Top {len(strategies)} Strategies by TVL")

    # -------------------------------------------------------------------------
    # Vault handlers
    # -------------------------------------------------------------------------

    def _vault_choice(self, subject: str, example_verb: str) -> ToolOutcome:
        options = []
        for vault in self.contracts.known_vaults():
            options.append(f"• **{vault}** - {_static_name(vault)}")
        message = (
            f"Please specify which vault you'd like to check the {subject} for:\n\n"
            + "\n".join(options)
            + f'\n\nExample: "{example_verb} {subject} for vesuEth" or '
            f'"{example_verb} {subject} for ekuboStrkXstrk"'
        )
        return ToolOutcome(success=False, message=message)

    async def _handle_vault_balance(self, params: VaultBalanceInput) -> ToolOutcome:
        if not params.wallet_address:
            return ToolOutcome(success=False, message="Wallet address is required to check balance.")
        if not params.vault_type:
            return self._vault_choice("balance", "check")

        try:
            balance = await self.contracts.get_user_balance(params.wallet_address, params.vault_type)
            info = await resolve_vault_info(params.vault_type, self.catalog)
            formatted = format_balance(balance, info.decimals)
        except Exception as e:
            return ToolOutcome(success=False, message=f"Error getting balance: {e}")

        return ToolOutcome(
            success=True,
            message=(
                f"💰 **Your {info.name} Balance:**\n`{formatted}`\n\n"
                f"📍 Address: `{params.wallet_address}`"
            ),
            data={
                "balance": balance,
                "formatted_balance": formatted,
                "vault_type": params.vault_type,
                "wallet_address": params.wallet_address,
            },
        )

    async def _handle_vault_yield(self, params: VaultYieldInput) -> ToolOutcome:
        if not params.vault_type:
            return self._vault_choice("yield", "get")

        try:
            yield_data = await self.contracts.compute_yield(params.vault_type)
            info = await resolve_vault_info(params.vault_type, self.catalog)
        except Exception as e:
            return ToolOutcome(success=False, message=f"Error getting yield: {e}")

        return ToolOutcome(
            success=True,
            message=(
                f"📈 **{info.name} Yield:**\n\n"
                f"• **Before:** {yield_data.yield_before}\n"
                f"• **After:** {yield_data.yield_after}\n\n"
                f"{info.description}"
            ),
            data={**yield_data.model_dump(), "vault_type": params.vault_type},
        )

    async def _handle_vault_tvl(self, params: VaultTvlInput) -> ToolOutcome:
        if not params.vault_type:
            return self._vault_choice("TVL", "get")

        try:
            total_assets = await self.contracts.get_total_assets(params.vault_type)
            info = await resolve_vault_info(params.vault_type, self.catalog)
        except Exception as e:
            return ToolOutcome(success=False, message=f"Error getting TVL: {e}")

        return ToolOutcome(
            success=True,
            message=f"🏦 **{info.name} TVL:**\n`{total_assets}`\n\n{info.description}",
            data={"total_assets": total_assets, "vault_type": params.vault_type},
        )

    async def _handle_vault_settings(self, params: VaultSettingsInput) -> ToolOutcome:
        if not params.vault_type:
            return self._vault_choice("settings", "get")

        try:
            vault_settings = await self.contracts.get_settings(params.vault_type)
            info = await resolve_vault_info(params.vault_type, self.catalog)
        except Exception as e:
            return ToolOutcome(success=False, message=f"Error getting settings: {e}")

        return ToolOutcome(
            success=True,
            message=(
                f"⚙️ **{info.name} Settings:**\n\n"
                f"• **Fee:** {format_fee_percent(vault_settings.fee_bps)}%\n"
                f"• **Default Pool Index:** {vault_settings.default_pool_index}\n"
                f"• **Fee Receiver:** `{vault_settings.fee_receiver}`"
            ),
            data={**vault_settings.model_dump(), "vault_type": params.vault_type},
        )


def _static_name(vault: str) -> str:
    info = get_vault_info(vault)
    return info.name if info.name != "Unknown Vault" else vault


class ToolExecutor:
    """Validates and executes tool calls requested by the LLM."""

    def __init__(
        self,
        registry: ToolRegistry,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    async def execute(self, tool_call: ToolCall) -> ToolOutcome:
        """Execute a single tool call. Never raises."""
        tool = self.registry.get_tool(tool_call.name)
        if not tool:
            self.logger.warning(f"LLM requested unknown tool: {tool_call.name}")
            return ToolOutcome(success=False, message=f"Unknown tool: {tool_call.name}")

        try:
            params = parse_tool_call(tool_call)
        except ValidationError as e:
            self.logger.warning(f"Invalid arguments for {tool_call.name}: {e}")
            return ToolOutcome(success=False, message=f"Invalid arguments for {tool_call.name}")

        try:
            return await tool.handler(params)
        except Exception as e:
            self.logger.error(f"Tool execution error for {tool_call.name}: {e}")
            return ToolOutcome(success=False, message=f"Error executing {tool_call.name}: {e}")
