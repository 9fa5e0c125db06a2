"""
Service container shared by the HTTP API, the chat bots and the CLI.

All long-lived state (strategy cache, contract handles, conversation history)
lives on the objects built here; nothing is kept in module globals.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .config import Settings
from .core.agent.history import ConversationStore
from .core.agent.processor import AIQueryProcessor
from .core.agent.tools import ToolExecutor, ToolRegistry
from .exceptions import ConfigurationError
from .messaging.service import MessagingService
from .providers.llm import LLMProvider, get_llm_provider
from .providers.starknet import StarknetContractReader
from .providers.strategies import StrategyCatalogProvider

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    catalog: StrategyCatalogProvider
    contracts: StarknetContractReader
    processor: AIQueryProcessor
    messaging: MessagingService


def _build_llm(config: Settings) -> Optional[LLMProvider]:
    if not config.has_llm_key:
        logger.warning(f"No API key configured for {config.llm_provider}; AI queries will fail gracefully")
        return None
    try:
        return get_llm_provider(config)
    except Exception as e:
        logger.error(f"Could not initialize LLM provider {config.llm_provider}: {e}")
        return None


def build_services(config: Settings, with_messaging: bool = True) -> ServiceContainer:
    """Wire every collaborator from settings."""
    if not config.starknet_rpc_url:
        logger.warning("Starknet RPC URL not configured; vault reads will fail")

    catalog = StrategyCatalogProvider(
        api_url=config.strategies_api_url,
        cache_ttl_seconds=config.strategies_cache_ttl_seconds,
        timeout_s=config.request_timeout_seconds,
    )
    contracts = StarknetContractReader(
        rpc_url=config.starknet_rpc_url,
        static_addresses=config.vault_addresses,
        catalog=catalog,
    )
    registry = ToolRegistry(contracts, catalog)
    processor = AIQueryProcessor(
        llm=_build_llm(config),
        executor=ToolExecutor(registry),
        history=ConversationStore(max_turns=config.history_max_turns),
        history_window=config.history_window,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )
    if with_messaging:
        messaging = MessagingService.from_settings(config, processor, contracts, catalog)
    else:
        messaging = MessagingService()

    logger.info(f"Services ready: {config.describe()}")
    return ServiceContainer(
        settings=config,
        catalog=catalog,
        contracts=contracts,
        processor=processor,
        messaging=messaging,
    )


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ConfigurationError("Services have not been initialized")
    return services
