from typing import Dict, Type, Optional

from .base import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderError,
    LLMProviderRateLimitError,
    LLMResponse,
    TextSegment,
    ToolCall,
    ToolDefinition,
    ToolParameter,
    ToolParameterType,
    ToolUseSegment,
)
from .anthropic import AnthropicProvider
from ...config import Settings

PROVIDER_ALIAS_MAP: Dict[str, str] = {
    "claude": "anthropic",
}

# Registry of available LLM providers
PROVIDER_REGISTRY: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
}


def canonical_provider_name(name: str) -> str:
    """Normalize provider aliases to their canonical identifier."""

    return PROVIDER_ALIAS_MAP.get(name.lower(), name.lower())


def get_llm_provider(
    config: Settings,
    provider_name: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> LLMProvider:
    """Instantiate the configured LLM provider."""

    resolved_provider = canonical_provider_name((provider_name or "").strip() or config.llm_provider)
    if resolved_provider not in PROVIDER_REGISTRY:
        available_providers = ", ".join(PROVIDER_REGISTRY.keys())
        raise ValueError(
            f"Unsupported provider '{resolved_provider}'. "
            f"Available providers: {available_providers}"
        )

    api_key = config.anthropic_api_key if resolved_provider == "anthropic" else None
    if not api_key:
        raise ValueError(f"No API key configured for provider: {resolved_provider}")

    resolved_model = (model or "").strip() or config.llm_model
    provider_class = PROVIDER_REGISTRY[resolved_provider]
    return provider_class(api_key=api_key, model=resolved_model, **kwargs)


__all__ = [
    "AnthropicProvider",
    "LLMMessage",
    "LLMProvider",
    "LLMProviderAPIError",
    "LLMProviderAuthError",
    "LLMProviderError",
    "LLMProviderRateLimitError",
    "LLMResponse",
    "PROVIDER_REGISTRY",
    "TextSegment",
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolParameterType",
    "ToolUseSegment",
    "canonical_provider_name",
    "get_llm_provider",
]
