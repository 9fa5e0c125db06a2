from pathlib import Path
from typing import Any, Dict

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_STRATEGIES_API_URL = "https://app.troves.fi/api/strategies"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Server Settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(
        default="development",
        description="Deployment environment (development, production)",
        validation_alias=AliasChoices("environment", "ENVIRONMENT", "NODE_ENV"),
    )

    # Starknet
    starknet_rpc_url: str = Field(
        default="",
        description="Starknet JSON-RPC endpoint",
        validation_alias=AliasChoices("starknet_rpc_url", "STARKNET_RPC_URL", "MAINNET_RPC"),
    )
    vesu_eth_address: str = Field(
        default="",
        description="Vesu Fusion ETH vault contract",
        validation_alias=AliasChoices("vesu_eth_address", "TROVES_CONTRACT_ADDRESS_VESU_ETH"),
    )
    vesu_strk_address: str = Field(
        default="",
        description="Vesu Fusion STRK vault contract",
        validation_alias=AliasChoices("vesu_strk_address", "TROVES_CONTRACT_ADDRESS_VESU_STRK"),
    )
    vesu_usdc_address: str = Field(
        default="",
        description="Vesu Fusion USDC vault contract",
        validation_alias=AliasChoices("vesu_usdc_address", "TROVES_CONTRACT_ADDRESS_VESU_USDC"),
    )
    vesu_usdt_address: str = Field(
        default="",
        description="Vesu Fusion USDT vault contract",
        validation_alias=AliasChoices("vesu_usdt_address", "TROVES_CONTRACT_ADDRESS_VESU_USDT"),
    )
    ekubo_strk_xstrk_address: str = Field(
        default="",
        description="Ekubo CL xSTRK/STRK vault contract",
        validation_alias=AliasChoices("ekubo_strk_xstrk_address", "TROVES_CONTRACT_ADDRESS_EKUBO_STRK_XSTRK"),
    )

    # Strategy catalog
    strategies_api_url: str = Field(
        default=DEFAULT_STRATEGIES_API_URL,
        description="Troves strategies catalog endpoint",
    )
    strategies_cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL for the strategies catalog cache (default: 1 hour)",
    )
    request_timeout_seconds: int = Field(default=30, description="Outbound HTTP timeout")

    # LLM Provider Settings
    llm_provider: str = Field(default="anthropic", description="Default LLM provider")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    llm_model: str = Field(default="claude-3-5-sonnet-20241022", description="Default LLM model")
    max_tokens: int = Field(default=1000, description="Maximum tokens for LLM response")
    temperature: float = Field(default=0.3, description="LLM temperature setting")

    # Conversation memory
    history_max_turns: int = Field(default=12, ge=2, description="Turns kept per user")
    history_window: int = Field(default=6, ge=1, description="Turns sent to the LLM per query")

    # Telegram
    telegram_bot_token: str = Field(default="", description="Telegram bot token")

    # WhatsApp Cloud API
    whatsapp_access_token: str = Field(default="", description="WhatsApp Cloud API access token")
    whatsapp_phone_number_id: str = Field(default="", description="WhatsApp sender phone number id")
    whatsapp_verify_token: str = Field(default="", description="Shared secret for webhook verification")
    whatsapp_api_version: str = Field(default="v18.0", description="Graph API version")
    whatsapp_base_url: str = Field(default="https://graph.facebook.com", description="Graph API base URL")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def vault_addresses(self) -> Dict[str, str]:
        """Configured vault contracts keyed by vault type, empty entries dropped."""
        addresses = {
            "vesuEth": self.vesu_eth_address,
            "vesuStrk": self.vesu_strk_address,
            "vesuUsdc": self.vesu_usdc_address,
            "vesuUsdt": self.vesu_usdt_address,
            "ekuboStrkXstrk": self.ekubo_strk_xstrk_address,
        }
        return {key: value.strip() for key, value in addresses.items() if value and value.strip()}

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_llm_key(self) -> bool:
        """Check if we have an API key for the configured LLM provider"""
        if self.llm_provider.lower() in ["anthropic", "claude"]:
            return self.has_anthropic_key
        return False

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token)

    @property
    def whatsapp_enabled(self) -> bool:
        return bool(self.whatsapp_access_token and self.whatsapp_phone_number_id)

    def describe(self) -> Dict[str, Any]:
        """Non-secret summary used by the health endpoint."""
        return {
            "environment": self.environment,
            "rpc_configured": bool(self.starknet_rpc_url),
            "configured_vaults": list(self.vault_addresses.keys()),
            "llm_provider": self.llm_provider,
            "llm_configured": self.has_llm_key,
        }


# Global settings instance
settings = Settings()
