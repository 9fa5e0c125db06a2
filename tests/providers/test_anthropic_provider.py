from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from troves_assistant.config import Settings
from troves_assistant.providers.llm import (
    AnthropicProvider,
    LLMMessage,
    LLMProviderError,
    TextSegment,
    ToolDefinition,
    ToolParameter,
    ToolParameterType,
    ToolUseSegment,
    canonical_provider_name,
    get_llm_provider,
)


def fake_client(content, stop_reason="end_turn"):
    response = SimpleNamespace(
        content=content,
        usage=SimpleNamespace(output_tokens=42),
        stop_reason=stop_reason,
    )
    return SimpleNamespace(messages=SimpleNamespace(create=AsyncMock(return_value=response)))


def text_block(text):
    return SimpleNamespace(type="text", text=text)


def tool_block(tool_id, name, arguments):
    return SimpleNamespace(type="tool_use", id=tool_id, name=name, input=arguments)


TVL_TOOL = ToolDefinition(
    name="get_vault_tvl",
    description="Get total value locked (TVL) for a specific vault",
    parameters=[
        ToolParameter(
            name="vault_type",
            type=ToolParameterType.STRING,
            description="Vault key",
            required=False,
        )
    ],
)


class TestParseContentBlocks:

    def test_preserves_emission_order(self):
        segments = AnthropicProvider.parse_content_blocks([
            text_block("Checking the vault. "),
            tool_block("toolu_1", "get_vault_tvl", {"vault_type": "vesuEth"}),
            text_block("Done."),
        ])

        assert [type(s) for s in segments] == [TextSegment, ToolUseSegment, TextSegment]
        assert segments[1].call.name == "get_vault_tvl"
        assert segments[1].call.arguments == {"vault_type": "vesuEth"}

    def test_ignores_unknown_blocks(self):
        segments = AnthropicProvider.parse_content_blocks([SimpleNamespace(type="thinking")])

        assert segments == []


class TestGenerateResponse:

    @pytest.mark.asyncio
    async def test_request_shape(self):
        client = fake_client([text_block("Hello")])
        provider = AnthropicProvider(api_key="sk-test", model="claude-test", client=client)

        response = await provider.generate_response(
            messages=[
                LLMMessage(role="system", content="You are helpful"),
                LLMMessage(role="user", content="Hi"),
            ],
            max_tokens=500,
            temperature=0.2,
            tools=[TVL_TOOL],
        )

        params = client.messages.create.call_args.kwargs
        assert params["system"] == "You are helpful"
        assert params["messages"] == [{"role": "user", "content": "Hi"}]
        assert params["max_tokens"] == 500
        assert params["temperature"] == 0.2
        assert params["tool_choice"] == {"type": "auto"}
        assert params["tools"][0]["input_schema"]["required"] == []

        assert response.content == "Hello"
        assert response.tokens_used == 42
        assert response.tool_calls == []

    @pytest.mark.asyncio
    async def test_no_tools_means_no_tool_choice(self):
        client = fake_client([text_block("Hello")])
        provider = AnthropicProvider(api_key="sk-test", model="claude-test", client=client)

        await provider.generate_response(messages=[LLMMessage(role="user", content="Hi")])

        params = client.messages.create.call_args.kwargs
        assert "tools" not in params
        assert "tool_choice" not in params
        assert params["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_provider_errors(self):
        client = fake_client([])
        client.messages.create.side_effect = RuntimeError("connection reset")
        provider = AnthropicProvider(api_key="sk-test", model="claude-test", client=client)

        with pytest.raises(LLMProviderError, match="connection reset"):
            await provider.generate_response(messages=[LLMMessage(role="user", content="Hi")])

    def test_model_is_required(self):
        with pytest.raises(ValueError):
            AnthropicProvider(api_key="sk-test", model="")


class TestProviderFactory:

    def test_alias_resolution(self):
        assert canonical_provider_name("Claude") == "anthropic"
        assert canonical_provider_name("anthropic") == "anthropic"

    def test_builds_anthropic_provider(self):
        config = Settings(anthropic_api_key="sk-test", llm_model="claude-test")

        provider = get_llm_provider(config, provider_name="claude")

        assert isinstance(provider, AnthropicProvider)
        assert provider.model == "claude-test"

    def test_unknown_provider(self):
        config = Settings(anthropic_api_key="sk-test")

        with pytest.raises(ValueError, match="Unsupported provider"):
            get_llm_provider(config, provider_name="mystery")

    def test_missing_key(self):
        config = Settings(anthropic_api_key="")

        with pytest.raises(ValueError, match="No API key"):
            get_llm_provider(config)
