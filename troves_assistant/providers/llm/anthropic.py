from typing import List, Dict, Any, Optional
import time

import anthropic
from anthropic import AsyncAnthropic

from .base import (
    LLMProvider, LLMMessage, LLMResponse, ResponseSegment, TextSegment, ToolUseSegment,
    LLMProviderError, LLMProviderAPIError, LLMProviderAuthError, LLMProviderRateLimitError,
    ToolDefinition, ToolCall,
)


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider with native tool calling"""

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        if not model:
            raise ValueError("AnthropicProvider requires a model to be specified")

        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, client: Optional[Any] = None, **kwargs) -> None:
        """Initialize the Anthropic client"""
        if client is not None:
            self.client = client
            return
        try:
            self.client = AsyncAnthropic(api_key=self.api_key)
        except Exception as e:
            self.logger.error(f"Failed to initialize Anthropic client: {e}")
            raise LLMProviderAuthError(f"Failed to initialize Anthropic client: {e}")

    @staticmethod
    def parse_content_blocks(blocks: Any) -> List[ResponseSegment]:
        """Turn Anthropic content blocks into ordered segments."""
        segments: List[ResponseSegment] = []
        for block in blocks or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                segments.append(TextSegment(text=block.text))
            elif block_type == "tool_use":
                segments.append(ToolUseSegment(call=ToolCall(
                    id=block.id,
                    name=block.name,
                    arguments=dict(getattr(block, "input", None) or {}),
                )))
        return segments

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a response from Claude with optional tool calling"""
        start_time = time.time()

        try:
            system_message = None
            anthropic_messages = []
            for msg in messages:
                if msg.role == "system":
                    system_message = msg.content
                else:
                    anthropic_messages.append({"role": msg.role, "content": msg.content})

            request_params: Dict[str, Any] = {
                "model": self.model,
                "messages": anthropic_messages,
                "max_tokens": max_tokens or 1000,
            }

            if system_message:
                request_params["system"] = system_message

            if temperature is not None:
                request_params["temperature"] = temperature

            if tools:
                request_params["tools"] = [t.to_anthropic_format() for t in tools]
                request_params["tool_choice"] = {"type": "auto"}

            request_params.update(kwargs)

            response = await self.client.messages.create(**request_params)

            usage = getattr(response, "usage", None)
            return LLMResponse(
                segments=self.parse_content_blocks(response.content),
                tokens_used=getattr(usage, "output_tokens", None),
                model=self.model,
                finish_reason=getattr(response, "stop_reason", None),
                response_time_ms=self._measure_time(start_time),
            )

        except anthropic.AuthenticationError as e:
            await self._handle_error(LLMProviderAuthError(f"Authentication failed: {e}"), "generate_response")
        except anthropic.RateLimitError as e:
            await self._handle_error(LLMProviderRateLimitError(f"Rate limit exceeded: {e}"), "generate_response")
        except anthropic.APIError as e:
            await self._handle_error(LLMProviderAPIError(f"API error: {e}"), "generate_response")
        except Exception as e:
            await self._handle_error(LLMProviderError(f"Unexpected error: {e}"), "generate_response")
