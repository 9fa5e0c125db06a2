"""
AI query processor.

One query = one LLM call. The model's response segments are walked in order:
text is appended to the reply (and scanned for image URLs), tool invocations
are executed and their user-facing message appended in place.
"""

import logging
import re
from typing import List, Optional

from pydantic import BaseModel

from .history import ConversationStore, ConversationTurn
from .prompts import APOLOGY_REPLY, FALLBACK_REPLY, HELP_MESSAGE, SYSTEM_PROMPT, WELCOME_MESSAGE
from .tools import ToolExecutor, ToolInvocationRecord
from ...providers.llm.base import LLMMessage, LLMProvider, LLMProviderError, TextSegment, ToolUseSegment

logger = logging.getLogger(__name__)

IMAGE_URL_PATTERN = re.compile(
    r"https://[^\s\]]+\.(?:png|jpg|jpeg|gif|webp)(?:\?[^\s\]]*)?",
    re.IGNORECASE,
)


def extract_image_urls(text: str) -> List[str]:
    """Image URLs in ``text``, de-duplicated, in order of first appearance."""
    return list(dict.fromkeys(match.group(0) for match in IMAGE_URL_PATTERN.finditer(text or "")))


class QueryResult(BaseModel):
    message: str
    image_urls: Optional[List[str]] = None
    tool_results: Optional[List[ToolInvocationRecord]] = None


class AIQueryProcessor:
    """Answers free-text questions with the LLM and the Troves tools."""

    def __init__(
        self,
        llm: Optional[LLMProvider],
        executor: ToolExecutor,
        history: Optional[ConversationStore] = None,
        history_window: int = 6,
        max_tokens: int = 1000,
        temperature: Optional[float] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.llm = llm
        self.executor = executor
        self.history = history or ConversationStore()
        self.history_window = history_window
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.system_prompt = system_prompt

    def _build_messages(self, query: str, user_id: Optional[str]) -> List[LLMMessage]:
        messages = [LLMMessage(role="system", content=self.system_prompt)]

        recent: List[ConversationTurn] = []
        if user_id:
            recent = self.history.window(user_id, self.history_window)
        # The conversation sent to the model must open with a user turn
        while recent and recent[0].role != "user":
            recent = recent[1:]
        messages.extend(LLMMessage(role=turn.role, content=turn.content) for turn in recent)

        # The query was normally just appended to history; only add it when it is not already last
        if len(messages) == 1 or messages[-1].content != query:
            messages.append(LLMMessage(role="user", content=query))
        return messages

    async def process_query(self, query: str, user_id: Optional[str] = None) -> QueryResult:
        """Answer ``query``. Never raises; failures become an apology reply."""
        try:
            if self.llm is None:
                raise LLMProviderError("No LLM provider configured")

            if user_id:
                self.history.append(user_id, "user", query)

            response = await self.llm.generate_response(
                messages=self._build_messages(query, user_id),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                tools=self.executor.registry.get_definitions(),
            )

            reply = ""
            image_urls: List[str] = []
            tool_results: List[ToolInvocationRecord] = []

            for segment in response.segments:
                if isinstance(segment, TextSegment):
                    reply += segment.text
                    image_urls.extend(extract_image_urls(segment.text))
                elif isinstance(segment, ToolUseSegment):
                    outcome = await self.executor.execute(segment.call)
                    tool_results.append(ToolInvocationRecord(tool_name=segment.call.name, result=outcome))
                    reply += outcome.message if outcome.success else f"Error: {outcome.message}"

            if not reply.strip():
                reply = FALLBACK_REPLY

            if user_id:
                self.history.append(user_id, "assistant", reply)

            image_urls = list(dict.fromkeys(image_urls))
            return QueryResult(
                message=reply,
                image_urls=image_urls or None,
                tool_results=tool_results or None,
            )

        except Exception as e:
            logger.error(f"Error processing AI query: {e}", exc_info=True)
            return QueryResult(message=APOLOGY_REPLY)

    def get_help_message(self) -> str:
        return HELP_MESSAGE

    def get_welcome_message(self) -> str:
        return WELCOME_MESSAGE

    def clear_conversation(self, user_id: str) -> None:
        self.history.clear(user_id)

    def get_conversation_history(self, user_id: str) -> List[ConversationTurn]:
        return self.history.get(user_id)

    def has_conversation_history(self, user_id: str) -> bool:
        return self.history.has(user_id)
