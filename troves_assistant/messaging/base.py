import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

ChatId = Union[int, str]

VISUAL_GUIDE_CAPTION = "📸 Visual Guide"


class PlatformName(str, Enum):
    TELEGRAM = "telegram"
    WHATSAPP = "whatsapp"


class IncomingMessage(BaseModel):
    """A text message received from any chat platform."""
    id: str
    text: str
    sender: str = Field(description="Platform user id, used as the conversation key")
    chat_id: str
    platform: PlatformName
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_command(self) -> bool:
        return self.text.lstrip().startswith("/")

    @property
    def conversation_key(self) -> str:
        """Conversation history key, e.g. ``"telegram:42"``."""
        return f"{self.platform.value}:{self.sender}"


class BotResponse(BaseModel):
    message: str
    image_urls: List[str] = Field(default_factory=list)


class MessagingPlatform(ABC):
    """Capabilities shared by every chat platform adapter."""

    platform: PlatformName

    def __init__(self) -> None:
        self._running = False
        self.logger = logging.getLogger(f"{__name__}.{self.platform.value}")

    @property
    def platform_name(self) -> str:
        return self.platform.value

    @property
    def is_running(self) -> bool:
        return self._running

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    async def send_message(self, chat_id: ChatId, message: str) -> None:
        """Send a text message. Raises ``MessagingError`` on failure."""
        pass

    @abstractmethod
    async def send_photo(self, chat_id: ChatId, photo_url: str, caption: Optional[str] = None) -> None:
        """Send an image by URL, falling back to a text link when the upload fails."""
        pass

    async def deliver(self, chat_id: ChatId, response: BotResponse) -> None:
        """Send a response followed by each of its images."""
        await self.send_message(chat_id, response.message)
        for image_url in response.image_urls:
            await self.send_photo(chat_id, image_url, VISUAL_GUIDE_CAPTION)
