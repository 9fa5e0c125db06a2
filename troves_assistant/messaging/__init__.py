from .base import BotResponse, IncomingMessage, MessagingPlatform, PlatformName
from .commands import ChatCommandHandler
from .service import MessagingService
from .telegram_bot import TelegramPlatform
from .whatsapp_bot import WHATSAPP_OBJECT, WhatsAppPlatform

__all__ = [
    "BotResponse",
    "ChatCommandHandler",
    "IncomingMessage",
    "MessagingPlatform",
    "MessagingService",
    "PlatformName",
    "TelegramPlatform",
    "WHATSAPP_OBJECT",
    "WhatsAppPlatform",
]
