"""Orchestrates the configured chat platforms."""

import logging
from typing import Any, Dict, List, Optional, Union

from .base import ChatId, MessagingPlatform, PlatformName
from .commands import ChatCommandHandler
from .telegram_bot import TelegramPlatform
from .whatsapp_bot import WhatsAppPlatform
from ..config import Settings
from ..core.agent.processor import AIQueryProcessor
from ..providers.starknet import StarknetContractReader
from ..providers.strategies import StrategyCatalogProvider

logger = logging.getLogger(__name__)


class MessagingService:
    """Starts, stops and routes messages to the chat platform adapters."""

    def __init__(self, platforms: Optional[List[MessagingPlatform]] = None):
        self._platforms: Dict[PlatformName, MessagingPlatform] = {}
        for platform in platforms or []:
            self._platforms[platform.platform] = platform
        self._running = False

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        processor: AIQueryProcessor,
        contracts: StarknetContractReader,
        catalog: StrategyCatalogProvider,
    ) -> "MessagingService":
        platforms: List[MessagingPlatform] = []

        if config.telegram_enabled:
            commands = ChatCommandHandler(processor, contracts, catalog, config.environment, bold="*")
            platforms.append(TelegramPlatform(config.telegram_bot_token, commands))
            logger.info("Telegram bot initialized")
        else:
            logger.info("Telegram bot token not provided, skipping Telegram")

        if config.whatsapp_enabled:
            commands = ChatCommandHandler(processor, contracts, catalog, config.environment, bold="*")
            platforms.append(
                WhatsAppPlatform(
                    access_token=config.whatsapp_access_token,
                    phone_number_id=config.whatsapp_phone_number_id,
                    commands=commands,
                    verify_token=config.whatsapp_verify_token,
                    api_version=config.whatsapp_api_version,
                    base_url=config.whatsapp_base_url,
                )
            )
            logger.info("WhatsApp Cloud API bot initialized")
        else:
            logger.info("WhatsApp credentials not provided, skipping WhatsApp")

        return cls(platforms)

    @property
    def is_running(self) -> bool:
        return self._running

    @staticmethod
    def _key(name: Union[str, PlatformName]) -> Optional[PlatformName]:
        try:
            return PlatformName(name)
        except ValueError:
            return None

    async def start_all(self) -> None:
        if self._running:
            logger.info("Messaging service is already running")
            return

        for name, platform in self._platforms.items():
            try:
                await platform.start()
                logger.info(f"{name.value} bot started")
            except Exception as e:
                logger.error(f"Failed to start {name.value} bot: {e}")

        self._running = True
        logger.info(
            f"Messaging service started (available: {self.get_available_platforms()}, "
            f"running: {self.get_running_platforms()})"
        )

    async def stop_all(self) -> None:
        if not self._running:
            logger.info("Messaging service is not running")
            return

        for name, platform in self._platforms.items():
            try:
                await platform.stop()
                logger.info(f"{name.value} bot stopped")
            except Exception as e:
                logger.error(f"Error stopping {name.value} bot: {e}")

        self._running = False
        logger.info("Messaging service stopped")

    def get_platform(self, name: Union[str, PlatformName]) -> Optional[MessagingPlatform]:
        key = self._key(name)
        return self._platforms.get(key) if key else None

    def get_available_platforms(self) -> List[str]:
        return [name.value for name in self._platforms]

    def get_running_platforms(self) -> List[str]:
        return [name.value for name, platform in self._platforms.items() if platform.is_running]

    def _running_platform(self, name: Union[str, PlatformName]) -> Optional[MessagingPlatform]:
        platform = self.get_platform(name)
        if platform is None:
            logger.error(f"Platform {name} not found")
            return None
        if not platform.is_running:
            logger.error(f"Platform {name} is not running")
            return None
        return platform

    async def send_message_to_platform(self, name: Union[str, PlatformName], chat_id: ChatId, message: str) -> bool:
        platform = self._running_platform(name)
        if platform is None:
            return False
        try:
            await platform.send_message(chat_id, message)
            return True
        except Exception as e:
            logger.error(f"Error sending message to {name}: {e}")
            return False

    async def send_photo_to_platform(
        self,
        name: Union[str, PlatformName],
        chat_id: ChatId,
        photo_url: str,
        caption: Optional[str] = None,
    ) -> bool:
        platform = self._running_platform(name)
        if platform is None:
            return False
        try:
            await platform.send_photo(chat_id, photo_url, caption)
            return True
        except Exception as e:
            logger.error(f"Error sending photo to {name}: {e}")
            return False

    def get_status(self) -> Dict[str, Any]:
        return {
            "service_running": self._running,
            "platforms": [
                {"name": name.value, "running": platform.is_running, "platform_name": platform.platform_name}
                for name, platform in self._platforms.items()
            ],
        }

    async def restart_platform(self, name: Union[str, PlatformName]) -> bool:
        platform = self.get_platform(name)
        if platform is None:
            logger.error(f"Platform {name} not found")
            return False
        try:
            await platform.stop()
            await platform.start()
            logger.info(f"{platform.platform_name} bot restarted")
            return True
        except Exception as e:
            logger.error(f"Error restarting {platform.platform_name} bot: {e}")
            return False
