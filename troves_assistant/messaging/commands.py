"""
Chat command handling shared by the Telegram and WhatsApp adapters.

Supported commands: ``/start``, ``/help``, ``/status`` and
``/balance <address> [vault]``. Any other text is forwarded to the AI query
processor. Texts are written with ``**bold**`` markers and restyled for
platforms that use single asterisks.
"""

import logging
from typing import List, Optional

from .base import BotResponse, IncomingMessage
from ..core.agent.processor import AIQueryProcessor
from ..core.formatting import format_number, format_supply_percentage
from ..core.vaults import resolve_vault_info
from ..logging_config import conversation_context
from ..providers.starknet import StarknetContractReader
from ..providers.strategies import StrategyCatalogProvider

logger = logging.getLogger(__name__)

BALANCE_USAGE = "Please provide a valid Starknet address.\nUsage: /balance <address> [vault_type]"
UNKNOWN_COMMAND = "❓ Unknown command. Use /help to see available commands."
COMMAND_ERROR = "❌ Sorry, I encountered an error processing your command. Please try again."
MESSAGE_ERROR = "❌ Sorry, I encountered an error processing your message. Please try again."
STATUS_ERROR = "❌ Error fetching contract status. Please try again."
BALANCE_ERROR = "❌ Error fetching balance. Please check the address and try again."

PROGRESS_NOTICES = {
    "/status": "🔄 Fetching contract status for all vaults...",
    "/balance": "🔄 Fetching balance...",
}


def split_command(text: str) -> tuple[str, List[str]]:
    """``"/balance@TrovesBot 0xabc vesuEth"`` -> ``("/balance", ["0xabc", "vesuEth"])``."""
    parts = text.strip().split()
    if not parts:
        return "", []
    command = parts[0].split("@", 1)[0].lower()
    return command, parts[1:]


class ChatCommandHandler:
    """Turns an incoming chat message into a ``BotResponse``."""

    def __init__(
        self,
        processor: AIQueryProcessor,
        contracts: StarknetContractReader,
        catalog: Optional[StrategyCatalogProvider] = None,
        environment: str = "development",
        bold: str = "**",
    ):
        self.processor = processor
        self.contracts = contracts
        self.catalog = catalog
        self.environment = environment
        self.bold = bold

    def restyle(self, text: str) -> str:
        if self.bold == "**":
            return text
        return text.replace("**", self.bold)

    def progress_notice(self, text: str) -> Optional[str]:
        command, args = split_command(text)
        if command == "/balance" and not args:
            return None
        return PROGRESS_NOTICES.get(command)

    @property
    def network_name(self) -> str:
        return "Sepolia Testnet" if self.environment.lower() == "development" else "Mainnet"

    async def handle(self, message: IncomingMessage) -> BotResponse:
        with conversation_context(message.platform.value, message.conversation_key):
            if message.is_command:
                logger.info(f"Handling command {split_command(message.text)[0]}")
                return await self.handle_command(message.text)
            return await self.handle_query(message)

    async def handle_query(self, message: IncomingMessage) -> BotResponse:
        user_id = message.conversation_key
        try:
            result = await self.processor.process_query(message.text, user_id)
        except Exception as e:
            logger.error(f"Error processing message from {user_id}: {e}")
            return BotResponse(message=MESSAGE_ERROR)
        return BotResponse(message=self.restyle(result.message), image_urls=result.image_urls or [])

    async def handle_command(self, text: str) -> BotResponse:
        command, args = split_command(text)
        try:
            if command == "/start":
                reply = self.processor.get_welcome_message()
            elif command == "/help":
                reply = self.processor.get_help_message()
            elif command == "/status":
                reply = await self.status_message()
            elif command == "/balance":
                reply = await self.balance_message(args)
            else:
                reply = UNKNOWN_COMMAND
        except Exception as e:
            logger.error(f"Error handling command {command}: {e}")
            reply = COMMAND_ERROR
        return BotResponse(message=self.restyle(reply))

    async def status_message(self) -> str:
        try:
            vaults = self.contracts.known_vaults()
        except Exception as e:
            logger.error(f"Error listing vaults: {e}")
            return STATUS_ERROR

        text = "📊 **Troves.fi Contract Status**\n\n"
        if not vaults:
            text += "No vaults configured.\n\n"

        for vault in vaults:
            try:
                data = await self.contracts.get_contract_data(vault)
                total_supply = await self.contracts.get_total_supply(vault)
                info = await resolve_vault_info(vault, self.catalog)
            except Exception as e:
                logger.error(f"Error getting data for {vault}: {e}")
                text += f"❌ Error fetching data for {vault}\n\n"
                continue

            text += f"🏦 **{info.name}**\n"
            text += f"💰 TVL: {format_number(data.total_assets)}\n"
            text += f"🔄 Supply: {format_number(total_supply)}\n"
            text += f"⚙️ Fee: {data.settings.fee_bps} BPS\n"
            text += f"🏊 Pools: {len(data.allowed_pools)}\n\n"

        text += f"🌐 **Network:** {self.network_name}"
        return text

    async def balance_message(self, args: List[str]) -> str:
        if not args:
            return BALANCE_USAGE

        address = args[0]
        vault = args[1] if len(args) > 1 else None

        if vault:
            try:
                balance = await self.contracts.get_user_balance(address, vault)
                total_supply = await self.contracts.get_total_supply(vault)
                total_assets = await self.contracts.get_total_assets(vault)
                info = await resolve_vault_info(vault, self.catalog)
            except Exception as e:
                logger.error(f"Error getting balance for {vault}: {e}")
                return BALANCE_ERROR

            return (
                f"💰 **Balance Information - {info.name}**\n\n"
                f"👤 **Address:** `{address}`\n"
                f"💎 **Balance:** {format_number(balance)} tokens\n"
                f"📊 **% of Total Supply:** {format_supply_percentage(balance, total_supply)}%\n\n"
                f"📈 **Portfolio Value:**\n"
                f"• Total Assets in Vault: {format_number(total_assets)}\n"
                f"• Your Share: {format_number(balance)} tokens"
            )

        text = f"💰 **Balance Information**\n\n👤 **Address:** `{address}`\n\n"
        found = False
        for known in self.contracts.known_vaults():
            try:
                balance = await self.contracts.get_user_balance(address, known)
            except Exception as e:
                logger.error(f"Error getting balance for {known}: {e}")
                continue
            if int(balance) <= 0:
                continue
            info = await resolve_vault_info(known, self.catalog)
            text += f"🏦 **{info.name}**\n💎 Balance: {format_number(balance)} tokens\n\n"
            found = True

        if not found:
            text += "No balances found in the known vaults."
        return text.rstrip()
