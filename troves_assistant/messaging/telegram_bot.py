"""Telegram adapter (long polling via python-telegram-bot)."""

from typing import Optional

from telegram import LinkPreviewOptions, Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest, TelegramError
from telegram.ext import Application, ApplicationBuilder, ContextTypes, MessageHandler, filters

from .base import ChatId, IncomingMessage, MessagingPlatform, PlatformName
from .commands import MESSAGE_ERROR, ChatCommandHandler
from ..exceptions import MessagingError


class TelegramPlatform(MessagingPlatform):
    platform = PlatformName.TELEGRAM

    def __init__(
        self,
        token: str,
        commands: ChatCommandHandler,
        application: Optional[Application] = None,
    ):
        super().__init__()
        self.commands = commands
        self.application = application or ApplicationBuilder().token(token).build()
        self.application.add_handler(MessageHandler(filters.TEXT, self._on_message))
        self.application.add_error_handler(self._on_error)

    async def start(self) -> None:
        if self._running:
            self.logger.info("Telegram bot is already running")
            return

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(drop_pending_updates=True)
        self._running = True
        self.logger.info("Telegram bot started, polling for updates")

    async def stop(self) -> None:
        if not self._running:
            self.logger.info("Telegram bot is not running")
            return

        if self.application.updater.running:
            await self.application.updater.stop()
        await self.application.stop()
        await self.application.shutdown()
        self._running = False
        self.logger.info("Telegram bot stopped")

    async def send_message(self, chat_id: ChatId, message: str) -> None:
        bot = self.application.bot
        try:
            await bot.send_message(
                chat_id=chat_id,
                text=message,
                parse_mode=ParseMode.MARKDOWN,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
        except BadRequest as e:
            # Model output is not always valid Telegram Markdown
            self.logger.warning(f"Markdown rejected for chat {chat_id}, resending as plain text: {e}")
            try:
                await bot.send_message(chat_id=chat_id, text=message)
            except TelegramError as retry_error:
                raise MessagingError(f"Failed to send Telegram message: {retry_error}") from retry_error
        except TelegramError as e:
            raise MessagingError(f"Failed to send Telegram message: {e}") from e

    async def send_photo(self, chat_id: ChatId, photo_url: str, caption: Optional[str] = None) -> None:
        try:
            await self.application.bot.send_photo(
                chat_id=chat_id,
                photo=photo_url,
                caption=caption,
                parse_mode=ParseMode.MARKDOWN,
            )
        except TelegramError as e:
            self.logger.error(f"Error sending photo: {e}")
            await self.send_message(chat_id, f"{caption or '📸 Image'}: {photo_url}")

    async def _on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or not message.text:
            return

        chat_id = message.chat_id
        sender = update.effective_user.id if update.effective_user else "anonymous"
        incoming = IncomingMessage(
            id=str(message.message_id),
            text=message.text,
            sender=str(sender),
            chat_id=str(chat_id),
            platform=self.platform,
        )

        try:
            notice = self.commands.progress_notice(incoming.text) if incoming.is_command else None
            if notice:
                await self.send_message(chat_id, notice)
            elif not incoming.is_command:
                await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

            response = await self.commands.handle(incoming)
            await self.deliver(chat_id, response)
        except Exception as e:
            self.logger.error(f"Error processing Telegram message: {e}")
            try:
                await self.send_message(chat_id, MESSAGE_ERROR)
            except MessagingError as send_error:
                self.logger.error(f"Could not deliver error reply: {send_error}")

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        self.logger.error(f"Telegram bot error: {context.error}")
