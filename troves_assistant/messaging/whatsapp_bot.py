"""
WhatsApp Cloud API adapter.

Inbound messages arrive through the ``/webhook/whatsapp`` route; replies go out
through the Graph API ``/{phone_number_id}/messages`` endpoint.
"""

import hmac
from typing import Any, Dict, Iterator, Optional

import httpx

from .base import VISUAL_GUIDE_CAPTION, ChatId, IncomingMessage, MessagingPlatform, PlatformName
from .commands import MESSAGE_ERROR, ChatCommandHandler
from ..exceptions import MessagingError

WHATSAPP_OBJECT = "whatsapp_business_account"


class WhatsAppPlatform(MessagingPlatform):
    platform = PlatformName.WHATSAPP
    timeout_s = 30

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        commands: ChatCommandHandler,
        verify_token: str = "",
        api_version: str = "v18.0",
        base_url: str = "https://graph.facebook.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.access_token = access_token
        self.verify_token = verify_token
        self.commands = commands
        self.api_url = f"{base_url.rstrip('/')}/{api_version}/{phone_number_id}"
        self._transport = transport

    async def start(self) -> None:
        if self._running:
            self.logger.info("WhatsApp bot is already running")
            return
        self._running = True
        self.logger.info("WhatsApp Cloud API bot started, waiting for webhook messages")

    async def stop(self) -> None:
        if not self._running:
            self.logger.info("WhatsApp bot is not running")
            return
        self._running = False
        self.logger.info("WhatsApp bot stopped")

    async def _post_message(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            resp = await client.post(f"{self.api_url}/messages", json=payload, headers=headers)
            resp.raise_for_status()
            return resp.json()

    async def send_message(self, chat_id: ChatId, message: str) -> None:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": str(chat_id),
            "type": "text",
            "text": {"preview_url": True, "body": message},
        }
        try:
            await self._post_message(payload)
        except httpx.HTTPError as e:
            self.logger.error(f"Error sending WhatsApp message: {e}")
            raise MessagingError(f"Failed to send WhatsApp message: {e}") from e

    async def send_photo(self, chat_id: ChatId, photo_url: str, caption: Optional[str] = None) -> None:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": str(chat_id),
            "type": "image",
            "image": {"link": photo_url, "caption": caption or VISUAL_GUIDE_CAPTION},
        }
        try:
            await self._post_message(payload)
        except httpx.HTTPError as e:
            self.logger.error(f"Error sending WhatsApp photo: {e}")
            await self.send_message(chat_id, f"{caption or '📸 Image'}: {photo_url}")

    def verify_webhook(self, mode: Optional[str], token: Optional[str], challenge: Optional[str]) -> Optional[str]:
        """Return the challenge to echo when the subscription handshake is valid."""
        if mode != "subscribe" or not token or not self.verify_token:
            return None
        if not hmac.compare_digest(token, self.verify_token):
            return None
        return challenge or ""

    @staticmethod
    def iter_messages(payload: Dict[str, Any]) -> Iterator[IncomingMessage]:
        """Text messages contained in a webhook delivery."""
        for entry in payload.get("entry") or []:
            for change in entry.get("changes") or []:
                value = change.get("value") or {}
                for message in value.get("messages") or []:
                    text = (message.get("text") or {}).get("body") or ""
                    sender = message.get("from")
                    if not text or not sender:
                        continue
                    yield IncomingMessage(
                        id=str(message.get("id", "")),
                        text=text,
                        sender=str(sender),
                        chat_id=str(sender),
                        platform=PlatformName.WHATSAPP,
                    )

    async def process_webhook(self, payload: Dict[str, Any]) -> int:
        """Answer every text message in a webhook delivery. Returns how many were handled."""
        handled = 0
        for incoming in self.iter_messages(payload):
            try:
                response = await self.commands.handle(incoming)
                await self.deliver(incoming.chat_id, response)
            except Exception as e:
                self.logger.error(f"Error processing WhatsApp message {incoming.id}: {e}")
                try:
                    await self.send_message(incoming.chat_id, MESSAGE_ERROR)
                except MessagingError as send_error:
                    self.logger.error(f"Could not deliver error reply: {send_error}")
            handled += 1
        return handled
