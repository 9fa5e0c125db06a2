"""
WhatsApp Cloud API adapter tests.

Graph API calls are captured by an ``httpx.MockTransport``.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from troves_assistant.exceptions import MessagingError
from troves_assistant.messaging.base import BotResponse, PlatformName
from troves_assistant.messaging.commands import MESSAGE_ERROR
from troves_assistant.messaging.whatsapp_bot import WHATSAPP_OBJECT, WhatsAppPlatform


class GraphApi:
    """Records posted messages; message types listed in ``failing`` get a 400."""

    def __init__(self):
        self.requests = []
        self.failing = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request, body))
        if body["type"] in self.failing:
            return httpx.Response(400, json={"error": {"message": "bad media"}})
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    @property
    def bodies(self):
        return [body for _, body in self.requests]


def webhook_payload(*texts, sender="15550001111"):
    return {
        "object": WHATSAPP_OBJECT,
        "entry": [{
            "id": "waba",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "messages": [
                        {"from": sender, "id": f"wamid.{i}", "type": "text", "text": {"body": text}}
                        for i, text in enumerate(texts)
                    ],
                },
            }],
        }],
    }


@pytest.fixture
def graph():
    return GraphApi()


@pytest.fixture
def commands():
    commands = MagicMock()
    commands.handle = AsyncMock(return_value=BotResponse(message="*Hi*"))
    return commands


@pytest.fixture
def whatsapp(graph, commands):
    return WhatsAppPlatform(
        access_token="EAAB-token",
        phone_number_id="1234567890",
        commands=commands,
        verify_token="verify-me",
        base_url="https://graph.test",
        transport=httpx.MockTransport(graph),
    )


class TestOutbound:

    @pytest.mark.asyncio
    async def test_send_message_payload(self, whatsapp, graph):
        await whatsapp.send_message("15550001111", "hello")

        request, body = graph.requests[0]
        assert str(request.url) == "https://graph.test/v18.0/1234567890/messages"
        assert request.headers["Authorization"] == "Bearer EAAB-token"
        assert body["to"] == "15550001111"
        assert body["text"] == {"preview_url": True, "body": "hello"}

    @pytest.mark.asyncio
    async def test_send_message_failure_raises(self, whatsapp, graph):
        graph.failing.add("text")

        with pytest.raises(MessagingError):
            await whatsapp.send_message("15550001111", "hello")

    @pytest.mark.asyncio
    async def test_photo_falls_back_to_link(self, whatsapp, graph):
        graph.failing.add("image")

        await whatsapp.send_photo("15550001111", "https://docs.troves.fi/a.png", "📸 Visual Guide")

        assert [b["type"] for b in graph.bodies] == ["image", "text"]
        assert graph.bodies[1]["text"]["body"] == "📸 Visual Guide: https://docs.troves.fi/a.png"

    @pytest.mark.asyncio
    async def test_deliver_sends_text_then_images(self, whatsapp, graph):
        response = BotResponse(message="guide", image_urls=["https://a.test/1.png", "https://a.test/2.png"])

        await whatsapp.deliver("15550001111", response)

        assert [b["type"] for b in graph.bodies] == ["text", "image", "image"]
        assert graph.bodies[1]["image"] == {"link": "https://a.test/1.png", "caption": "📸 Visual Guide"}


class TestWebhook:

    def test_verify_webhook(self, whatsapp):
        assert whatsapp.verify_webhook("subscribe", "verify-me", "1158201444") == "1158201444"
        assert whatsapp.verify_webhook("subscribe", "wrong", "1158201444") is None
        assert whatsapp.verify_webhook("unsubscribe", "verify-me", "1158201444") is None
        assert whatsapp.verify_webhook("subscribe", None, "1158201444") is None

    def test_verify_requires_configured_token(self, commands):
        whatsapp = WhatsAppPlatform("token", "123", commands, verify_token="")

        assert whatsapp.verify_webhook("subscribe", "", "42") is None

    def test_iter_messages_skips_non_text(self):
        payload = webhook_payload("hello", "/status")
        payload["entry"][0]["changes"][0]["value"]["messages"].append(
            {"from": "15550001111", "id": "wamid.img", "type": "image", "image": {"id": "media"}}
        )

        messages = list(WhatsAppPlatform.iter_messages(payload))

        assert [m.text for m in messages] == ["hello", "/status"]
        assert messages[0].platform is PlatformName.WHATSAPP
        assert messages[0].chat_id == "15550001111"
        assert messages[1].is_command

    @pytest.mark.asyncio
    async def test_process_webhook_answers_each_message(self, whatsapp, graph, commands):
        handled = await whatsapp.process_webhook(webhook_payload("hello", "/help"))

        assert handled == 2
        assert commands.handle.await_count == 2
        assert [b["text"]["body"] for b in graph.bodies] == ["*Hi*", "*Hi*"]

    @pytest.mark.asyncio
    async def test_process_webhook_reports_handler_errors(self, whatsapp, graph, commands):
        commands.handle.side_effect = RuntimeError("boom")

        await whatsapp.process_webhook(webhook_payload("hello"))

        assert graph.bodies[0]["text"]["body"] == MESSAGE_ERROR

    @pytest.mark.asyncio
    async def test_start_stop(self, whatsapp):
        await whatsapp.start()
        assert whatsapp.is_running

        await whatsapp.stop()
        assert not whatsapp.is_running
