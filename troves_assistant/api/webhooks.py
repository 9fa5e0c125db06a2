"""
WhatsApp Cloud API webhook.

GET performs the subscription handshake; POST delivers messages, which are
answered in the background so Meta receives its 200 immediately.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from ..dependencies import ServiceContainer, get_services
from ..messaging.base import PlatformName
from ..messaging.whatsapp_bot import WHATSAPP_OBJECT, WhatsAppPlatform
from ..types.envelope import error_envelope

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhook")


def _whatsapp(services: ServiceContainer) -> Optional[WhatsAppPlatform]:
    platform = services.messaging.get_platform(PlatformName.WHATSAPP)
    return platform if isinstance(platform, WhatsAppPlatform) else None


@router.get("/whatsapp")
async def verify_whatsapp_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    services: ServiceContainer = Depends(get_services),
):
    """Echo ``hub.challenge`` when the mode and verify token match."""
    whatsapp = _whatsapp(services)
    echoed = whatsapp.verify_webhook(mode, token, challenge) if whatsapp else None
    if echoed is None:
        logger.warning("WhatsApp webhook verification failed")
        return PlainTextResponse("Forbidden", status_code=403)

    logger.info("WhatsApp webhook verified")
    return PlainTextResponse(echoed, status_code=200)


@router.post("/whatsapp")
async def receive_whatsapp_webhook(
    payload: Dict[str, Any],
    background_tasks: BackgroundTasks,
    services: ServiceContainer = Depends(get_services),
):
    if payload.get("object") != WHATSAPP_OBJECT:
        return JSONResponse(status_code=404, content=error_envelope("Unsupported webhook object"))

    whatsapp = _whatsapp(services)
    if whatsapp is None:
        logger.warning("WhatsApp webhook received but WhatsApp is not configured")
        return JSONResponse(status_code=404, content=error_envelope("WhatsApp is not configured"))

    background_tasks.add_task(whatsapp.process_webhook, payload)
    return PlainTextResponse("EVENT_RECEIVED", status_code=200)
