"""
LINE webhook router.

Endpoint:
  POST /webhook — one webhook delivery (auth: X-Line-Signature)

Events in a delivery are forwarded concurrently and independently. The
response always carries one result per event:

  {"status": "success", "results": [{"ok": true}, {"ok": false, "error": "..."}]}

so a failing event never fails its siblings or the request.
"""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from relay.clients import get_line_client, get_mailer
from relay.config import Settings, get_settings
from relay.models.line_event import WebhookEvent, WebhookPayload
from relay.services.chat_to_email import forward_event
from relay.services.line_client import LineClient, verify_signature
from relay.services.mailer import SendGridMailer

logger = logging.getLogger(__name__)

router = APIRouter()


async def _verified_body(
    request: Request,
    x_line_signature: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> bytes:
    """
    Return the raw body once its X-Line-Signature has been checked.

    Raises 401 when the header is missing or does not match, before any
    event is parsed.
    """
    if not settings.channel_secret:
        logger.warning("CHANNEL_SECRET is not configured — all webhook requests will be rejected")

    body = await request.body()
    if not x_line_signature:
        raise HTTPException(status_code=401, detail="No signature")
    if not verify_signature(body, x_line_signature, settings.channel_secret):
        raise HTTPException(status_code=401, detail="Signature validation failed")
    return body


async def _dispatch(
    event: WebhookEvent,
    line: LineClient,
    mailer: SendGridMailer,
    settings: Settings,
) -> dict:
    try:
        await forward_event(event, line, mailer, settings)
    except Exception as e:
        logger.error(f"Failed to forward {event.type} event: {e}")
        return {"ok": False, "error": str(e)}
    return {"ok": True}


@router.post("/webhook")
async def receive_webhook(
    body: bytes = Depends(_verified_body),
    line: LineClient = Depends(get_line_client),
    mailer: SendGridMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> dict:
    try:
        payload = WebhookPayload.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid webhook payload: {e}")

    logger.info(f"Received {len(payload.events)} webhook event(s)")

    results = await asyncio.gather(
        *(_dispatch(event, line, mailer, settings) for event in payload.events)
    )
    return {"status": "success", "results": list(results)}
