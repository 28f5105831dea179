"""Webhook handler for the Telegram Bot API."""
from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from videobot.config import get_settings
from videobot.models import Update
from videobot.models.events import InboundEvent
from videobot.services.orchestrator import ConversationOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def get_orchestrator(request: Request) -> ConversationOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return orchestrator


def verify_request(
    token: str,
    secret_header: str | None = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
) -> None:
    settings = get_settings()
    if not hmac.compare_digest(token.encode(), settings.bot_token.encode()):
        raise HTTPException(status_code=403, detail="Invalid webhook path")
    if settings.webhook_secret:
        if secret_header is None:
            raise HTTPException(status_code=403, detail="Missing secret token header")
        if not hmac.compare_digest(secret_header.encode(), settings.webhook_secret.encode()):
            raise HTTPException(status_code=403, detail="Invalid secret token")


# ---------------------------------------------------------------------------
# POST webhook
# ---------------------------------------------------------------------------


# Route-level dependencies are solved first, so authentication precedes readiness
@router.post("/webhook/{token}", dependencies=[Depends(verify_request)])
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    # Telegram redelivers on non-2xx, so refuse while shutting down
    if not orchestrator.accepting:
        raise HTTPException(status_code=503, detail="Shutting down")

    try:
        payload = await request.json()
        update = Update.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.error("Malformed webhook payload: %s", exc)
        raise HTTPException(status_code=400, detail="Bad payload")
    logger.debug("Webhook update: %s", update.update_id)

    event = update.to_event()
    if event is None:
        logger.info("Ignoring update %s without text or photo", update.update_id)
        return {"status": "ignored"}

    background_tasks.add_task(run_event, orchestrator, event)
    return {"status": "received"}


async def run_event(orchestrator: ConversationOrchestrator, event: InboundEvent) -> None:
    try:
        await orchestrator.dispatch(event)
    except Exception as exc:  # pragma: no cover
        logger.exception("Event handling failed for %s: %s", event.conversation_id, exc)
