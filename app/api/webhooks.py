import json
import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from app.constants.event_types import (
    EVENT_WHATSAPP_INBOUND_RECEIVED,
    EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE,
    EVENT_WHATSAPP_WEBHOOK_FAILURE,
)
from app.core.config import settings
from app.middleware.correlation_id import get_correlation_id, set_correlation_id
from app.schemas.inbound import InboundEvent, extract_inbound_event
from app.services.conversation.engine import ConversationEngine
from app.services.messaging.whatsapp_verification import verify_whatsapp_signature

logger = logging.getLogger(__name__)

router = APIRouter()


def _rejected(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"received": False, "error": error})


async def _signed_body(request: Request) -> bytes | None:
    """The raw request body, or None when X-Hub-Signature-256 does not match it."""
    body = await request.body()
    if verify_whatsapp_signature(body, request.headers.get("X-Hub-Signature-256")):
        return body
    logger.warning(
        "Dropping webhook call with a bad or missing signature",
        extra={"event_type": EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE},
    )
    return None


async def _process_event(engine: ConversationEngine, event: InboundEvent, correlation_id: str | None) -> None:
    # Runs after the 200 went out; handle_event logs its own failures
    if correlation_id:
        set_correlation_id(correlation_id)
    await engine.handle_event(event)


@router.get("/whatsapp")
def whatsapp_verify(
    hub_mode: str | None = Query(default=None, alias="hub.mode"),
    hub_verify_token: str | None = Query(default=None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(default=None, alias="hub.challenge"),
):
    if hub_mode == "subscribe" and hub_verify_token == settings.whatsapp_verify_token:
        return Response(content=hub_challenge or "", media_type="text/plain")
    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("/whatsapp")
async def whatsapp_inbound(request: Request, background_tasks: BackgroundTasks):
    correlation_id = get_correlation_id(request)

    raw_body = await _signed_body(request)
    if raw_body is None:
        return _rejected(403, "Invalid webhook signature")

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(
            f"Webhook body is not JSON: {e}",
            extra={"event_type": EVENT_WHATSAPP_WEBHOOK_FAILURE},
        )
        return _rejected(400, "Invalid JSON payload")

    if not isinstance(payload, dict):
        return _rejected(400, "Invalid JSON payload")

    event = extract_inbound_event(payload)
    if event is None:
        # delivery receipts and media we do not read still get a 200
        return {"received": True, "type": "ignored"}

    logger.info(
        f"whatsapp.inbound_received from={event.user_id} type={event.type.value} correlation_id={correlation_id}",
        extra={"correlation_id": correlation_id, "event_type": EVENT_WHATSAPP_INBOUND_RECEIVED},
    )

    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        logger.error(
            f"No runtime yet, dropping message from {event.user_id}",
            extra={"event_type": EVENT_WHATSAPP_WEBHOOK_FAILURE},
        )
        return {"received": True}

    background_tasks.add_task(_process_event, runtime.engine, event, correlation_id)
    return {"received": True}
