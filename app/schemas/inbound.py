"""
Inbound event schema consumed by the conversation engine.

The transport (Meta Cloud API webhook) nests messages several levels deep;
extract_inbound_event() flattens one message into the shape the core needs:
{from, type: text|interactive, text?: {body}, interactive?: {type, id}}.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    TEXT = "text"
    INTERACTIVE = "interactive"


class InteractiveType(str, Enum):
    LIST_REPLY = "list_reply"
    BUTTON_REPLY = "button_reply"


class TextBody(BaseModel):
    body: str = ""


class InteractiveReply(BaseModel):
    type: InteractiveType
    id: str


class InboundEvent(BaseModel):
    from_: str = Field(alias="from")
    type: EventType
    text: TextBody | None = None
    interactive: InteractiveReply | None = None
    message_id: str | None = None

    model_config = {"populate_by_name": True}

    @property
    def user_id(self) -> str:
        return self.from_

    @property
    def body(self) -> str:
        """Raw text body ("" for interactive events)."""
        return self.text.body if self.text else ""

    @property
    def reply_id(self) -> str | None:
        return self.interactive.id if self.interactive else None


def extract_inbound_event(payload: dict[str, Any]) -> InboundEvent | None:
    """
    Pull the first user message out of a WhatsApp webhook payload.

    Args:
        payload: Parsed webhook JSON

    Returns:
        InboundEvent, or None for status callbacks, unsupported message types
        and malformed payloads (the webhook still acknowledges those)
    """
    try:
        value = payload["entry"][0]["changes"][0]["value"]
        messages = value.get("messages") or []
        if not messages:
            return None
        message = messages[0]
        wa_from = message.get("from")
        message_type = message.get("type")
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        logger.debug(f"Webhook payload without a message: {e}")
        return None

    if not wa_from:
        return None

    if message_type == "text":
        body = (message.get("text") or {}).get("body") or ""
        return InboundEvent(
            **{"from": str(wa_from)},
            type=EventType.TEXT,
            text=TextBody(body=body),
            message_id=message.get("id"),
        )

    if message_type == "interactive":
        interactive = message.get("interactive") or {}
        reply_type = interactive.get("type")
        if reply_type not in (InteractiveType.LIST_REPLY.value, InteractiveType.BUTTON_REPLY.value):
            logger.info(f"Ignoring unsupported interactive type {reply_type!r} from {wa_from}")
            return None
        reply_id = (interactive.get(reply_type) or {}).get("id")
        if not reply_id:
            return None
        return InboundEvent(
            **{"from": str(wa_from)},
            type=EventType.INTERACTIVE,
            interactive=InteractiveReply(type=reply_type, id=reply_id),
            message_id=message.get("id"),
        )

    logger.info(f"Ignoring unsupported message type {message_type!r} from {wa_from}")
    return None
