"""
Pydantic schemas for sessions, leads, inbound events and outbound messages.
"""

from app.schemas.inbound import (
    EventType,
    InboundEvent,
    InteractiveReply,
    InteractiveType,
    TextBody,
    extract_inbound_event,
)
from app.schemas.lead import Lead, Supplier
from app.schemas.messages import MessageKind, Option, OutboundMessage
from app.schemas.session import (
    ConversationState,
    Lang,
    PendingConfirm,
    Role,
    Session,
    Source,
    Urgency,
    invariant_violations,
)

__all__ = [
    "ConversationState",
    "EventType",
    "InboundEvent",
    "InteractiveReply",
    "InteractiveType",
    "Lang",
    "Lead",
    "MessageKind",
    "Option",
    "OutboundMessage",
    "PendingConfirm",
    "Role",
    "Session",
    "Source",
    "Supplier",
    "TextBody",
    "Urgency",
    "extract_inbound_event",
    "invariant_violations",
]
