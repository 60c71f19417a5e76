# Messaging: WhatsApp transport, delivery strategies, copy and interactive cards
# Re-export so "from app.services.messaging import ..." works for callers.

from app.services.messaging.delivery import (
    DeliveryOutcome,
    DeliveryStatus,
    DirectDelivery,
    MessageGateway,
    QueuedDelivery,
    build_delivery,
)
from app.services.messaging.message_composer import MessageComposer, get_composer, render_message
from app.services.messaging.whatsapp import WhatsAppClient, to_payload
from app.services.messaging.whatsapp_verification import verify_whatsapp_signature

__all__ = [
    "DeliveryOutcome",
    "DeliveryStatus",
    "DirectDelivery",
    "MessageComposer",
    "MessageGateway",
    "QueuedDelivery",
    "WhatsAppClient",
    "build_delivery",
    "get_composer",
    "render_message",
    "to_payload",
    "verify_whatsapp_signature",
]
