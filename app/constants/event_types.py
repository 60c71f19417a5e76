"""
Event type constants for structured log records (extra={"event_type": ...}).

Use these instead of string literals to ensure consistency.
"""

# ---- WhatsApp ----
EVENT_WHATSAPP_INBOUND_RECEIVED = "whatsapp.inbound_received"
EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE = "whatsapp.signature_verification_failure"
EVENT_WHATSAPP_WEBHOOK_FAILURE = "whatsapp.webhook_failure"
EVENT_WHATSAPP_SEND_FAILURE = "whatsapp.send_failure"

# ---- Delivery queue ----
EVENT_DELIVERY_RETRY = "delivery.retry"
EVENT_DELIVERY_DROPPED = "delivery.dropped"

# ---- Conversation ----
EVENT_SESSION_CORRUPTED = "session.corrupted"
EVENT_SESSION_RESET = "session.reset"
EVENT_AD_PREFILL_APPLIED = "ad_prefill.applied"
EVENT_AD_PREFILL_INVALID_PARAM = "ad_prefill.invalid_param"
EVENT_CONVERSATION_FAILURE = "conversation.failure"

# ---- Leads ----
EVENT_LEAD_SAVED = "lead.saved"
EVENT_LEAD_BACKUP_WRITTEN = "lead.backup_written"
EVENT_LEAD_BACKUP_FAILURE = "lead.backup_failure"
EVENT_LEAD_ROUTED = "lead.routed"
EVENT_SUPPLIER_NOTIFY_FAILURE = "supplier.notify_failure"
EVENT_SUPPLIER_REGISTERED = "supplier.registered"
