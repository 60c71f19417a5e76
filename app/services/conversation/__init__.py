"""
Conversation flow: pure state machine and the engine that executes its effects.

Re-exports for stable public API: from app.services.conversation import ConversationEngine, transition, etc.
"""

from app.services.conversation.engine import ConversationEngine
from app.services.conversation.state_machine import (
    ArmCooldown,
    ClearCooldown,
    Effect,
    EmitLead,
    PurgeSession,
    RegisterSupplier,
    SaveSession,
    Send,
    Transition,
    build_lead,
    recovery_prompt,
    transition,
)

__all__ = [
    "ArmCooldown",
    "ClearCooldown",
    "ConversationEngine",
    "Effect",
    "EmitLead",
    "PurgeSession",
    "RegisterSupplier",
    "SaveSession",
    "Send",
    "Transition",
    "build_lead",
    "recovery_prompt",
    "transition",
]
