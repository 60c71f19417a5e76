"""
State Machine Invariant Tests.

Walks seeded random event sequences through transition() and checks that
every resulting session stays structurally consistent, that every event gets
an answer unless the user is in the silent part of the cooldown window, and
that a lead is only emitted together with the DONE state.
"""

import random

import pytest

from app.core.config import settings
from app.schemas.session import ConversationState, invariant_violations
from app.services.conversation.state_machine import (
    ArmCooldown,
    ClearCooldown,
    EmitLead,
    PurgeSession,
    RegisterSupplier,
    SaveSession,
    Send,
    transition,
)
from app.services.messaging import prompts
from tests.helpers.fakes import inbound_reply, inbound_text

TEXTS = [
    "hola",
    "oga",
    "Necesito un plomero en zona 10 urgente",
    "busco cerrajero",
    "zona 3",
    "luego",
    "no es urgente",
    "#ad zone=14&service=electricista",
    "#ad zone=99&service=plomero",
    "???",
]

REPLY_IDS = [
    prompts.START_YES,
    prompts.START_NO,
    prompts.ROLE_CLIENT,
    prompts.ROLE_TECHNICIAN,
    "city_guatemala",
    "zone_group_1_10",
    "zone_group_11_20",
    "zone_group_21_25",
    "zone_1",
    "zone_10",
    "zone_25",
    "zone_26",
    prompts.ZONE_CONFIRM,
    prompts.ZONE_CHANGE,
    "srv_plomero",
    "srv_mudanza",
    prompts.URGENCY_NOW,
    prompts.URGENCY_LATER,
    prompts.FINAL_ACK,
    prompts.AD_YES,
    prompts.AD_CHANGE,
    prompts.FREETEXT_CONFIRM,
    prompts.FREETEXT_CHANGE,
    "tech_srv_grua",
    "tech_srv_nope",
    "bogus_id",
]


def random_event(rng: random.Random):
    if rng.random() < 0.3:
        return inbound_text(rng.choice(TEXTS))
    return inbound_reply(rng.choice(REPLY_IDS), list_reply=rng.random() < 0.5)


@pytest.mark.parametrize("seed", range(40))
def test_random_walk_keeps_invariants(seed):
    rng = random.Random(seed)
    session = None
    cooldown = False
    acked_in_window = 0

    for _ in range(60):
        # Cooldown expiry can land between any two events
        if cooldown and rng.random() < 0.1:
            cooldown = False
            acked_in_window = 0

        event = random_event(rng)
        was_done = session is not None and session.is_done
        result = transition(session, event, cooldown, settings)
        types = [type(e) for e in result.effects]

        assert invariant_violations(result.session) == [], (seed, event)
        for effect in result.effects:
            if isinstance(effect, SaveSession):
                assert invariant_violations(effect.session) == []

        if EmitLead in types:
            assert result.session.state is ConversationState.DONE
            assert types.count(EmitLead) == 1
            assert ArmCooldown in types
            assert result.session.final_acked is False

        if result.session.final_acked:
            assert cooldown, "final_acked outside the cooldown window"

        replayed = was_done and cooldown and Send in types and PurgeSession not in types
        if replayed:
            acked_in_window += 1
            assert acked_in_window == 1, "final card replayed twice in one window"

        silent = was_done and cooldown and (session.final_acked or acked_in_window > 0)
        if not silent:
            assert Send in types or RegisterSupplier in types, (seed, event)

        if ClearCooldown in types:
            cooldown = False
            acked_in_window = 0
        if ArmCooldown in types:
            cooldown = True
            acked_in_window = 0
        session = result.session


def test_effects_persist_before_lead_is_reported():
    """Completion runs EmitLead before SaveSession so a failed save never hides the lead."""
    events = [
        inbound_text("Necesito un plomero en zona 10 urgente"),
        inbound_reply(prompts.FREETEXT_CONFIRM),
    ]
    session = None
    for event in events:
        result = transition(session, event, False, settings)
        session = result.session
    types = [type(e) for e in result.effects]
    assert types.index(EmitLead) < types.index(SaveSession) < types.index(ArmCooldown)
