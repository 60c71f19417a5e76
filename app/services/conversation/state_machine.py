"""
Conversation state machine - pure transitions for the intake flow.

transition(session, event, cooldown_active, settings) looks at one inbound
event and the user's current session and returns the next session plus an
ordered tuple of side effects. Nothing here touches Redis, Supabase or the
network; ConversationEngine executes the effects.

Event precedence:
1. Reset word (any state)
2. Ad prefill (first text of an unstarted session)
3. Completed session: replay once while cooling down, restart after
4. Free text (parsed for service / zone / urgency) or guided button/list ids
"""

import logging
from dataclasses import dataclass

from app.constants.catalog import ZONE_GROUPS, get_city, get_service, is_valid_zone
from app.constants.event_types import EVENT_AD_PREFILL_APPLIED, EVENT_SESSION_RESET
from app.core.config import Settings
from app.schemas.inbound import EventType, InboundEvent
from app.schemas.lead import Lead
from app.schemas.messages import OutboundMessage
from app.schemas.session import (
    ConversationState,
    Lang,
    PendingConfirm,
    Role,
    Session,
    Source,
    Urgency,
)
from app.services.leads.scoring import score_lead
from app.services.messaging import prompts
from app.services.parsing.ad_prefill import AdPrefill, parse_ad_params
from app.services.parsing.intent_parsing import parse_free_text
from app.services.parsing.text_normalization import normalize_for_matching

logger = logging.getLogger(__name__)


# ---- Effects ----


@dataclass(frozen=True)
class SaveSession:
    session: Session


@dataclass(frozen=True)
class PurgeSession:
    pass


@dataclass(frozen=True)
class ClearCooldown:
    pass


@dataclass(frozen=True)
class ArmCooldown:
    pass


@dataclass(frozen=True)
class Send:
    message: OutboundMessage


@dataclass(frozen=True)
class EmitLead:
    lead: Lead
    service_id: str


@dataclass(frozen=True)
class RegisterSupplier:
    service_id: str
    zone: int


Effect = SaveSession | PurgeSession | ClearCooldown | ArmCooldown | Send | EmitLead | RegisterSupplier


@dataclass(frozen=True)
class Transition:
    session: Session
    effects: tuple[Effect, ...] = ()

    @property
    def messages(self) -> list[OutboundMessage]:
        return [e.message for e in self.effects if isinstance(e, Send)]


URGENCY_BY_ID = {prompts.URGENCY_NOW: Urgency.NOW, prompts.URGENCY_LATER: Urgency.LATER}


def transition(
    session: Session | None,
    event: InboundEvent,
    cooldown_active: bool,
    settings: Settings,
) -> Transition:
    """
    Compute the next session and side effects for one inbound event.

    Args:
        session: Stored session, or None for an unseen (or expired/corrupt) user
        event: Inbound text or interactive reply
        cooldown_active: Whether the user's post-completion cooldown marker exists
        settings: Runtime settings (reset word)

    Returns:
        Transition with the resulting session and the effects to execute in order
    """
    is_new = session is None
    s = Session.fresh(event.user_id) if session is None else session.snapshot()

    result = _dispatch(s, event, cooldown_active, settings)

    # A brand-new session is stored even when the event changed nothing
    if is_new and not any(isinstance(e, (SaveSession, PurgeSession)) for e in result.effects):
        result = Transition(result.session, (SaveSession(result.session.snapshot()), *result.effects))
    return result


def _dispatch(s: Session, event: InboundEvent, cooldown_active: bool, settings: Settings) -> Transition:
    if event.type is EventType.TEXT:
        if is_reset_word(event.body, settings.reset_magic):
            return reset(s.user_id)
        if not s.started:
            ad = parse_ad_params(event.body)
            if ad is not None and ad.is_actionable:
                return apply_ad_prefill(s, ad)

    if s.is_done:
        return after_completion(s, cooldown_active)

    if event.type is EventType.TEXT:
        return handle_free_text(s, event.body)
    return handle_selection(s, event.reply_id or "")


def is_reset_word(text: str, reset_magic: str) -> bool:
    return bool(reset_magic) and normalize_for_matching(text) == normalize_for_matching(reset_magic)


def _save(s: Session, *effects: Effect) -> Transition:
    """Persist the session first, then run the remaining effects."""
    return Transition(s, (SaveSession(s.snapshot()), *effects))


def _reply(s: Session, *messages: OutboundMessage) -> Transition:
    return Transition(s, tuple(Send(m) for m in messages))


def _save_and_reply(s: Session, *messages: OutboundMessage) -> Transition:
    return _save(s, *(Send(m) for m in messages))


# ---- Reset / ad prefill / completed sessions ----


def reset(user_id: str) -> Transition:
    logger.info(f"Session reset by {user_id}", extra={"event_type": EVENT_SESSION_RESET})
    fresh = Session.fresh(user_id)
    return Transition(
        fresh,
        (ClearCooldown(), PurgeSession(), SaveSession(fresh.snapshot()), Send(prompts.start_confirm())),
    )


def apply_ad_prefill(s: Session, ad: AdPrefill) -> Transition:
    s.started = True
    s.source = Source.AD
    s.ad_lock_city = True
    s.city = ad.city
    s.zone = ad.zone
    s.zone_confirmed = True
    s.service_id = ad.service_id
    s.urgency = None
    s.state = ConversationState.MENU
    s.final_acked = False
    s.lang = Lang(ad.lang)
    s.campaign_id = ad.campaign_id
    s.pending_confirm = None
    logger.info(
        f"Ad prefill applied for {s.user_id}: {ad.service_id} zona {ad.zone} (campaign={ad.campaign_id})",
        extra={"event_type": EVENT_AD_PREFILL_APPLIED},
    )
    return _save_and_reply(s, prompts.ad_confirm(s.city, s.zone, s.service_id))


def after_completion(s: Session, cooldown_active: bool) -> Transition:
    """
    DONE session: one replay of the final card per cooldown window, then silence.

    Once the cooldown expired the session is dropped and the flow starts over.
    """
    if not cooldown_active:
        fresh = Session.fresh(s.user_id)
        return Transition(fresh, (PurgeSession(), SaveSession(fresh.snapshot()), Send(prompts.start_confirm())))

    if s.final_acked:
        return Transition(s)

    body = s.last_confirmation or prompts.final_text(s.city, s.zone, s.service_id)
    s.final_acked = True
    return _save_and_reply(s, prompts.final_card(body))


# ---- Completion ----


def build_lead(s: Session) -> Lead:
    service = get_service(s.service_id)
    return Lead(
        phone=s.user_id,
        city=prompts.city_title(s.city),
        zone=s.zone,
        service=service.label if service else s.service_id,
        urgency=s.urgency.label,
        lang=s.lang.value,
        campaign_id=s.campaign_id,
        lead_score=score_lead(s.urgency, s.service_id, s.zone),
    )


def complete(s: Session) -> Transition:
    """Urgency is known: emit the lead, show the final card, close the session and arm the cooldown."""
    lead = build_lead(s)
    final_text = prompts.final_text(s.city, s.zone, s.service_id)
    s.started = True
    s.state = ConversationState.DONE
    s.last_confirmation = final_text
    s.final_acked = False
    s.pending_confirm = None
    return Transition(
        s,
        (
            EmitLead(lead=lead, service_id=s.service_id),
            Send(prompts.final_card(final_text)),
            SaveSession(s.snapshot()),
            ArmCooldown(),
        ),
    )


# ---- Free text ----


def handle_free_text(s: Session, text: str) -> Transition:
    parsed = parse_free_text(text)
    if parsed.is_empty:
        return recover(s)

    previous = s.pending_confirm or PendingConfirm()
    s.pending_confirm = PendingConfirm(
        service_id=parsed.service_id or previous.service_id or s.service_id,
        zone=parsed.zone or previous.zone or s.zone,
        urgency=parsed.urgency or previous.urgency or s.urgency,
    )
    s.final_acked = False
    return _save_and_reply(s, _next_pending_prompt(s.pending_confirm))


def _next_pending_prompt(pending: PendingConfirm) -> OutboundMessage:
    """Ask for the first missing field (service, zone, urgency), or show the confirmation card."""
    if not pending.service_id:
        return prompts.text("ask_service_hint")
    if not pending.zone:
        return prompts.text("ask_zone_hint")
    if not pending.urgency:
        return prompts.urgency_question()
    return prompts.freetext_confirm(pending)


def recover(s: Session) -> Transition:
    """Re-ask the first missing step so the user is never left without a reply."""
    return _reply(s, recovery_prompt(s))


def recovery_prompt(s: Session) -> OutboundMessage:
    if not s.started:
        return prompts.start_confirm()
    if s.role is Role.TECHNICIAN:
        return prompts.zone_group_buttons() if s.tech_service_id else prompts.tech_services_list()
    if not s.city:
        return prompts.city_menu()
    if s.zone is None:
        return prompts.zone_group_buttons()
    if not s.zone_confirmed:
        return prompts.zone_confirm(s.zone)
    if not s.service_id:
        return prompts.services_list(s.city, s.zone)
    if not s.urgency:
        return prompts.urgency_question()
    return prompts.final_card(prompts.final_text(s.city, s.zone, s.service_id))


# ---- Guided selections ----


def handle_selection(s: Session, reply_id: str) -> Transition:
    if reply_id == prompts.START_YES:
        s.started = True
        s.state = ConversationState.MENU
        s.final_acked = False
        return _save_and_reply(s, prompts.role_buttons())

    if reply_id == prompts.START_NO:
        return _reply(s, prompts.text("cancelled"))

    if reply_id == prompts.ROLE_CLIENT:
        s.role = Role.CLIENT
        s.tech_service_id = None
        s.final_acked = False
        return _save_and_reply(s, prompts.zone_group_buttons() if s.ad_lock_city else prompts.city_menu())

    if reply_id == prompts.ROLE_TECHNICIAN:
        s.role = Role.TECHNICIAN
        s.final_acked = False
        return _save_and_reply(s, prompts.tech_services_list())

    if reply_id.startswith(prompts.TECH_PREFIX):
        return select_tech_service(s, reply_id.removeprefix(prompts.TECH_PREFIX))

    if get_city(reply_id):
        return select_city(s, reply_id)

    if reply_id in ZONE_GROUPS:
        start, end = ZONE_GROUPS[reply_id]
        s.final_acked = False
        return _save_and_reply(s, prompts.zone_list(start, end))

    if reply_id == prompts.ZONE_CONFIRM:
        return confirm_zone(s)

    if reply_id == prompts.ZONE_CHANGE:
        s.state = ConversationState.MENU
        s.final_acked = False
        return _save_and_reply(s, prompts.zone_group_buttons())

    zone = parse_zone_id(reply_id)
    if zone is not None:
        return select_zone(s, zone)

    if get_service(reply_id):
        return select_service(s, reply_id)

    if reply_id in URGENCY_BY_ID:
        return select_urgency(s, URGENCY_BY_ID[reply_id])

    if reply_id == prompts.AD_YES:
        return confirm_ad(s)

    if reply_id == prompts.AD_CHANGE:
        s.state = ConversationState.MENU
        s.service_id = None
        s.urgency = None
        s.final_acked = False
        return _save_and_reply(s, prompts.zone_group_buttons())

    if reply_id == prompts.FREETEXT_CONFIRM:
        return confirm_free_text(s)

    if reply_id == prompts.FREETEXT_CHANGE:
        s.pending_confirm = None
        s.final_acked = False
        return _save_and_reply(s, prompts.role_buttons())

    # final_ack on an open session, stale or unknown ids
    return recover(s)


def parse_zone_id(reply_id: str) -> int | None:
    """"zone_7" -> 7; None for other ids and out-of-range zones."""
    if not reply_id.startswith(prompts.ZONE_PREFIX):
        return None
    suffix = reply_id.removeprefix(prompts.ZONE_PREFIX)
    if not suffix.isdigit():
        return None
    zone = int(suffix)
    return zone if is_valid_zone(zone) else None


def select_tech_service(s: Session, service_id: str) -> Transition:
    if not get_service(service_id):
        return recover(s)
    s.role = Role.TECHNICIAN
    s.tech_service_id = service_id
    return _save_and_reply(s, prompts.zone_group_buttons(), prompts.text("tech_zone_hint"))


def select_city(s: Session, city_id: str) -> Transition:
    if s.ad_lock_city:
        return _reply(s, prompts.zone_group_buttons())
    s.city = city_id
    s.zone = None
    s.zone_confirmed = False
    s.service_id = None
    s.urgency = None
    s.pending_confirm = None
    s.started = True
    s.state = ConversationState.MENU
    s.final_acked = False
    return _save_and_reply(s, prompts.zone_group_buttons())


def select_zone(s: Session, zone: int) -> Transition:
    if s.role is Role.TECHNICIAN and s.tech_service_id:
        service_id = s.tech_service_id
        s.tech_service_id = None
        return _save(s, RegisterSupplier(service_id=service_id, zone=zone))

    s.zone = zone
    s.zone_confirmed = False
    s.service_id = None
    s.urgency = None
    s.pending_confirm = None
    s.state = ConversationState.MENU
    s.final_acked = False
    return _save_and_reply(s, prompts.zone_confirm(zone))


def confirm_zone(s: Session) -> Transition:
    if s.zone is None:
        return _reply(s, prompts.zone_group_buttons())
    s.zone_confirmed = True
    s.state = ConversationState.MENU
    s.final_acked = False
    return _save_and_reply(s, prompts.services_list(s.city, s.zone))


def select_service(s: Session, service_id: str) -> Transition:
    if not s.zone_confirmed:
        return _reply(s, prompts.text("zone_required"), prompts.zone_group_buttons())
    s.service_id = service_id
    s.urgency = None
    s.pending_confirm = None
    s.final_acked = False
    return _save_and_reply(s, prompts.urgency_question())


def select_urgency(s: Session, urgency: Urgency) -> Transition:
    if s.pending_confirm is not None:
        s.pending_confirm = s.pending_confirm.model_copy(update={"urgency": urgency})
        s.final_acked = False
        return _save_and_reply(s, _next_pending_prompt(s.pending_confirm))

    if not s.service_id:
        return recover(s)

    s.urgency = urgency
    s.final_acked = False
    return complete(s)


def confirm_ad(s: Session) -> Transition:
    if not (s.service_id and s.zone_confirmed):
        return recover(s)
    s.started = True
    s.state = ConversationState.MENU
    s.final_acked = False
    return _save_and_reply(s, prompts.urgency_question())


def confirm_free_text(s: Session) -> Transition:
    pending = s.pending_confirm
    if pending is None:
        return recover(s)
    if not pending.is_complete:
        return _reply(s, _next_pending_prompt(pending))

    s.service_id = pending.service_id
    s.zone = pending.zone
    s.zone_confirmed = True
    s.urgency = pending.urgency
    s.started = True
    s.state = ConversationState.MENU
    s.final_acked = False
    return complete(s)
