"""
Conversation session schema - per-user intake state kept in the session store.

The session is owned exclusively by the conversation state machine. It is
serialized as JSON (Redis) and re-validated on every load; a payload that
fails validation is reported as SessionCorruption and treated as absent.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.constants.catalog import ZONE_MAX, ZONE_MIN


class ConversationState(str, Enum):
    MENU = "MENU"  # In progress; which fields are set tells where we are
    DONE = "DONE"  # Lead emitted


class Role(str, Enum):
    CLIENT = "client"
    TECHNICIAN = "technician"


class Source(str, Enum):
    AD = "ad"
    NONE = "none"


class Lang(str, Enum):
    ES = "es"
    EN = "en"


class Urgency(str, Enum):
    NOW = "now"
    LATER = "later"

    @property
    def label(self) -> str:
        """Display label used in lead records and supplier notifications."""
        return "Ahora" if self is Urgency.NOW else "Luego"


class PendingConfirm(BaseModel):
    """Partial lead assembled from free text, awaiting explicit confirmation."""

    service_id: str | None = None
    zone: int | None = Field(default=None, ge=ZONE_MIN, le=ZONE_MAX)
    urgency: Urgency | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.service_id and self.zone and self.urgency)


class Session(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    user_id: str
    city: str | None = None  # City id from the catalog
    zone: int | None = Field(default=None, ge=ZONE_MIN, le=ZONE_MAX)
    zone_confirmed: bool = False
    service_id: str | None = None
    urgency: Urgency | None = None
    started: bool = False
    state: ConversationState = ConversationState.MENU
    last_confirmation: str | None = None
    final_acked: bool = False
    source: Source = Source.NONE
    ad_lock_city: bool = False
    lang: Lang = Lang.ES
    campaign_id: str | None = None
    role: Role = Role.CLIENT
    pending_confirm: PendingConfirm | None = None
    tech_service_id: str | None = None  # Technician onboarding only

    @model_validator(mode="after")
    def _check_invariants(self) -> "Session":
        problems = invariant_violations(self)
        if problems:
            raise ValueError("; ".join(problems))
        return self

    @classmethod
    def fresh(cls, user_id: str) -> "Session":
        """Initial session for a new (or reset) user: MENU with every field empty."""
        return cls(user_id=user_id)

    @property
    def is_done(self) -> bool:
        return self.state is ConversationState.DONE

    def snapshot(self) -> "Session":
        return self.model_copy(deep=True)


def invariant_violations(session: Session) -> list[str]:
    """
    List the structural invariants a session breaks (empty list = consistent).

    Used by the model validator on load and by tests that walk the state machine.
    """
    problems = []
    if session.zone_confirmed and session.zone is None:
        problems.append("zone_confirmed requires zone")
    if session.service_id is not None and not session.zone_confirmed:
        problems.append("service_id requires zone_confirmed")
    if session.urgency is not None and session.service_id is None:
        problems.append("urgency requires service_id")
    if session.state is ConversationState.DONE and session.urgency is None:
        problems.append("DONE requires urgency")
    if session.ad_lock_city and session.city is None:
        problems.append("ad_lock_city requires city")
    return problems
