"""
Structured outbound messages.

The core only deals in these; app.services.messaging.whatsapp turns them into
Cloud API payloads. Keeping them provider-neutral lets tests assert on ids and
bodies without parsing JSON.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class MessageKind(str, Enum):
    TEXT = "text"
    BUTTONS = "buttons"
    LIST = "list"


class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str


class OutboundMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    body: str
    header: str | None = None
    footer: str | None = None
    options: tuple[Option, ...] = ()
    button_label: str | None = None  # List messages only
    section_title: str | None = None  # List messages only

    @classmethod
    def text(cls, body: str) -> "OutboundMessage":
        return cls(kind=MessageKind.TEXT, body=body)

    @property
    def option_ids(self) -> list[str]:
        return [o.id for o in self.options]
