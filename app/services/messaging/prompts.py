"""
Interactive cards for the intake flow.

Each builder returns a provider-neutral OutboundMessage; option ids are the
ones the conversation state machine dispatches on. Copy comes from
app/copy/es_GT.yml via the message composer.
"""

from app.constants.catalog import (
    CITIES,
    DEFAULT_CITY,
    SERVICES,
    ZONE_GROUPS,
    get_city,
    get_service,
    zone_emoji,
)
from app.core.config import settings
from app.schemas.messages import MessageKind, Option, OutboundMessage
from app.schemas.session import PendingConfirm, Urgency
from app.services.messaging.message_composer import render_message

# Button / row ids
START_YES = "start_yes"
START_NO = "start_no"
ROLE_CLIENT = "role_client"
ROLE_TECHNICIAN = "role_technician"
ZONE_PREFIX = "zone_"
ZONE_CONFIRM = "zone_confirm"
ZONE_CHANGE = "zone_change"
URGENCY_NOW = "urgency_now"
URGENCY_LATER = "urgency_later"
FINAL_ACK = "final_ack"
AD_YES = "ad_yes"
AD_CHANGE = "ad_change"
FREETEXT_CONFIRM = "freetext_confirm"
FREETEXT_CHANGE = "freetext_change"
TECH_PREFIX = "tech_"


def _copy(key: str, **kwargs) -> str:
    return render_message(key, brand=settings.brand_name, **kwargs)


def _footer() -> str:
    return settings.brand_name


def text(key: str, **kwargs) -> OutboundMessage:
    """Plain text message from a copy key."""
    return OutboundMessage.text(_copy(key, **kwargs))


def _buttons(header: str, body: str, options: list[Option]) -> OutboundMessage:
    return OutboundMessage(
        kind=MessageKind.BUTTONS,
        header=header,
        body=body,
        footer=_footer(),
        options=tuple(options),
    )


def _list(header: str, body: str, button_label: str, section_title: str, options: list[Option]) -> OutboundMessage:
    return OutboundMessage(
        kind=MessageKind.LIST,
        header=header,
        body=body,
        footer=_footer(),
        button_label=button_label,
        section_title=section_title,
        options=tuple(options),
    )


def city_title(city_id: str | None) -> str:
    city = get_city(city_id) or DEFAULT_CITY
    return city.title


def service_display(service_id: str | None) -> str:
    service = get_service(service_id)
    return service.display if service else _copy("unknown_service")


def start_confirm() -> OutboundMessage:
    return _buttons(
        _copy("start_header"),
        _copy("start_body"),
        [Option(id=START_YES, title=_copy("start_yes")), Option(id=START_NO, title=_copy("start_no"))],
    )


def role_buttons() -> OutboundMessage:
    return _buttons(
        _copy("role_header"),
        _copy("role_body"),
        [
            Option(id=ROLE_CLIENT, title=_copy("role_client")),
            Option(id=ROLE_TECHNICIAN, title=_copy("role_technician")),
        ],
    )


def city_menu() -> OutboundMessage:
    return _list(
        _copy("city_header"),
        _copy("city_body"),
        _copy("city_button"),
        _copy("city_section"),
        [Option(id=c.id, title=c.title) for c in CITIES],
    )


def zone_group_buttons() -> OutboundMessage:
    return _buttons(
        _copy("zone_groups_header"),
        _copy("zone_groups_body"),
        [
            Option(id=group_id, title=_copy("zone_group_title", start=start, end=end))
            for group_id, (start, end) in ZONE_GROUPS.items()
        ],
    )


def zone_list(start: int, end: int) -> OutboundMessage:
    rows = [
        Option(id=f"{ZONE_PREFIX}{z}", title=_copy("zone_row", zone=z, emoji=zone_emoji(z)).strip())
        for z in range(start, end + 1)
    ]
    return _list(
        _copy("zone_list_header", start=start, end=end),
        _copy("zone_list_body"),
        _copy("zone_list_button"),
        _copy("zone_list_section"),
        rows,
    )


def zone_confirm(zone: int) -> OutboundMessage:
    return _buttons(
        _copy("zone_confirm_header", zone=zone, emoji=zone_emoji(zone)).strip(),
        _copy("zone_confirm_body"),
        [
            Option(id=ZONE_CONFIRM, title=_copy("zone_confirm_yes")),
            Option(id=ZONE_CHANGE, title=_copy("zone_confirm_change")),
        ],
    )


def services_list(city_id: str | None, zone: int) -> OutboundMessage:
    body = _copy(
        "services_body",
        city=city_title(city_id),
        zone=zone,
        emoji=zone_emoji(zone),
        consent=_copy("services_consent"),
    )
    return _list(
        _copy("services_header"),
        body,
        _copy("services_button"),
        _copy("services_section"),
        [Option(id=s.id, title=s.display) for s in SERVICES],
    )


def urgency_question() -> OutboundMessage:
    return _buttons(
        _copy("urgency_header"),
        _copy("urgency_body"),
        [
            Option(id=URGENCY_NOW, title=_copy("urgency_yes")),
            Option(id=URGENCY_LATER, title=_copy("urgency_no")),
        ],
    )


def final_text(city_id: str | None, zone: int | None, service_id: str | None) -> str:
    """Completion text; also the deterministic reconstruction used for replays."""
    return _copy(
        "final_text",
        service=service_display(service_id),
        city=city_title(city_id),
        zone=zone,
        emoji=zone_emoji(zone),
    )


def final_card(body: str) -> OutboundMessage:
    return _buttons(_copy("final_header"), body, [Option(id=FINAL_ACK, title=_copy("final_ack_button"))])


def ad_confirm(city_id: str | None, zone: int, service_id: str) -> OutboundMessage:
    body = _copy(
        "ad_confirm_body",
        service=service_display(service_id),
        city=city_title(city_id),
        zone=zone,
        emoji=zone_emoji(zone),
    )
    return _buttons(
        _copy("confirm_header"),
        body,
        [Option(id=AD_YES, title=_copy("ad_yes")), Option(id=AD_CHANGE, title=_copy("ad_change"))],
    )


def freetext_confirm(pending: PendingConfirm) -> OutboundMessage:
    urgency_key = "freetext_urgent" if pending.urgency is Urgency.NOW else "freetext_later"
    body = _copy(
        "freetext_confirm_body",
        service=service_display(pending.service_id),
        zone=pending.zone,
        emoji=zone_emoji(pending.zone),
        urgency=_copy(urgency_key),
    )
    return _buttons(
        _copy("confirm_header"),
        body,
        [
            Option(id=FREETEXT_CONFIRM, title=_copy("freetext_confirm")),
            Option(id=FREETEXT_CHANGE, title=_copy("freetext_change")),
        ],
    )


def tech_services_list() -> OutboundMessage:
    return _list(
        _copy("tech_header"),
        _copy("tech_body"),
        _copy("tech_button"),
        _copy("tech_section"),
        [Option(id=f"{TECH_PREFIX}{s.id}", title=s.label) for s in SERVICES],
    )
