"""
Ad-prefill parsing - structured intake carried by click-to-WhatsApp ads.

Ads prefill the first message with a trailing tag:

    Hola, necesito ayuda #ad city=city_guatemala&zone=14&service=electricista&lang=en&cid=123

Keys are aliased (city|ciudad|c, zone|zona|z, service|servicio|s, lang,
cid|campaign) and values are percent-decoded. A bad zone or unknown service
is discarded with a warning; the conversation only uses the result when
city, zone and service all resolved (AdPrefill.is_actionable).
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar
from urllib.parse import unquote

from app.constants.catalog import DEFAULT_CITY, get_city, is_valid_zone, resolve_service
from app.constants.event_types import EVENT_AD_PREFILL_INVALID_PARAM
from app.core.errors import ValidationError
from app.services.parsing.text_normalization import normalize_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

AD_TAG_PATTERN = re.compile(r"#ad\s+(.+)$", re.IGNORECASE)

CITY_KEYS = ("city", "ciudad", "c")
ZONE_KEYS = ("zone", "zona", "z")
SERVICE_KEYS = ("service", "servicio", "s")
CAMPAIGN_KEYS = ("cid", "campaign")


@dataclass(frozen=True)
class AdPrefill:
    city: str | None  # City id
    zone: int | None
    service_id: str | None
    lang: str = "es"
    campaign_id: str | None = None

    @property
    def is_actionable(self) -> bool:
        """True when city, zone and service all resolved - otherwise the whole parse is ignored."""
        return bool(self.city and self.zone is not None and self.service_id)


def _split_params(query: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in query.split("&"):
        key, _, value = pair.partition("=")
        key = key.strip().lower()
        if not key:
            continue
        params[key] = unquote(value.strip()).strip()
    return params


def _first(params: dict[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = params.get(key)
        if value:
            return value
    return None


ZONE_VALUE_PATTERN = re.compile(r"\d{1,2}", re.ASCII)


def _parse_zone(raw: str) -> int:
    value = raw.strip()
    if not ZONE_VALUE_PATTERN.fullmatch(value) or not is_valid_zone(int(value)):
        raise ValidationError(f"invalid zone {raw!r}")
    return int(value)


def _parse_service(raw: str) -> str:
    service_id = resolve_service(raw)
    if service_id is None:
        raise ValidationError(f"unknown service {raw!r}")
    return service_id


def _optional(parser: Callable[[str], T], raw: str | None) -> T | None:
    """Run a field parser; a bad value is logged and dropped, never raised."""
    if raw is None:
        return None
    try:
        return parser(raw)
    except ValidationError as e:
        logger.warning(
            f"Ad tag carries {e} - ignoring it",
            extra={"event_type": EVENT_AD_PREFILL_INVALID_PARAM},
        )
        return None


def parse_ad_params(text: str | None) -> AdPrefill | None:
    """
    Parse a trailing "#ad k=v&k=v" tag.

    Args:
        text: Raw inbound text

    Returns:
        AdPrefill (possibly partial), or None if no tag is present
    """
    normalized = normalize_text(text)
    if not normalized:
        return None
    match = AD_TAG_PATTERN.search(normalized)
    if not match:
        return None

    params = _split_params(match.group(1))

    city = get_city(_first(params, CITY_KEYS)) or DEFAULT_CITY
    lang = "en" if (params.get("lang") or "").lower() == "en" else "es"

    return AdPrefill(
        city=city.id,
        zone=_optional(_parse_zone, _first(params, ZONE_KEYS)),
        service_id=_optional(_parse_service, _first(params, SERVICE_KEYS)),
        lang=lang,
        campaign_id=_first(params, CAMPAIGN_KEYS),
    )
