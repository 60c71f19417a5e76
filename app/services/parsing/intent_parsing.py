"""
Free-text intent parsing - best-effort service / zone / urgency extraction.

Used when the user types instead of tapping buttons, e.g.
"Necesito un plomero en zona 10 urgente". Each field is extracted
independently; any subset may resolve.
"""

import re
from dataclasses import dataclass

from app.constants.catalog import SERVICE_SYNONYMS, SERVICES, is_valid_zone
from app.schemas.session import Urgency
from app.services.parsing.text_normalization import normalize_for_matching

ZONE_PATTERN = re.compile(r"zona\s*(\d{1,2})(?!\d)")

# Negations are stripped before looking for "now" words so "no es urgente" is not urgent
NEGATED_URGENCY_PATTERN = re.compile(r"\bno\s+(?:es\s+)?urgente\b")
URGENCY_NOW_PATTERN = re.compile(r"\b(?:urgente|ahora|ya|inmediato)\b")
URGENCY_LATER_PATTERN = re.compile(r"\b(?:después|despues|luego|mañana|manana)\b")


@dataclass(frozen=True)
class ParsedIntent:
    service_id: str | None = None
    zone: int | None = None
    urgency: Urgency | None = None

    @property
    def is_empty(self) -> bool:
        return self.service_id is None and self.zone is None and self.urgency is None


def parse_service(text: str) -> str | None:
    """Catalog labels first, then synonyms; first match in catalog order wins."""
    for service in SERVICES:
        if service.label.casefold() in text:
            return service.id
    for name, service_id in SERVICE_SYNONYMS.items():
        if name in text:
            return service_id
    return None


def parse_zone(text: str) -> int | None:
    match = ZONE_PATTERN.search(text)
    if not match:
        return None
    zone = int(match.group(1))
    return zone if is_valid_zone(zone) else None


def parse_urgency(text: str) -> Urgency | None:
    negated = NEGATED_URGENCY_PATTERN.search(text) is not None
    remaining = NEGATED_URGENCY_PATTERN.sub(" ", text)
    if URGENCY_NOW_PATTERN.search(remaining):
        return Urgency.NOW
    if negated or URGENCY_LATER_PATTERN.search(remaining):
        return Urgency.LATER
    return None


def parse_free_text(text: str | None) -> ParsedIntent:
    """
    Extract whatever service / zone / urgency the message mentions.

    Args:
        text: Raw user message

    Returns:
        ParsedIntent; fields that did not resolve are None
    """
    normalized = normalize_for_matching(text)
    if not normalized:
        return ParsedIntent()
    return ParsedIntent(
        service_id=parse_service(normalized),
        zone=parse_zone(normalized),
        urgency=parse_urgency(normalized),
    )
