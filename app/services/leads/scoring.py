"""
Lead scoring - deterministic 0-100 priority from urgency, service and zone.
"""

from app.constants.catalog import HIGH_PRIORITY_SERVICES, HIGH_VALUE_ZONES
from app.schemas.session import Urgency

URGENT_POINTS = 40
PRIORITY_SERVICE_POINTS = 30
HIGH_VALUE_ZONE_POINTS = 20
MAX_SCORE = 100


def score_lead(urgency: Urgency | None, service_id: str | None, zone: int | None) -> int:
    """
    Score a lead.

    +40 when the job is for now, +30 for plumbing / electrical / locksmith,
    +20 for high-value zones; capped at 100.
    """
    score = 0
    if urgency is Urgency.NOW:
        score += URGENT_POINTS
    if service_id in HIGH_PRIORITY_SERVICES:
        score += PRIORITY_SERVICE_POINTS
    if zone in HIGH_VALUE_ZONES:
        score += HIGH_VALUE_ZONE_POINTS
    return min(score, MAX_SCORE)
