"""
Tests for lead scoring.
"""

import itertools

from app.constants.catalog import SERVICES, ZONE_MAX, ZONE_MIN
from app.schemas.session import Urgency
from app.services.leads.scoring import score_lead


def test_max_score_is_capped_at_90_components():
    """Urgent plumber in zona 10: 40 + 30 + 20."""
    assert score_lead(Urgency.NOW, "srv_plomero", 10) == 90


def test_each_component():
    assert score_lead(Urgency.LATER, "srv_mudanza", 3) == 0
    assert score_lead(Urgency.NOW, "srv_mudanza", 3) == 40
    assert score_lead(Urgency.LATER, "srv_cerrajero", 3) == 30
    assert score_lead(Urgency.LATER, "srv_mudanza", 14) == 20


def test_missing_inputs_score_zero():
    assert score_lead(None, None, None) == 0


def test_score_in_range_and_deterministic_for_all_inputs():
    """Every (urgency, service, zone) combination scores within 0-100, identically on repeat."""
    urgencies = [Urgency.NOW, Urgency.LATER, None]
    services = [s.id for s in SERVICES] + [None]
    zones = list(range(ZONE_MIN, ZONE_MAX + 1)) + [None]
    for urgency, service_id, zone in itertools.product(urgencies, services, zones):
        score = score_lead(urgency, service_id, zone)
        assert 0 <= score <= 100
        assert score == score_lead(urgency, service_id, zone)
