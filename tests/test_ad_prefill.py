"""
Tests for ad-prefill tag parsing.
"""

import logging

import pytest

from app.core.errors import ValidationError
from app.services.parsing.ad_prefill import _parse_zone, parse_ad_params


def test_full_tag_parses_all_fields():
    """The canonical ad tag resolves city, zone, service, lang and campaign."""
    ad = parse_ad_params("Hola! #ad city=city_guatemala&zone=14&service=electricista&lang=en&cid=123")
    assert ad is not None
    assert ad.city == "city_guatemala"
    assert ad.zone == 14
    assert ad.service_id == "srv_electricista"
    assert ad.lang == "en"
    assert ad.campaign_id == "123"
    assert ad.is_actionable


def test_no_tag_returns_none():
    assert parse_ad_params("Necesito un plomero") is None
    assert parse_ad_params("") is None
    assert parse_ad_params(None) is None


def test_marker_is_case_insensitive_and_keys_are_aliased():
    ad = parse_ad_params("#AD Ciudad=city_guatemala&Z=10&S=plomero&campaign=summer")
    assert ad.zone == 10
    assert ad.service_id == "srv_plomero"
    assert ad.campaign_id == "summer"


def test_values_are_percent_decoded():
    """'aire%20acondicionado' resolves through the synonym table."""
    ad = parse_ad_params("#ad zona=7&servicio=aire%20acondicionado")
    assert ad.service_id == "srv_aire"
    assert ad.zone == 7


def test_prefixed_service_id_is_accepted():
    ad = parse_ad_params("#ad z=3&s=srv_cerrajero")
    assert ad.service_id == "srv_cerrajero"


def test_unknown_prefixed_service_is_discarded():
    ad = parse_ad_params("#ad z=3&s=srv_astronauta")
    assert ad.service_id is None
    assert not ad.is_actionable


def test_city_defaults_to_sole_city():
    """Missing or unknown city falls back to Ciudad de Guatemala."""
    assert parse_ad_params("#ad z=3&s=plomero").city == "city_guatemala"
    assert parse_ad_params("#ad c=city_madrid&z=3&s=plomero").city == "city_guatemala"


def test_out_of_range_zone_is_discarded_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        ad = parse_ad_params("#ad zone=26&service=plomero")
    assert ad.zone is None
    assert not ad.is_actionable
    assert "invalid zone" in caplog.text


def test_non_numeric_zone_is_discarded():
    assert parse_ad_params("#ad zone=diez&service=plomero").zone is None
    assert parse_ad_params("#ad zone=0&service=plomero").zone is None


@pytest.mark.parametrize("raw", ["1_4", "+14", "\uff11\uff14", "14.0", "014", " 1 4"])
def test_zone_must_be_plain_digits(raw):
    ad = parse_ad_params(f"#ad zone={raw}&service=plomero")
    assert ad.zone is None
    assert not ad.is_actionable


def test_zone_parser_raises_validation_error():
    with pytest.raises(ValidationError):
        _parse_zone("1_4")
    assert _parse_zone(" 7 ") == 7


def test_unknown_service_is_discarded_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        ad = parse_ad_params("#ad zone=10&service=astronauta")
    assert ad.service_id is None
    assert ad.zone == 10
    assert "unknown service" in caplog.text


def test_missing_service_is_not_actionable():
    """Any missing field discards the prefill as a whole."""
    ad = parse_ad_params("#ad city=city_guatemala&zone=14")
    assert ad is not None
    assert not ad.is_actionable


def test_lang_defaults_to_es():
    assert parse_ad_params("#ad z=1&s=plomero").lang == "es"
    assert parse_ad_params("#ad z=1&s=plomero&lang=fr").lang == "es"
    assert parse_ad_params("#ad z=1&s=plomero&lang=EN").lang == "en"


def test_campaign_absent_is_none():
    assert parse_ad_params("#ad z=1&s=plomero").campaign_id is None
