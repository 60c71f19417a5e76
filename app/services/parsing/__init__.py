"""
Parsers for inbound text: ad-prefill tags and free-text requests.
"""

from app.services.parsing.ad_prefill import AdPrefill, parse_ad_params
from app.services.parsing.intent_parsing import ParsedIntent, parse_free_text
from app.services.parsing.text_normalization import normalize_for_matching, normalize_text

__all__ = [
    "AdPrefill",
    "ParsedIntent",
    "normalize_for_matching",
    "normalize_text",
    "parse_ad_params",
    "parse_free_text",
]
