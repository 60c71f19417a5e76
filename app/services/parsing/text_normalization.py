"""
Cleanup applied to WhatsApp text before any parsing.

Messages pasted from ads or typed on phone keyboards arrive with no-break
spaces, invisible joiners and accents in decomposed form; parsers should only
ever see the cleaned version.
"""

import re
import unicodedata

# Invisible characters dropped outright; exotic spaces become a plain space
_DROP = dict.fromkeys(map(ord, "\u200b\u200c\u200d\u2060\ufeff"))
_SPACES = {ord(ch): " " for ch in "\u00a0\u2007\u202f"}
_TRANSLATION = {**_DROP, **_SPACES}

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """NFC-composed text with a single space between words; "" for None or non-strings."""
    if not isinstance(text, str):
        return ""
    composed = unicodedata.normalize("NFC", text.translate(_TRANSLATION))
    return _WHITESPACE_RUN.sub(" ", composed).strip()


def normalize_for_matching(text: str | None) -> str:
    # accents stay; the synonym tables carry both spellings
    return normalize_text(text).casefold()
