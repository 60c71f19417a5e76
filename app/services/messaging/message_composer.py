"""
Copy catalogue for outbound WhatsApp text.

Copy lives in app/copy/<locale>.yml as a flat mapping of key -> template
string. Templates use ``{name}`` placeholders filled from keyword arguments.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

COPY_DIR = Path(__file__).resolve().parent.parent.parent / "copy"
DEFAULT_LOCALE = "es_GT"


class _KeepUnknown(dict):
    """format_map mapping that leaves unknown placeholders in the text."""

    def __init__(self, values: dict[str, Any]):
        super().__init__(values)
        self.unfilled: list[str] = []

    def __missing__(self, name: str) -> str:
        self.unfilled.append(name)
        return "{" + name + "}"


class MessageComposer:
    """One locale's copy, loaded once and rendered on demand."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale
        self.path = COPY_DIR / f"{locale}.yml"
        self._copy_data: dict[str, str] = self._read(self.path)

    @staticmethod
    def _read(path: Path) -> dict[str, str]:
        if not path.is_file():
            logger.warning(f"No copy for locale at {path}; every key will render as missing")
            return {}
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Unreadable copy file {path}: {e}")
            return {}
        if not isinstance(loaded, dict):
            logger.error(f"Copy file {path} must be a mapping of key -> text")
            return {}

        copy: dict[str, str] = {}
        for key, value in loaded.items():
            if isinstance(value, (dict, list)) or value is None:
                logger.warning(f"Copy key {key!r} in {path.name} is not a plain string; skipped")
                continue
            copy[str(key)] = str(value)
        logger.info(f"Copy loaded: {path.name} ({len(copy)} keys)")
        return copy

    def has(self, key: str) -> bool:
        return key in self._copy_data

    def template(self, key: str) -> str:
        if key not in self._copy_data:
            logger.warning(f"Message key not found: {key}")
            return f"[MISSING: {key}]"
        return self._copy_data[key]

    def render(self, key: str, **kwargs: Any) -> str:
        """
        Fill ``{placeholders}`` in the template for ``key`` from kwargs.

        Placeholders without a value are left as written and logged, so a copy
        edit that adds a variable never breaks a live conversation.
        """
        template = self.template(key)
        values = _KeepUnknown(kwargs)
        try:
            text = template.format_map(values)
        except (IndexError, ValueError) as e:
            logger.error(f"Copy for {key} is not a valid template: {e}")
            return template
        if values.unfilled:
            logger.warning(f"Copy {key} rendered without values for {values.unfilled}")
        return text


_composers: dict[str, MessageComposer] = {}


def reset_cache() -> None:
    """Forget loaded locales (tests patch COPY_DIR and need a fresh read)."""
    _composers.clear()


def get_composer(locale: str = DEFAULT_LOCALE) -> MessageComposer:
    composer = _composers.get(locale)
    if composer is None:
        composer = _composers[locale] = MessageComposer(locale=locale)
    return composer


def render_message(key: str, locale: str = DEFAULT_LOCALE, **kwargs: Any) -> str:
    return get_composer(locale).render(key, **kwargs)
