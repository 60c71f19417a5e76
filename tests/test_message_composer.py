"""
Tests for message composer - loading copy and rendering templates.
"""

import pytest

import app.services.messaging.message_composer as mc
from app.services.messaging.message_composer import MessageComposer, render_message, reset_cache


def _write_copy(copy_file, content: str) -> None:
    """Write temp YAML with UTF-8 so accents and emoji load correctly."""
    copy_file.write_text(content, encoding="utf-8")


@pytest.fixture
def copy_file(tmp_path, monkeypatch):
    """Temporary copy dir patched in as COPY_DIR; global composer reset around the test."""
    copy_dir = tmp_path / "copy"
    copy_dir.mkdir()
    monkeypatch.setattr(mc, "COPY_DIR", copy_dir)
    reset_cache()
    yield copy_dir / "es_GT.yml"
    reset_cache()


def test_message_composer_loads_yaml(copy_file):
    _write_copy(copy_file, 'test_welcome: "Hola {name}!"\nsecond: "Buenas"\n')
    composer = MessageComposer()
    assert composer.has("test_welcome")
    assert composer.has("second")
    assert composer.template("test_welcome") == "Hola {name}!"


def test_non_string_entries_are_skipped(copy_file):
    _write_copy(
        copy_file,
        """
plain: "ok"
as_list:
  - "uno"
  - "dos"
nested:
  a: 1
empty:
""",
    )
    composer = MessageComposer()
    assert composer.has("plain")
    for key in ("as_list", "nested", "empty"):
        assert not composer.has(key)
        assert composer.render(key) == f"[MISSING: {key}]"


def test_message_composer_renders_template(copy_file):
    _write_copy(copy_file, 'test_template: "Zona {zone} {emoji}"')
    assert MessageComposer().render("test_template", zone=10, emoji="🎉") == "Zona 10 🎉"


def test_message_composer_missing_key_returns_placeholder(copy_file):
    _write_copy(copy_file, "other_key: 'test'")
    assert MessageComposer().render("missing_key") == "[MISSING: missing_key]"


def test_message_composer_handles_missing_template_variable(copy_file):
    """Placeholders without a value stay in the text; the rest are filled."""
    _write_copy(copy_file, 'test_missing_var: "Hola {name}, zona {zone}"')
    result = MessageComposer().render("test_missing_var", name="Ana")
    assert result == "Hola Ana, zona {zone}"


def test_missing_copy_file_gives_empty_copy(copy_file):
    composer = MessageComposer(locale="xx_XX")
    assert composer.render("start_body") == "[MISSING: start_body]"


def test_render_message_convenience_function(copy_file):
    _write_copy(copy_file, 'test: "Hola {name}!"')
    assert render_message("test", name="Bob") == "Hola Bob!"


def test_composer_cached_per_locale(copy_file):
    _write_copy(copy_file, "k: v")
    assert mc.get_composer() is mc.get_composer("es_GT")
    assert mc.get_composer("xx_XX") is not mc.get_composer()


def test_non_mapping_copy_file_is_ignored(copy_file):
    _write_copy(copy_file, "- just\n- a list\n")
    assert MessageComposer().render("just") == "[MISSING: just]"


def test_invalid_template_returned_as_written(copy_file):
    _write_copy(copy_file, 'broken: "Zona {zone"')
    assert MessageComposer().render("broken", zone=10) == "Zona {zone"


def test_real_copy_file_has_every_prompt_key():
    """The shipped es_GT copy renders the keys the conversation relies on."""
    reset_cache()
    composer = MessageComposer()
    for key in (
        "start_body",
        "role_body",
        "city_body",
        "zone_groups_body",
        "zone_confirm_body",
        "services_body",
        "urgency_body",
        "final_text",
        "ad_confirm_body",
        "freetext_confirm_body",
        "ask_service_hint",
        "ask_zone_hint",
        "tech_body",
        "tech_registered",
        "supplier_new_lead",
        "admin_lead_save_failed",
    ):
        assert composer.has(key), key
        assert "[MISSING" not in composer.template(key)
