"""Tests for override records and effective template resolution."""

from __future__ import annotations

from notedash.themes.models import (
    Disabled,
    Inherited,
    OverrideMode,
    Overridden,
    Template,
    TemplateField,
    Theme,
    ThemeOverride,
)
from notedash.themes.overrides import OverrideStore, override_key, parse_override_key

FIELD_A = TemplateField(key="a", label="A")
FIELD_B = TemplateField(key="b", label="B")
FIELD_C = TemplateField(key="c", label="C", type="select", options=("x", "y"))


def _template() -> Template:
    return Template(
        id="tpl_1",
        name="日记",
        fields=(FIELD_A, FIELD_B),
        output_template="- {{a}} {{b}}",
        target_file="journal.md",
        append_under_header="## 记录",
    )


def test_inherit_returns_base_template(overrides: OverrideStore) -> None:
    template = _template()
    assert overrides.effective_template(template, "theme_1") is template
    assert overrides.effective_template(template, None) is template
    assert isinstance(overrides.state_for("theme_1", "tpl_1"), Inherited)
    assert overrides.mode_for("theme_1", "tpl_1") is OverrideMode.INHERIT


def test_override_replaces_only_given_fields(overrides: OverrideStore) -> None:
    template = _template()
    overrides.upsert(
        ThemeOverride(theme_id="theme_1", template_id="tpl_1", fields=(FIELD_A, FIELD_C))
    )

    effective = overrides.effective_template(template, "theme_1")
    assert effective is not template
    assert effective.fields == (FIELD_A, FIELD_C)
    assert effective.output_template == template.output_template
    assert effective.target_file == "journal.md"
    assert template.fields == (FIELD_A, FIELD_B)
    assert isinstance(overrides.state_for("theme_1", "tpl_1"), Overridden)


def test_delete_restores_inheritance(overrides: OverrideStore) -> None:
    template = _template()
    overrides.upsert(
        ThemeOverride(theme_id="theme_1", template_id="tpl_1", fields=(FIELD_A, FIELD_C))
    )
    assert overrides.delete("theme_1", "tpl_1") is True
    assert overrides.effective_template(template, "theme_1").fields == (FIELD_A, FIELD_B)
    assert overrides.delete("theme_1", "tpl_1") is False


def test_disabled_makes_pair_unusable(overrides: OverrideStore) -> None:
    template = _template()
    overrides.upsert(ThemeOverride(theme_id="theme_1", template_id="tpl_1", disabled=True))
    assert overrides.effective_template(template, "theme_1") is None
    assert overrides.is_disabled("theme_1", "tpl_1")
    assert isinstance(overrides.state_for("theme_1", "tpl_1"), Disabled)
    assert overrides.effective_template(template, "theme_2") is template


def test_upsert_keeps_one_record_per_pair_and_its_id(overrides: OverrideStore) -> None:
    first = overrides.upsert(ThemeOverride(theme_id="theme_1", template_id="tpl_1"))
    second = overrides.upsert(
        ThemeOverride(theme_id="theme_1", template_id="tpl_1", target_file="other.md")
    )
    assert first.id == "ovr_1"
    assert second.id == "ovr_1"
    assert len(overrides) == 1
    assert overrides.get("theme_1", "tpl_1").target_file == "other.md"


def test_loaded_ids_advance_counter(overrides: OverrideStore) -> None:
    overrides.load([ThemeOverride(theme_id="theme_1", template_id="tpl_1", id="ovr_5")])
    created = overrides.upsert(ThemeOverride(theme_id="theme_2", template_id="tpl_1"))
    assert created.id == "ovr_6"


def test_remove_for_theme_and_queries(overrides: OverrideStore) -> None:
    overrides.upsert(ThemeOverride(theme_id="theme_1", template_id="tpl_1"))
    overrides.upsert(ThemeOverride(theme_id="theme_1", template_id="tpl_2", disabled=True))
    overrides.upsert(ThemeOverride(theme_id="theme_2", template_id="tpl_1"))

    assert overrides.theme_ids_with_overrides() == {"theme_1", "theme_2"}
    assert [record.template_id for record in overrides.for_themes(["theme_1"])] == ["tpl_1", "tpl_2"]
    assert overrides.remove_for_theme("theme_1") == 2
    assert overrides.theme_ids_with_overrides() == {"theme_2"}


def test_available_themes_for_template(overrides: OverrideStore) -> None:
    themes = [Theme(id="theme_1", path="工作"), Theme(id="theme_2", path="生活")]
    overrides.upsert(ThemeOverride(theme_id="theme_2", template_id="tpl_1", disabled=True))
    available = overrides.available_themes_for_template("tpl_1", themes)
    assert [theme.id for theme in available] == ["theme_1"]


def test_override_key_round_trip() -> None:
    key = override_key("tpl_1", "theme_3")
    assert key == "tpl_1:theme_3"
    assert parse_override_key(key) == ("tpl_1", "theme_3")
    assert parse_override_key("tpl_1") is None
    assert parse_override_key(":theme_3") is None
