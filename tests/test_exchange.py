"""Tests for YAML theme configuration files."""

from pathlib import Path

import pytest
import yaml

from notedash.errors import ErrorCode, ThemeValidationError
from notedash.themes.exchange import read_bundle, write_bundle
from notedash.themes.models import TemplateField, Theme, ThemeConfigBundle, ThemeOverride


def _bundle() -> ThemeConfigBundle:
    return ThemeConfigBundle(
        themes=[Theme(id="theme_1", path="生活/健身", icon="🏋", status="active", source="predefined")],
        overrides=[
            ThemeOverride(
                theme_id="theme_1",
                template_id="tpl_1",
                fields=(TemplateField(key="a", label="A", options=("x", "y")),),
                id="ovr_1",
            )
        ],
    )


def test_write_bundle_creates_readable_yaml(tmp_path: Path) -> None:
    path = write_bundle(tmp_path / "out" / "themes.yaml", _bundle())
    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert "生活/健身" in text
    data = yaml.safe_load(text)
    assert data["schema_version"] == "1"
    assert data["themes"][0]["icon"] == "🏋"


def test_read_bundle_restores_records(tmp_path: Path) -> None:
    path = write_bundle(tmp_path / "themes.yaml", _bundle())
    bundle = read_bundle(path)
    assert bundle.themes[0].path == "生活/健身"
    assert bundle.overrides[0].fields[0].options == ("x", "y")
    assert bundle.overrides[0].output_template is None


def test_read_bundle_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ThemeValidationError) as excinfo:
        read_bundle(tmp_path / "missing.yaml")
    assert excinfo.value.code is ErrorCode.IMPORT_INVALID


@pytest.mark.parametrize(
    "content",
    [
        "themes: [unclosed",
        "- just\n- a list\n",
        "themes: 5\n",
        "themes:\n  - path: 无编号\n",
        "themes:\n  - foo\noverrides: []\n",
        "overrides:\n  - 42\n",
        "overrides:\n  - theme_id: theme_1\n    template_id: tpl_1\n    fields:\n      - just text\n",
        "overrides:\n  - theme_id: theme_1\n    template_id: tpl_1\n    fields: abc\n",
    ],
)
def test_read_bundle_rejects_bad_content(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ThemeValidationError):
        read_bundle(path)


def test_read_bundle_reports_non_mapping_theme(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("themes:\n  - foo\noverrides: []\n", encoding="utf-8")
    with pytest.raises(ThemeValidationError) as excinfo:
        read_bundle(path)
    assert excinfo.value.code is ErrorCode.IMPORT_INVALID
    assert "mapping" in excinfo.value.message
