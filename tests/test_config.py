from __future__ import annotations

from pathlib import Path

import pytest

from plzmap.config import AppConfig, CanvasConfig, load_config
from plzmap.models import DEFAULT_LABEL_TIERS, Containment, RadialPattern, SearchStrategy

REPO_ROOT = Path(__file__).resolve().parents[1]

MINIMAL = """
paths:
  geojson: data/regions.geojson
  contacts_csv: data/contacts.csv
  contacts_json: build/contacts.json
  output_dir: build/map
  logs_dir: build/logs
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_minimal_config_uses_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, MINIMAL))

    root = tmp_path.resolve()
    assert cfg.paths.geojson_source == str(root / "data" / "regions.geojson")
    assert cfg.paths.geojson_path == root / "data" / "regions.geojson"
    assert cfg.paths.contacts_json == root / "build" / "contacts.json"
    assert cfg.canvas == CanvasConfig.default()
    assert cfg.labels.tiers == DEFAULT_LABEL_TIERS
    assert cfg.labels.radial == RadialPattern()
    assert cfg.contacts.required_roles == ("VAD", "KAMLIGHT", "KAMHEAVY")
    assert cfg.aggregation.identifier_property == "destatis.zip"
    assert cfg.output.write_png is False


def test_remote_geojson_source_is_kept_verbatim(tmp_path: Path) -> None:
    text = MINIMAL.replace("data/regions.geojson", "https://example.com/regions.geojson")

    cfg = load_config(_write(tmp_path, text))

    assert cfg.paths.geojson_source == "https://example.com/regions.geojson"
    assert cfg.paths.geojson_path is None


def test_shipped_config_matches_default_ladder() -> None:
    cfg = load_config(REPO_ROOT / "config.yaml")

    assert cfg.labels.tiers == DEFAULT_LABEL_TIERS
    assert cfg.labels.radial == RadialPattern()
    assert cfg.canvas == CanvasConfig.default()


def test_custom_tiers_are_parsed(tmp_path: Path) -> None:
    text = MINIMAL + """
labels:
  tiers:
    - font_sizes: [12, 10.5]
      strategy: GRID
      containment: relaxed
      grid_step: 4
"""
    cfg = load_config(_write(tmp_path, text))

    (tier,) = cfg.labels.tiers
    assert tier.font_sizes == (12.0, 10.5)
    assert tier.strategy is SearchStrategy.GRID
    assert tier.containment is Containment.RELAXED
    assert tier.grid_step == 4.0


@pytest.mark.parametrize(
    ("section", "message"),
    [
        ("canvas:\n  width: 40\n  height: 900\n  padding: 22\n", "no drawable area"),
        ("canvas:\n  width: 860\n  height: 900\n  padding: -1\n", "padding must be >= 0"),
        (
            "labels:\n  tiers:\n    - font_sizes: [8]\n      strategy: spiral\n"
            "      containment: strict\n      grid_step: 5\n",
            "strategy' must be one of",
        ),
        (
            "labels:\n  tiers:\n    - font_sizes: []\n      strategy: grid\n"
            "      containment: strict\n      grid_step: 5\n",
            "font_sizes",
        ),
        ("contacts:\n  required_roles: [VAD, vad]\n", "duplicates"),
        ("aggregation:\n  identifier_property: zip\n  center_lon_property: lon\n"
         "  center_lat_property: lat\n  identifier_digits: 5\n  code_length: 6\n", "code_length"),
    ],
)
def test_invalid_sections_are_rejected(tmp_path: Path, section: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        load_config(_write(tmp_path, MINIMAL + section))


def test_missing_paths_section_is_rejected() -> None:
    with pytest.raises(ValueError, match="paths"):
        AppConfig.from_mapping({}, Path("config.yaml"))


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="mapping"):
        load_config(_write(tmp_path, "- just\n- a list\n"))
