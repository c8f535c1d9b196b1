import json
import logging
from pathlib import Path

import pytest

from twin_core.config import (
    DEFAULT_CONFIG,
    DisplayFlags,
    ForceProfile,
    OverlaySettings,
    RenderSettings,
    TimerSettings,
    load_config,
    node_sizes,
)
from twin_core.logs import JsonFormatter

SHIPPED = Path(__file__).resolve().parent.parent / "config.yml"


def test_defaults_without_file():
    config = load_config()
    assert config == DEFAULT_CONFIG
    config["display"]["bidirectional"] = True
    assert DEFAULT_CONFIG["display"]["bidirectional"] is False


def test_overrides_merge_deeply(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("forces:\n  2d:\n    charge_strength: -50\ndisplay:\n  bidirectional: true\n", encoding="utf-8")
    config = load_config(path)
    assert config["forces"]["2d"]["charge_strength"] == -50
    assert config["forces"]["2d"]["link_distance_base"] == 160.0
    assert DisplayFlags.from_config(config).bidirectional is True


def test_bad_yaml_raises_runtime_error(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("forces: [unclosed\n", encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(path)


def test_non_mapping_root_is_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(path)


def test_profiles_and_settings_from_config():
    config = load_config()
    two = ForceProfile.from_config(config, "2d")
    three = ForceProfile.from_config(config, "3d")
    assert two.center == (0.0, 0.0)
    assert len(three.center) == 3
    assert three.strata["environment"] == 100.0
    assert OverlaySettings.from_config(config).link_box == (44.0, 12.0)
    assert TimerSettings.from_config(config).orbit_ms == 10
    assert node_sizes(config).max == 32.0
    render = RenderSettings.from_config(config)
    assert render.view("3d", "camera_distance") == 700.0
    assert render.view("2d", "missing", 1) == 1


def test_flags_update_returns_new_instance():
    flags = DisplayFlags()
    changed = flags.updated(link_render_mode="offset")
    assert flags.link_render_mode == "curved"
    assert changed.link_render_mode == "offset"


def test_shipped_config_loads():
    config = load_config(SHIPPED)
    assert ForceProfile.from_config(config, "3d").z_strength == 0.05
    assert DisplayFlags.from_config(config).is_rotating is True


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("twin", logging.WARNING, __file__, 1, "dataset-fallback", None, None)
    record.reason = "missing"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "dataset-fallback"
    assert payload["level"] == "WARNING"
    assert payload["reason"] == "missing"
    assert payload["time"].endswith("Z")
