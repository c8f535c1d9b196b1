from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "node_sizes": {"min": 4.0, "max": 32.0, "confidence_multiplier": 8.0},
    "forces": {
        "2d": {
            "charge_strength": -600.0,
            "link_distance_base": 160.0,
            "link_distance_multiplier": 40.0,
            "center": [0.0, 0.0],
            "velocity_decay": 0.4,
            "alpha_decay": 0.0228,
            "alpha_floor": 0.02,
            "tick_ms": 16,
            "max_catchup_ticks": 8,
            "seed": 7,
        },
        "3d": {
            "charge_strength": -120.0,
            "link_distance_base": 80.0,
            "link_distance_multiplier": 20.0,
            "center": [0.0, 0.0, 0.0],
            "z_strength": 0.05,
            "strata": {"environment": 100.0, "boundary": 0.0, "system": -100.0},
            "strata_jitter": 50.0,
            "velocity_decay": 0.4,
            "alpha_decay": 0.0228,
            "alpha_floor": 0.02,
            "tick_ms": 16,
            "max_catchup_ticks": 8,
            "seed": 11,
        },
    },
    "render": {
        "shape_scale": 1.8,
        "background": "#000000",
        "link_default": "rgba(255,255,255,0.8)",
        "particle_color": "rgba(255, 0, 0, 0.5)",
        "text_primary": "#ffffff",
        "text_value": "#FFD700",
        "link_label_color": "rgba(255, 255, 255, 0.9)",
        "forward_color": "#ff4d4d",
        "reverse_color": "#2b6cff",
        "graph_2d": {
            "zoom": 0.9,
            "link_width_multiplier": 2.0,
            "particle_count": 3,
            "particle_width": 6.0,
            "particle_speed": 0.005,
            "arrow_length": 4.0,
            "arrow_rel_pos": 0.5,
            "curvature": 0.3,
            "offset_px": 12.0,
        },
        "graph_3d": {
            "text_height": 8.0,
            "value_text_height": 6.0,
            "link_text_height": 4.0,
            "label_gap": 4.0,
            "link_width_multiplier": 3.0,
            "particle_count": 2,
            "particle_width": 2.0,
            "particle_speed": 0.008,
            "curvature": 0.3,
            "camera_distance": 700.0,
            "fov": 50.0,
            "background": "#111111",
        },
    },
    "overlay": {
        "label_gap_above": 20.0,
        "value_gap_below": 15.0,
        "link_offset_distance": 15.0,
        "link_box": [44.0, 12.0],
        "max_attempts": 8,
    },
    "timers": {
        "overlay_ms": 16,
        "orbit_ms": 10,
        "orbit_step": math.pi / 1000,
        "resize_min_ms": 33,
    },
    "display": {
        "bidirectional": False,
        "alternative_shapes": False,
        "show_link_texts": True,
        "show_main_values": True,
        "show_in_out_values": False,
        "is_rotating": True,
        "link_render_mode": "curved",
        "fixed_node_size": None,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    text = Path(config_path).read_text(encoding="utf-8")
    try:
        loaded = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Failed to parse config: {exc}") from exc
    if not isinstance(loaded, dict):
        raise RuntimeError(f"Config root must be a mapping, got {type(loaded).__name__}")
    return _deep_merge(DEFAULT_CONFIG, loaded)


def _pick(cls, data: Dict[str, Any]):
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in names})


@dataclass(frozen=True)
class NodeSizes:
    min: float = 4.0
    max: float = 32.0
    confidence_multiplier: float = 8.0


@dataclass(frozen=True)
class ForceProfile:
    charge_strength: float
    link_distance_base: float
    link_distance_multiplier: float
    center: Tuple[float, ...] = (0.0, 0.0)
    z_strength: float = 0.0
    strata: Dict[str, float] = field(default_factory=dict)
    strata_jitter: float = 0.0
    velocity_decay: float = 0.4
    alpha_decay: float = 0.0228
    alpha_floor: float = 0.02
    tick_ms: int = 16
    max_catchup_ticks: int = 8
    seed: int = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any], dims: str) -> "ForceProfile":
        raw = dict(config["forces"][dims])
        raw["center"] = tuple(float(v) for v in raw.get("center") or ())
        return _pick(cls, raw)


@dataclass(frozen=True)
class DisplayFlags:
    bidirectional: bool = False
    alternative_shapes: bool = False
    show_link_texts: bool = True
    show_main_values: bool = True
    show_in_out_values: bool = False
    is_rotating: bool = True
    link_render_mode: str = "curved"
    fixed_node_size: Optional[float] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DisplayFlags":
        return _pick(cls, config.get("display") or {})

    def updated(self, **changes: Any) -> "DisplayFlags":
        return replace(self, **changes)


@dataclass(frozen=True)
class TimerSettings:
    overlay_ms: int = 16
    orbit_ms: int = 10
    orbit_step: float = math.pi / 1000
    resize_min_ms: int = 33

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TimerSettings":
        return _pick(cls, config.get("timers") or {})


@dataclass(frozen=True)
class RenderSettings:
    shape_scale: float = 1.8
    background: str = "#000000"
    link_default: str = "rgba(255,255,255,0.8)"
    particle_color: str = "rgba(255, 0, 0, 0.5)"
    text_primary: str = "#ffffff"
    text_value: str = "#FFD700"
    link_label_color: str = "rgba(255, 255, 255, 0.9)"
    forward_color: str = "#ff4d4d"
    reverse_color: str = "#2b6cff"
    graph_2d: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_CONFIG["render"]["graph_2d"]))
    graph_3d: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_CONFIG["render"]["graph_3d"]))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RenderSettings":
        return _pick(cls, config.get("render") or {})

    def view(self, dims: str, key: str, default: Any = None) -> Any:
        table = self.graph_3d if dims == "3d" else self.graph_2d
        return table.get(key, default)


@dataclass(frozen=True)
class OverlaySettings:
    label_gap_above: float = 20.0
    value_gap_below: float = 15.0
    link_offset_distance: float = 15.0
    link_box: Tuple[float, float] = (44.0, 12.0)
    max_attempts: int = 8

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "OverlaySettings":
        raw = dict(config.get("overlay") or {})
        if "link_box" in raw:
            raw["link_box"] = tuple(float(v) for v in raw["link_box"])
        return _pick(cls, raw)


def node_sizes(config: Dict[str, Any]) -> NodeSizes:
    return _pick(NodeSizes, config.get("node_sizes") or {})


__all__ = [
    "DEFAULT_CONFIG",
    "DisplayFlags",
    "ForceProfile",
    "NodeSizes",
    "OverlaySettings",
    "RenderSettings",
    "TimerSettings",
    "load_config",
    "node_sizes",
]
