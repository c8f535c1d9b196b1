"""
3D scene frame builder.

Each node becomes a custom object (mesh + label sprite + optional value
sprite); the renderer's own default node sphere is switched off so only the
custom objects are visible. Link sprites are re-centred on the link's
current (curve) midpoint on every build.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from twin_core.calculator import get_node_display_value
from twin_core.colors import node_color
from twin_core.config import DisplayFlags, RenderSettings
from twin_core.models import Link, Node
from twin_graph.twin_links import pair_hash_angle

from . import geometry as g
from .painter_2d import link_color, link_curvature
from .projector import PerspectiveCamera
from .shapes import Geometry3D, geometry_3d, node_radius

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

DEGRADED_MESSAGE = "3D view unavailable: this browser has no WebGL support"
AUTO_NODE = {"val": 0, "color": "transparent", "opacity": 0}
ARROW_REL_POS = {"source": 0.0, "middle": 0.5, "target": 1.0}


@dataclass
class Material:
    color: str
    opacity: float = 0.8
    transparent: bool = True
    side: str = "double"

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "opacity": self.opacity, "transparent": self.transparent, "side": self.side}


@dataclass
class Sprite:
    text: Any
    color: str
    text_height: float
    position: Vec3
    depth_write: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "color": self.color,
            "textHeight": self.text_height,
            "position": list(self.position),
            "depthWrite": self.depth_write,
        }


@dataclass
class NodeObject:
    node_id: str
    position: Vec3
    size: float
    geometry: Geometry3D
    material: Material
    label: Sprite
    value: Optional[Sprite] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "position": list(self.position),
            "size": self.size,
            "geometry": {"type": self.geometry.type, "args": list(self.geometry.args)},
            "material": self.material.to_dict(),
            "label": self.label.to_dict(),
            "value": self.value.to_dict() if self.value else None,
        }


@dataclass
class LinkObject:
    key: str
    points: List[Vec3]
    color: str
    width: float
    curvature: float = 0.0
    rotation: float = 0.0
    is_reverse: bool = False
    label: Optional[Sprite] = None
    particles: List[Vec3] = field(default_factory=list)
    arrow: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "points": [list(p) for p in self.points],
            "color": self.color,
            "width": self.width,
            "curvature": self.curvature,
            "rotation": self.rotation,
            "isReverse": self.is_reverse,
            "label": self.label.to_dict() if self.label else None,
            "particles": [list(p) for p in self.particles],
            "arrow": self.arrow,
        }


@dataclass
class SceneFrame:
    available: bool = True
    message: str = ""
    background: str = "#111111"
    camera: Dict[str, Any] = field(default_factory=dict)
    navigation_enabled: bool = True
    auto_node: Dict[str, Any] = field(default_factory=lambda: dict(AUTO_NODE))
    nodes: List[NodeObject] = field(default_factory=list)
    links: List[LinkObject] = field(default_factory=list)
    skipped_nodes: int = 0
    skipped_links: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "message": self.message,
            "background": self.background,
            "camera": self.camera,
            "navigationEnabled": self.navigation_enabled,
            "autoNode": self.auto_node,
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
            "skippedNodes": self.skipped_nodes,
            "skippedLinks": self.skipped_links,
        }


def _position(node: Optional[Node]) -> Optional[Vec3]:
    if node is None or node.x is None or node.y is None:
        return None
    return float(node.x), float(node.y), float(node.z or 0.0)


def link_sprite_text(link: Link) -> str:
    kind = link.influence_type or "Connection"
    return f"{kind} ({link.weight:.2f})" if link.weight else kind


def link_rotation(link: Link, flags: DisplayFlags) -> float:
    """Pair angle around the canonical axis; negative ranks sit half a turn away."""
    if not flags.bidirectional:
        return 0.0
    return pair_hash_angle(link) + (math.pi if (link.parallel_sign or 0) < 0 else 0.0)


def _node_object(node: Node, pos: Vec3, flags: DisplayFlags, render: RenderSettings, min_size: float) -> NodeObject:
    cfg = render.graph_3d
    size = node_radius(node, flags.fixed_node_size, min_size, render.shape_scale)
    gap = float(cfg.get("label_gap", 4.0))
    label = Sprite(
        text=node.label or node.id,
        color=render.text_primary,
        text_height=float(cfg.get("text_height", 8.0)),
        position=(pos[0], pos[1] + size + gap, pos[2]),
    )
    value = None
    display = get_node_display_value(node, flags.show_main_values, flags.show_in_out_values)
    if display:
        value = Sprite(
            text=display,
            color=render.text_value,
            text_height=float(cfg.get("value_text_height", 6.0)),
            position=(pos[0], pos[1] - (size + gap), pos[2]),
        )
    return NodeObject(
        node_id=node.id,
        position=pos,
        size=size,
        geometry=geometry_3d(node.type, size, flags.alternative_shapes),
        material=Material(color=node.color or node_color(node.type, flags.alternative_shapes)),
        label=label,
        value=value,
    )


def _link_object(
    link: Link,
    a: Vec3,
    b: Vec3,
    frame_ends: Tuple[Vec3, Vec3],
    flags: DisplayFlags,
    render: RenderSettings,
    now: float,
) -> LinkObject:
    cfg = render.graph_3d
    curvature = abs(link_curvature(link, flags, float(render.view("3d", "curvature", 0.3))))
    rotation = link_rotation(link, flags)
    if curvature:
        control = g.curve_control_3d(a, b, curvature, rotation, frame_ends[0], frame_ends[1])
    else:
        control = g.midpoint(a, b)
    points = [tuple(p) for p in g.sample_curve(a, control, b)]
    mid = g.quadratic_point(a, control, b, 0.5)

    label = None
    if flags.show_link_texts:
        label = Sprite(
            text=link_sprite_text(link),
            color="lightgrey",
            text_height=float(cfg.get("link_text_height", 4.0)),
            position=(mid[0], mid[1], mid[2]),
        )

    count = int(cfg.get("particle_count", 0))
    speed = float(cfg.get("particle_speed", 0.0))
    particles = [
        tuple(g.quadratic_point(a, control, b, (now * 60.0 * speed + i / count) % 1.0)) for i in range(count)
    ] if count > 0 else []

    arrow = None
    if link.show_arrow:
        t = ARROW_REL_POS.get(link.arrow_position, 1.0)
        arrow = {
            "position": list(g.quadratic_point(a, control, b, t)),
            "direction": list(g.normalize(g.quadratic_tangent(a, control, b, t))),
            "length": link.arrow_length,
            "color": link.arrow_color,
        }

    return LinkObject(
        key=link.key,
        points=points,
        color=link_color(link, flags, render),
        width=max(1.0, float(link.weight or 0.0) * float(cfg.get("link_width_multiplier", 3.0))),
        curvature=curvature,
        rotation=rotation,
        is_reverse=bool(link.is_reverse),
        label=label,
        particles=particles,
        arrow=arrow,
    )


def build_scene_frame(
    nodes: Sequence[Node],
    links: Sequence[Link],
    flags: Optional[DisplayFlags] = None,
    now: float = 0.0,
    render: Optional[RenderSettings] = None,
    camera: Optional[PerspectiveCamera] = None,
    available: bool = True,
    min_size: float = 4.0,
) -> SceneFrame:
    flags = flags or DisplayFlags()
    render = render or RenderSettings()
    frame = SceneFrame(
        background=str(render.graph_3d.get("background", "#111111")),
        camera=camera.to_dict() if camera is not None else {},
        navigation_enabled=not flags.is_rotating,
    )
    if not available:
        frame.available = False
        frame.message = DEGRADED_MESSAGE
        return frame

    index = {n.id: n for n in nodes}
    for node in nodes:
        pos = _position(node)
        if pos is None:
            frame.skipped_nodes += 1
            continue
        frame.nodes.append(_node_object(node, pos, flags, render, min_size))

    for link in links:
        a = _position(index.get(link.source))
        b = _position(index.get(link.target))
        if a is None or b is None or a == b:
            frame.skipped_links += 1
            continue
        # both directions of a pair bend relative to the same ordered axis
        ends = (a, b) if link.source <= link.target else (b, a)
        frame.links.append(_link_object(link, a, b, ends, flags, render, now))

    if frame.skipped_links or frame.skipped_nodes:
        logger.debug(
            "scene-skipped",
            extra={"skipped_nodes": frame.skipped_nodes, "skipped_links": frame.skipped_links},
        )
    return frame


__all__ = [
    "AUTO_NODE",
    "DEGRADED_MESSAGE",
    "LinkObject",
    "Material",
    "NodeObject",
    "SceneFrame",
    "Sprite",
    "build_scene_frame",
    "link_rotation",
    "link_sprite_text",
]
