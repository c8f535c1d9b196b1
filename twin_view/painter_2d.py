"""
2D canvas frame builder.

Turns one view's nodes and links into screen-space drawing primitives. No
text is drawn here; titles, values and link labels belong to the overlay.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from twin_core.colors import node_color, with_alpha
from twin_core.config import DisplayFlags, RenderSettings
from twin_core.models import Link, Node

from . import geometry as g
from .projector import Viewport2D
from .shapes import node_radius, shape_2d

logger = logging.getLogger(__name__)

NODE_BORDER = with_alpha("#ffffff", 0.5)
Point = Tuple[float, float]


@dataclass
class NodeShape:
    node_id: str
    kind: str
    center: Point
    radius: float
    points: List[Point]
    fill: str
    border: str = NODE_BORDER
    border_width: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "kind": self.kind,
            "center": list(self.center),
            "radius": self.radius,
            "points": [list(p) for p in self.points],
            "fill": self.fill,
            "border": self.border,
            "borderWidth": self.border_width,
        }


@dataclass
class Arrow:
    tip: Point
    left: Point
    right: Point
    color: str

    def to_dict(self) -> Dict[str, Any]:
        return {"tip": list(self.tip), "left": list(self.left), "right": list(self.right), "color": self.color}


@dataclass
class LinkStroke:
    key: str
    points: List[Point]
    color: str
    width: float
    is_reverse: bool = False
    arrow: Optional[Arrow] = None
    particles: List[Point] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "points": [list(p) for p in self.points],
            "color": self.color,
            "width": self.width,
            "isReverse": self.is_reverse,
            "arrow": self.arrow.to_dict() if self.arrow else None,
            "particles": [list(p) for p in self.particles],
        }


@dataclass
class CanvasFrame:
    width: float
    height: float
    background: str
    mode: str
    nodes: List[NodeShape] = field(default_factory=list)
    links: List[LinkStroke] = field(default_factory=list)
    skipped_nodes: int = 0
    skipped_links: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "background": self.background,
            "mode": self.mode,
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
            "skippedNodes": self.skipped_nodes,
            "skippedLinks": self.skipped_links,
        }


def _position(node: Optional[Node]) -> Optional[Point]:
    if node is None or node.x is None or node.y is None:
        return None
    return float(node.x), float(node.y)


def link_color(link: Link, flags: DisplayFlags, render: RenderSettings) -> str:
    if not flags.bidirectional or link.is_reverse is None:
        return render.link_default
    return render.reverse_color if link.is_reverse else render.forward_color


def link_curvature(link: Link, flags: DisplayFlags, base: float) -> float:
    """Signed bend of a link; the sign picks the side of the canonical pair normal."""
    if not flags.bidirectional or not link.parallel_sign:
        return 0.0
    return base * link.parallel_sign


def _canonical(link: Link, a: Point, b: Point) -> Tuple[Point, Point]:
    # endpoints ordered lower id -> higher id, shared by every link of a pair
    return (a, b) if link.source <= link.target else (b, a)


def _arrow(path: Sequence[Point], rel_pos: float, length: float, color: str) -> Optional[Arrow]:
    if len(path) < 2 or length <= 0:
        return None
    # walk the polyline to the requested fraction of its length
    seglens = [g.norm(g.sub(b, a)) for a, b in zip(path, path[1:])]
    total = sum(seglens)
    if total == 0:
        return None
    goal = min(max(rel_pos, 0.0), 1.0) * total
    run = 0.0
    for (a, b), seg in zip(zip(path, path[1:]), seglens):
        if seg == 0:
            continue
        if run + seg >= goal:
            t = (goal - run) / seg
            d = g.normalize(g.sub(b, a))
            # the arrow is centred on the point, like force-graph's rel-pos arrows
            tip = g.add(g.lerp(a, b, t), g.scale(d, length / 2.0))
            base = g.sub(tip, g.scale(d, length))
            n = (-d[1], d[0])
            half = length / 2.0
            return Arrow(
                tip=(tip[0], tip[1]),
                left=(base[0] + n[0] * half, base[1] + n[1] * half),
                right=(base[0] - n[0] * half, base[1] - n[1] * half),
                color=color,
            )
        run += seg
    return None


def _particles(p0: Point, c: Optional[Point], p1: Point, count: int, speed: float, now: float) -> List[Point]:
    if count <= 0:
        return []
    frames = now * 60.0
    out: List[Point] = []
    for i in range(count):
        t = (frames * speed + i / count) % 1.0
        pt = g.quadratic_point(p0, c, p1, t) if c is not None else g.lerp(p0, p1, t)
        out.append((pt[0], pt[1]))
    return out


def _curved_stroke(
    link: Link,
    a: Point,
    b: Point,
    flags: DisplayFlags,
    render: RenderSettings,
    now: float,
) -> LinkStroke:
    curvature = link_curvature(link, flags, float(render.view("2d", "curvature", 0.3)))
    color = link_color(link, flags, render)
    if curvature:
        lo, hi = _canonical(link, a, b)
        control: Optional[Point] = g.curve_control_2d(lo, hi, curvature)
        path = [tuple(p) for p in g.sample_curve(a, control, b)]
    else:
        control = None
        path = [a, b]
    return LinkStroke(
        key=link.key,
        points=path,
        color=color,
        width=max(1.0, float(link.weight or 0.0) * float(render.view("2d", "link_width_multiplier", 2.0))),
        is_reverse=bool(link.is_reverse),
        arrow=_arrow(
            path, float(render.view("2d", "arrow_rel_pos", 0.5)), float(render.view("2d", "arrow_length", 4.0)), color
        ),
        particles=_particles(
            a,
            control,
            b,
            int(render.view("2d", "particle_count", 0)),
            float(render.view("2d", "particle_speed", 0.0)),
            now,
        ),
    )


def _offset_stroke(
    link: Link,
    a: Point,
    b: Point,
    zoom: float,
    flags: DisplayFlags,
    render: RenderSettings,
) -> LinkStroke:
    # constant on screen: the graph-space offset shrinks as the view zooms in
    offset = float(render.view("2d", "offset_px", 12.0)) / max(zoom, 1e-6)
    if flags.bidirectional and link.parallel_sign:
        # one lane per parallel rank, on the side given by the sign
        lo, hi = _canonical(link, a, b)
        n = g.perpendicular_2d(lo, hi)
        offset *= link.parallel_sign
    else:
        n = g.perpendicular_2d(a, b)
    start = (a[0] + n[0] * offset, a[1] + n[1] * offset)
    end = (b[0] + n[0] * offset, b[1] + n[1] * offset)
    color = link_color(link, flags, render)
    path = [start, end]
    return LinkStroke(
        key=link.key,
        points=path,
        color=color,
        width=max(1.0, float(link.weight or 0.0) * float(render.view("2d", "link_width_multiplier", 2.0))),
        is_reverse=bool(link.is_reverse),
        arrow=_arrow(
            path, float(render.view("2d", "arrow_rel_pos", 0.5)), float(render.view("2d", "arrow_length", 4.0)), color
        ),
    )


def _to_screen(viewport: Viewport2D, stroke: LinkStroke) -> LinkStroke:
    def s(p: Point) -> Point:
        return viewport.graph_to_screen(p[0], p[1])

    stroke.points = [s(p) for p in stroke.points]
    stroke.particles = [s(p) for p in stroke.particles]
    if stroke.arrow is not None:
        stroke.arrow = Arrow(s(stroke.arrow.tip), s(stroke.arrow.left), s(stroke.arrow.right), stroke.arrow.color)
    return stroke


def build_canvas_frame(
    nodes: Sequence[Node],
    links: Sequence[Link],
    viewport: Viewport2D,
    flags: Optional[DisplayFlags] = None,
    now: float = 0.0,
    render: Optional[RenderSettings] = None,
    min_size: float = 4.0,
) -> CanvasFrame:
    flags = flags or DisplayFlags()
    render = render or RenderSettings()
    frame = CanvasFrame(
        width=viewport.width,
        height=viewport.height,
        background=render.background,
        mode=flags.link_render_mode,
    )
    index = {n.id: n for n in nodes}

    for link in links:
        a = _position(index.get(link.source))
        b = _position(index.get(link.target))
        if a is None or b is None or a == b:
            frame.skipped_links += 1
            continue
        if flags.link_render_mode == "offset":
            stroke = _offset_stroke(link, a, b, viewport.k, flags, render)
        else:
            stroke = _curved_stroke(link, a, b, flags, render, now)
        frame.links.append(_to_screen(viewport, stroke))

    for node in nodes:
        center = _position(node)
        if center is None:
            frame.skipped_nodes += 1
            continue
        radius = node_radius(node, flags.fixed_node_size, min_size, render.shape_scale)
        shape = shape_2d(node.type, radius, flags.alternative_shapes)
        points = [viewport.graph_to_screen(center[0] + px, center[1] + py) for px, py in shape.points]
        frame.nodes.append(
            NodeShape(
                node_id=node.id,
                kind=shape.kind,
                center=viewport.graph_to_screen(*center),
                radius=radius * viewport.k,
                points=points,
                fill=node.color or node_color(node.type, flags.alternative_shapes),
            )
        )

    if frame.skipped_links or frame.skipped_nodes:
        logger.debug(
            "canvas-skipped",
            extra={"skipped_nodes": frame.skipped_nodes, "skipped_links": frame.skipped_links},
        )
    return frame


__all__ = [
    "Arrow",
    "CanvasFrame",
    "LinkStroke",
    "NodeShape",
    "build_canvas_frame",
    "link_color",
    "link_curvature",
]
