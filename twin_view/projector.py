"""
Simulation space -> screen space.

`Viewport2D` mirrors a canvas zoom/pan transform (screen = graph * k + t).
`PerspectiveCamera` is a look-at pinhole camera matching a WebGL perspective
projection. The `Projector*` adapters give the overlay synchronizer and the
click hit-test one interface over either view.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from twin_core.models import Node

from . import geometry as g

ScreenPoint = Tuple[float, float]


@dataclass
class Viewport2D:
    width: float
    height: float
    k: float = 1.0
    tx: Optional[float] = None
    ty: Optional[float] = None

    def __post_init__(self) -> None:
        if self.tx is None:
            self.tx = self.width / 2.0
        if self.ty is None:
            self.ty = self.height / 2.0

    def graph_to_screen(self, x: float, y: float) -> ScreenPoint:
        return x * self.k + self.tx, y * self.k + self.ty

    def screen_to_graph(self, sx: float, sy: float) -> ScreenPoint:
        return (sx - self.tx) / self.k, (sy - self.ty) / self.k

    def zoom_by(self, factor: float, anchor: Optional[ScreenPoint] = None) -> None:
        if factor <= 0:
            return
        ax, ay = anchor if anchor is not None else (self.width / 2.0, self.height / 2.0)
        gx, gy = self.screen_to_graph(ax, ay)
        self.k *= factor
        self.tx = ax - gx * self.k
        self.ty = ay - gy * self.k

    def pan_by(self, dx: float, dy: float) -> None:
        self.tx += dx
        self.ty += dy

    def center_at(self, x: float, y: float) -> None:
        self.tx = self.width / 2.0 - x * self.k
        self.ty = self.height / 2.0 - y * self.k

    def resize(self, width: float, height: float) -> None:
        cx, cy = self.screen_to_graph(self.width / 2.0, self.height / 2.0)
        self.width, self.height = width, height
        self.center_at(cx, cy)

    def zoom_to_fit(self, points: Iterable[Sequence[float]], padding: float = 20.0) -> None:
        pts = [p for p in points if p is not None]
        if not pts:
            return
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        span_x = max(max(xs) - min(xs), 1e-6)
        span_y = max(max(ys) - min(ys), 1e-6)
        self.k = max(1e-3, min((self.width - 2 * padding) / span_x, (self.height - 2 * padding) / span_y))
        self.center_at((max(xs) + min(xs)) / 2.0, (max(ys) + min(ys)) / 2.0)

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "k": self.k, "x": self.tx, "y": self.ty}


@dataclass
class PerspectiveCamera:
    width: float
    height: float
    fov: float = 50.0
    position: Tuple[float, float, float] = (0.0, 0.0, 700.0)
    target: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    up: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    near: float = 0.1

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 1.0

    @property
    def focal(self) -> float:
        return 1.0 / math.tan(math.radians(self.fov) / 2.0)

    def basis(self) -> Tuple[g.Vec, g.Vec, g.Vec]:
        forward = g.normalize(g.sub(self.target, self.position))
        right = g.normalize(g.cross(forward, self.up))
        if g.norm(right) == 0.0:
            right = (1.0, 0.0, 0.0)
        true_up = g.cross(right, forward)
        return right, true_up, forward

    def to_camera(self, point: Sequence[float]) -> g.Vec:
        right, up, forward = self.basis()
        d = g.sub(point, self.position)
        return g.dot(d, right), g.dot(d, up), g.dot(d, forward)

    def project(self, point: Sequence[float]) -> Optional[Tuple[float, float, float]]:
        """Screen x, y (pixels, origin top-left) and depth; None when behind the near plane."""
        xc, yc, zc = self.to_camera(point)
        if zc <= self.near:
            return None
        f = self.focal
        ndc_x = (xc * f / self.aspect) / zc
        ndc_y = (yc * f) / zc
        sx = (ndc_x + 1.0) / 2.0 * self.width
        sy = (1.0 - ndc_y) / 2.0 * self.height
        return sx, sy, zc

    def pixels_per_unit(self, depth: float) -> float:
        if depth <= 0:
            return 0.0
        return self.focal * self.height / 2.0 / depth

    def resize(self, width: float, height: float) -> None:
        self.width, self.height = width, height

    def orbit_position(self, angle: float, distance: float) -> Tuple[float, float, float]:
        """Place the camera on a horizontal circle around the target, keeping its height."""
        tx, ty, tz = self.target
        self.position = (tx + distance * math.sin(angle), self.position[1], tz + distance * math.cos(angle))
        return self.position

    @property
    def distance(self) -> float:
        return g.norm(g.sub(self.position, self.target))

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "fov": self.fov,
            "position": list(self.position),
            "target": list(self.target),
            "up": list(self.up),
        }


class Projector2D:
    def __init__(self, viewport: Viewport2D, label_gap: float = 20.0, value_gap: float = 15.0) -> None:
        self.viewport = viewport
        self.label_gap = label_gap
        self.value_gap = value_gap

    def world_position(self, node: Node) -> Optional[Tuple[float, float]]:
        if node.x is None or node.y is None:
            return None
        return float(node.x), float(node.y)

    def project_point(self, pos: Sequence[float]) -> Optional[ScreenPoint]:
        if pos is None:
            return None
        return self.viewport.graph_to_screen(pos[0], pos[1])

    def project_node(self, node: Node) -> Optional[ScreenPoint]:
        return self.project_point(self.world_position(node))

    def label_anchors(self, node: Node, size: float) -> Tuple[Optional[ScreenPoint], Optional[ScreenPoint]]:
        p = self.project_node(node)
        if p is None:
            return None, None
        return (p[0], p[1] - size - self.label_gap), (p[0], p[1] + size + self.value_gap)

    def pixel_radius(self, node: Node, size: float) -> float:
        return size * self.viewport.k


class Projector3D:
    def __init__(self, camera: PerspectiveCamera, label_gap: float = 4.0) -> None:
        self.camera = camera
        self.label_gap = label_gap

    def world_position(self, node: Node) -> Optional[Tuple[float, float, float]]:
        if node.x is None or node.y is None:
            return None
        return float(node.x), float(node.y), float(node.z or 0.0)

    def project_point(self, pos: Sequence[float]) -> Optional[ScreenPoint]:
        if pos is None:
            return None
        hit = self.camera.project(pos)
        if hit is None:
            return None
        return hit[0], hit[1]

    def project_node(self, node: Node) -> Optional[ScreenPoint]:
        return self.project_point(self.world_position(node))

    def label_anchors(self, node: Node, size: float) -> Tuple[Optional[ScreenPoint], Optional[ScreenPoint]]:
        pos = self.world_position(node)
        if pos is None:
            return None, None
        offset = size + self.label_gap
        above = self.project_point((pos[0], pos[1] + offset, pos[2]))
        below = self.project_point((pos[0], pos[1] - offset, pos[2]))
        return above, below

    def pixel_radius(self, node: Node, size: float) -> float:
        pos = self.world_position(node)
        if pos is None:
            return 0.0
        hit = self.camera.project(pos)
        if hit is None:
            return 0.0
        return size * self.camera.pixels_per_unit(hit[2])


@dataclass
class HitResult:
    node: Node
    distance: float


def hit_test(
    nodes: Sequence[Node],
    projector,
    sx: float,
    sy: float,
    size_of,
    min_radius: float = 6.0,
) -> Optional[HitResult]:
    """Nearest node whose projected disc contains the screen point."""
    best: Optional[HitResult] = None
    for node in nodes:
        p = projector.project_node(node)
        if p is None:
            continue
        d = math.hypot(p[0] - sx, p[1] - sy)
        radius = max(projector.pixel_radius(node, size_of(node)), min_radius)
        if d > radius:
            continue
        if best is None or d < best.distance:
            best = HitResult(node=node, distance=d)
    return best


__all__: List[str] = [
    "HitResult",
    "PerspectiveCamera",
    "Projector2D",
    "Projector3D",
    "Viewport2D",
    "hit_test",
]
