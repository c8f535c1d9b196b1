"""
Per-type node geometry for both views.

2D shapes are drawn around the node centre in graph units; 3D shapes are
geometry specs (three.js naming) that a scene painter turns into meshes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

Point = Tuple[float, float]


@dataclass(frozen=True)
class Shape2D:
    kind: str  # "circle" or "polygon"
    radius: float
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class Geometry3D:
    type: str
    args: Tuple[float, ...]


def _circle(radius: float) -> Shape2D:
    return Shape2D("circle", radius)


def _triangle(radius: float) -> Shape2D:
    return Shape2D(
        "polygon",
        radius,
        ((0.0, -radius), (-radius * 0.866, radius * 0.5), (radius * 0.866, radius * 0.5)),
    )


def _diamond(radius: float) -> Shape2D:
    return Shape2D("polygon", radius, ((0.0, -radius), (radius, 0.0), (0.0, radius), (-radius, 0.0)))


def _square(radius: float) -> Shape2D:
    h = radius / 2.0
    return Shape2D("polygon", radius, ((-h, -h), (h, -h), (h, h), (-h, h)))


SHAPE_2D: Dict[str, Callable[[float], Shape2D]] = {
    "environment": _circle,
    "boundary": _triangle,
    "system": _diamond,
    "default": _circle,
}

SHAPE_2D_ALT: Dict[str, Callable[[float], Shape2D]] = {
    "environment": _triangle,
    "boundary": _square,
    "system": _square,
    "default": _triangle,
}


def _sphere(size: float) -> Geometry3D:
    return Geometry3D("SphereGeometry", (size / 2, 16, 16))


SHAPE_3D: Dict[str, Callable[[float], Geometry3D]] = {
    "environment": _sphere,
    "boundary": lambda size: Geometry3D("ConeGeometry", (size / 2, size, 6)),
    "system": lambda size: Geometry3D("OctahedronGeometry", (size / 2,)),
    "default": _sphere,
}

SHAPE_3D_ALT: Dict[str, Callable[[float], Geometry3D]] = {
    "environment": lambda size: Geometry3D("ConeGeometry", (size / 2, size, 4)),
    "boundary": lambda size: Geometry3D("BoxGeometry", (size, size, size)),
    "system": lambda size: Geometry3D("BoxGeometry", (size, size, size)),
    "default": lambda size: Geometry3D("ConeGeometry", (size / 2, size, 4)),
}


def shape_2d(node_type: str, radius: float, alternative: bool = False) -> Shape2D:
    table = SHAPE_2D_ALT if alternative else SHAPE_2D
    return table.get(node_type, table["default"])(radius)


def geometry_3d(node_type: str, size: float, alternative: bool = False) -> Geometry3D:
    table = SHAPE_3D_ALT if alternative else SHAPE_3D
    return table.get(node_type, table["default"])(size)


def node_radius(node, fixed_size: Optional[float] = None, minimum: float = 4.0, scale: float = 1.8) -> float:
    """Drawn radius shared by the canvas, the scene and the overlay anchors."""
    base = fixed_size or node.size or minimum
    return float(base) * scale
