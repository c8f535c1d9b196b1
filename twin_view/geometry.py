from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

Vec = Tuple[float, ...]


def sub(a: Sequence[float], b: Sequence[float]) -> Vec:
    return tuple(x - y for x, y in zip(a, b))


def add(a: Sequence[float], b: Sequence[float]) -> Vec:
    return tuple(x + y for x, y in zip(a, b))


def scale(a: Sequence[float], s: float) -> Vec:
    return tuple(x * s for x in a)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return sum(x * y for x, y in zip(a, b))


def cross(a: Sequence[float], b: Sequence[float]) -> Vec:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def norm(a: Sequence[float]) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Sequence[float]) -> Vec:
    n = norm(a)
    if n == 0.0:
        return tuple(0.0 for _ in a)
    return tuple(x / n for x in a)


def lerp(a: Sequence[float], b: Sequence[float], t: float) -> Vec:
    return tuple(x + (y - x) * t for x, y in zip(a, b))


def midpoint(a: Sequence[float], b: Sequence[float]) -> Vec:
    return lerp(a, b, 0.5)


def rotate_about_axis(v: Sequence[float], axis: Sequence[float], angle: float) -> Vec:
    """Rodrigues rotation of v around a unit axis."""
    k = normalize(axis)
    c, s = math.cos(angle), math.sin(angle)
    kxv = cross(k, v)
    kdv = dot(k, v)
    return tuple(v[i] * c + kxv[i] * s + k[i] * kdv * (1.0 - c) for i in range(3))


def quadratic_point(p0: Sequence[float], c: Sequence[float], p1: Sequence[float], t: float) -> Vec:
    u = 1.0 - t
    return tuple(u * u * a + 2 * u * t * b + t * t * d for a, b, d in zip(p0, c, p1))


def quadratic_tangent(p0: Sequence[float], c: Sequence[float], p1: Sequence[float], t: float) -> Vec:
    u = 1.0 - t
    return tuple(2 * u * (b - a) + 2 * t * (d - b) for a, b, d in zip(p0, c, p1))


def perpendicular_2d(a: Sequence[float], b: Sequence[float]) -> Vec:
    """Unit left-normal of the segment a->b (zero vector for a degenerate segment)."""
    d = normalize(sub(b, a))
    return (-d[1], d[0])


def curve_control_2d(a: Sequence[float], b: Sequence[float], curvature: float) -> Vec:
    length = norm(sub(b, a))
    return add(midpoint(a, b), scale(perpendicular_2d(a, b), curvature * length))


def curve_control_3d(
    a: Sequence[float],
    b: Sequence[float],
    curvature: float,
    rotation: float,
    frame_from: Optional[Sequence[float]] = None,
    frame_to: Optional[Sequence[float]] = None,
) -> Vec:
    """
    Control point bent away from the segment a->b, rotated around the
    segment axis. frame_from/frame_to pick the axis used to build the
    reference normal so opposite directions can share one frame.
    """
    fa = a if frame_from is None else frame_from
    fb = b if frame_to is None else frame_to
    axis = sub(fb, fa)
    length = norm(sub(b, a))
    if norm(axis) == 0.0 or length == 0.0:
        return midpoint(a, b)
    ref = cross(axis, (0.0, 0.0, 1.0))
    if norm(ref) < 1e-9:
        ref = cross(axis, (0.0, 1.0, 0.0))
    normal = rotate_about_axis(normalize(ref), axis, rotation)
    return add(midpoint(a, b), scale(normal, curvature * length))


def sample_curve(p0: Sequence[float], c: Sequence[float], p1: Sequence[float], segments: int = 16) -> Tuple[Vec, ...]:
    return tuple(quadratic_point(p0, c, p1, i / segments) for i in range(segments + 1))
