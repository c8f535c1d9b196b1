from __future__ import annotations

import math
import random
from typing import List, Sequence, Tuple

Vector = List[float]
EdgeSpec = Tuple[int, int, float, float, float]  # source, target, distance, strength, bias

DISTANCE_MIN2 = 1.0


def jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


def apply_many_body(
    positions: Sequence[Vector],
    velocities: Sequence[Vector],
    strength: float,
    alpha: float,
    rng: random.Random,
) -> None:
    """Pairwise inverse-distance charge; negative strength repels."""
    count = len(positions)
    dims = len(positions[0]) if count else 0
    for i in range(count):
        pi = positions[i]
        for j in range(i + 1, count):
            pj = positions[j]
            delta = [pj[k] - pi[k] for k in range(dims)]
            l2 = sum(d * d for d in delta)
            if l2 == 0.0:
                delta = [jiggle(rng) for _ in range(dims)]
                l2 = sum(d * d for d in delta)
            if l2 < DISTANCE_MIN2:
                l2 = math.sqrt(DISTANCE_MIN2 * l2)
            w = strength * alpha / l2
            vi = velocities[i]
            vj = velocities[j]
            for k in range(dims):
                vi[k] += delta[k] * w
                vj[k] -= delta[k] * w


def apply_links(
    positions: Sequence[Vector],
    velocities: Sequence[Vector],
    edges: Sequence[EdgeSpec],
    alpha: float,
    rng: random.Random,
) -> None:
    """Spring towards each edge's target distance, split by endpoint degree."""
    for s, t, distance, strength, bias in edges:
        ps, pt = positions[s], positions[t]
        vs, vt = velocities[s], velocities[t]
        dims = len(ps)
        delta = [(pt[k] + vt[k]) - (ps[k] + vs[k]) for k in range(dims)]
        if all(d == 0.0 for d in delta):
            delta = [jiggle(rng) for _ in range(dims)]
        length = math.sqrt(sum(d * d for d in delta))
        factor = (length - distance) / length * alpha * strength
        for k in range(dims):
            shift = delta[k] * factor
            vt[k] -= shift * bias
            vs[k] += shift * (1.0 - bias)


def apply_center(positions: Sequence[Vector], anchor: Sequence[float], strength: float = 1.0) -> None:
    """Translate every position so the centroid moves onto the anchor."""
    count = len(positions)
    if not count:
        return
    dims = len(positions[0])
    for k in range(dims):
        mean = sum(p[k] for p in positions) / count
        target = anchor[k] if k < len(anchor) else 0.0
        shift = (mean - target) * strength
        for p in positions:
            p[k] -= shift


def apply_axis_spring(
    positions: Sequence[Vector],
    velocities: Sequence[Vector],
    axis: int,
    target: float,
    strength: float,
    alpha: float,
) -> None:
    for p, v in zip(positions, velocities):
        v[axis] += (target - p[axis]) * strength * alpha
