"""
Continuous force-directed layout for one view's clone of the dataset.

Each view owns exactly one engine and one deep-copied node list; the engine
writes x/y(/z) back onto those nodes after every tick. The simulation is
never stopped: alpha cools towards a non-zero floor so resuming a paused
camera never meets a cold, then suddenly reheated, relaxation.
"""
from __future__ import annotations

import logging
import math
import random
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from twin_core.config import ForceProfile
from twin_core.models import Link, Node

from .twin_forces import EdgeSpec, apply_axis_spring, apply_center, apply_links, apply_many_body

logger = logging.getLogger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


class ForceLayout:
    dims = 2

    def __init__(
        self,
        nodes: List[Node],
        links: Sequence[Link],
        profile: ForceProfile,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.nodes = nodes
        self.profile = profile
        self.alpha = 1.0
        self._clock = clock
        self._rng = random.Random(profile.seed)
        self._origin: Optional[float] = None
        self._ticks_due = 0
        self.tick_count = 0
        self._index: Dict[str, int] = {n.id: i for i, n in enumerate(nodes)}
        self._seed_positions()
        self._pos: List[List[float]] = [self._read(n) for n in nodes]
        self._vel: List[List[float]] = [[0.0] * self.dims for _ in nodes]
        self._edges: List[EdgeSpec] = []
        self.ignored_links = 0
        self.set_links(links)

    # -- setup ----------------------------------------------------------
    def _seed_positions(self) -> None:
        for i, node in enumerate(self.nodes):
            if node.x is not None and node.y is not None:
                continue
            radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * INITIAL_ANGLE
            node.x = radius * math.cos(angle)
            node.y = radius * math.sin(angle)

    def _read(self, node: Node) -> List[float]:
        return [float(node.x or 0.0), float(node.y or 0.0)]

    def _write(self, node: Node, pos: List[float]) -> None:
        node.x, node.y = pos[0], pos[1]

    def _pin_of(self, node: Node) -> List[Optional[float]]:
        return [node.fx, node.fy]

    def set_links(self, links: Sequence[Link]) -> None:
        """Resolve links to node indices; links to unknown ids are ignored."""
        resolved: List[Tuple[int, int, Link]] = []
        ignored = 0
        for link in links:
            s = self._index.get(link.source)
            t = self._index.get(link.target)
            if s is None or t is None:
                ignored += 1
                continue
            resolved.append((s, t, link))

        count = [0] * len(self.nodes)
        for s, t, _ in resolved:
            count[s] += 1
            count[t] += 1

        edges: List[EdgeSpec] = []
        for s, t, link in resolved:
            distance = self.profile.link_distance_base + float(link.weight or 0.0) * self.profile.link_distance_multiplier
            strength = 1.0 / max(1, min(count[s], count[t]))
            bias = count[s] / max(1, count[s] + count[t])
            edges.append((s, t, distance, strength, bias))
        self._edges = edges
        self.ignored_links = ignored
        if ignored:
            logger.debug("layout-dangling-links", extra={"dims": self.dims, "ignored": ignored})

    # -- simulation -----------------------------------------------------
    def _apply_extra_forces(self) -> None:
        """Hook for dimension-specific forces."""

    def step(self) -> None:
        profile = self.profile
        self.alpha += (profile.alpha_floor - self.alpha) * profile.alpha_decay
        if self._pos:
            apply_links(self._pos, self._vel, self._edges, self.alpha, self._rng)
            apply_many_body(self._pos, self._vel, profile.charge_strength, self.alpha, self._rng)
            apply_center(self._pos, profile.center)
            self._apply_extra_forces()
        decay = 1.0 - profile.velocity_decay
        for node, pos, vel in zip(self.nodes, self._pos, self._vel):
            pins = self._pin_of(node)
            for k in range(self.dims):
                if pins[k] is not None:
                    pos[k] = float(pins[k])
                    vel[k] = 0.0
                else:
                    vel[k] *= decay
                    pos[k] += vel[k]
            self._write(node, pos)
        self.tick_count += 1

    def start(self, now: Optional[float] = None) -> None:
        if self._origin is None:
            self._origin = self._clock() if now is None else now

    def advance(self, now: Optional[float] = None) -> int:
        """Run every fixed tick elapsed since start that has not run yet."""
        now = self._clock() if now is None else now
        if self._origin is None:
            self.start(now)
        interval = max(self.profile.tick_ms, 1) / 1000.0
        due = int((now - self._origin) / interval)
        pending = due - self._ticks_due
        if pending <= 0:
            return 0
        # a long stall is not replayed: the backlog beyond max_catchup is dropped
        run = min(pending, max(1, self.profile.max_catchup_ticks))
        for _ in range(run):
            self.step()
        self._ticks_due = due
        return run

    # -- interaction ----------------------------------------------------
    def pin(self, node_id: str, x: float, y: float, z: Optional[float] = None) -> bool:
        idx = self._index.get(node_id)
        if idx is None:
            return False
        node = self.nodes[idx]
        node.fx, node.fy = x, y
        if self.dims == 3 and z is not None:
            node.fz = z
        return True

    def release(self, node_id: str) -> bool:
        idx = self._index.get(node_id)
        if idx is None:
            return False
        node = self.nodes[idx]
        node.fx = node.fy = node.fz = None
        return True

    def positions(self) -> Dict[str, Tuple[float, ...]]:
        return {n.id: tuple(p) for n, p in zip(self.nodes, self._pos)}


class ForceLayout2D(ForceLayout):
    dims = 2


class ForceLayout3D(ForceLayout):
    dims = 3

    def _seed_positions(self) -> None:
        super()._seed_positions()
        strata = self.profile.strata or {}
        jitter = self.profile.strata_jitter
        for node in self.nodes:
            if node.z is not None:
                continue
            base = strata.get(node.type, 0.0)
            node.z = base + (self._rng.random() - 0.5) * jitter

    def _read(self, node: Node) -> List[float]:
        return [float(node.x or 0.0), float(node.y or 0.0), float(node.z or 0.0)]

    def _write(self, node: Node, pos: List[float]) -> None:
        node.x, node.y, node.z = pos[0], pos[1], pos[2]

    def _pin_of(self, node: Node) -> List[Optional[float]]:
        return [node.fx, node.fy, node.fz]

    def _apply_extra_forces(self) -> None:
        if self.profile.z_strength:
            apply_axis_spring(self._pos, self._vel, 2, 0.0, self.profile.z_strength, self.alpha)


def build_layout(nodes: List[Node], links: Sequence[Link], profile: ForceProfile, dims: int, **kwargs) -> ForceLayout:
    cls = ForceLayout3D if dims == 3 else ForceLayout2D
    return cls(nodes, links, profile, **kwargs)
