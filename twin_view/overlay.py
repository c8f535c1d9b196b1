"""
Screen-space text overlay kept in sync with a moving layout.

Node titles sit above each node, node values below; link labels sit near
the projected link midpoint and are nudged around until they stop
overlapping labels already placed in the same frame.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from twin_core.calculator import get_node_display_value
from twin_core.config import DisplayFlags, OverlaySettings
from twin_core.models import Link, Node

from .shapes import node_radius

logger = logging.getLogger(__name__)

NODE_Z_INDEX = 200
LINK_Z_INDEX = 50


@dataclass
class OverlayElement:
    key: str
    kind: str  # "node-label" | "node-value" | "link-label"
    text: Any
    x: float
    y: float
    z_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "kind": self.kind,
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "zIndex": self.z_index,
        }


@dataclass
class OverlayFrame:
    elements: List[OverlayElement] = field(default_factory=list)
    skipped_nodes: int = 0
    skipped_links: int = 0

    def of_kind(self, kind: str) -> List[OverlayElement]:
        return [e for e in self.elements if e.kind == kind]

    def ordered(self) -> List[OverlayElement]:
        """Back to front: link labels first, node texts on top."""
        return sorted(self.elements, key=lambda e: e.z_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.ordered()],
            "skippedNodes": self.skipped_nodes,
            "skippedLinks": self.skipped_links,
        }


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class LabelPlacement:
    x: float
    y: float
    attempts: int
    overlapping: bool


def link_label_text(link: Link) -> str:
    return f"{link.influence_type or 'Connection'} ({float(link.weight or 0.0):.2f})"


def rects_overlap(a: Rect, b: Rect) -> bool:
    # touching edges count as overlap
    return not (
        a.x + a.width < b.x
        or b.x + b.width < a.x
        or a.y + a.height < b.y
        or b.y + b.height < a.y
    )


def _box_at(x: float, y: float, box: Tuple[float, float]) -> Rect:
    w, h = box
    return Rect(x - w / 2.0, y - h / 2.0, w, h)


def place_link_label(
    midpoint: Tuple[float, float],
    index: int,
    placed: Sequence[Rect],
    settings: Optional[OverlaySettings] = None,
) -> LabelPlacement:
    """
    Position one link label around a screen midpoint.

    The first guess is offset by an index-dependent angle; each collision
    with an already placed box rotates the guess by pi/6 and pushes it 5px
    further out. After ``max_attempts`` collisions the last guess is kept
    even though it overlaps.
    """
    settings = settings or OverlaySettings()
    mx, my = midpoint
    base_angle = index * (math.pi / 8)
    distance = settings.link_offset_distance
    x = mx + math.cos(base_angle) * distance
    y = my + math.sin(base_angle) * distance

    attempts = 0
    overlapping = False
    while True:
        test = _box_at(x, y, settings.link_box)
        overlapping = any(rects_overlap(test, other) for other in placed)
        if not overlapping or attempts >= settings.max_attempts:
            break
        attempts += 1
        angle = base_angle + attempts * math.pi / 6
        radius = distance + attempts * 5
        x = mx + math.cos(angle) * radius
        y = my + math.sin(angle) * radius
    return LabelPlacement(x=x, y=y, attempts=attempts, overlapping=overlapping)


class OverlaySynchronizer:
    """Builds one overlay frame per call from the current node positions."""

    def __init__(self, projector, settings: Optional[OverlaySettings] = None, min_size: float = 4.0, shape_scale: float = 1.8):
        self.projector = projector
        self.settings = settings or OverlaySettings()
        self.min_size = min_size
        self.shape_scale = shape_scale
        self.last_frame = OverlayFrame()

    def _node_elements(self, nodes: Sequence[Node], flags: DisplayFlags, frame: OverlayFrame) -> None:
        for node in nodes:
            size = node_radius(node, flags.fixed_node_size, self.min_size, self.shape_scale)
            above, below = self.projector.label_anchors(node, size)
            if above is None and below is None:
                frame.skipped_nodes += 1
                continue
            if above is not None:
                frame.elements.append(
                    OverlayElement(node.id, "node-label", node.label or node.id, above[0], above[1], NODE_Z_INDEX)
                )
            value = get_node_display_value(node, flags.show_main_values, flags.show_in_out_values)
            if value and below is not None:
                frame.elements.append(OverlayElement(node.id, "node-value", value, below[0], below[1], NODE_Z_INDEX))

    def _link_elements(self, nodes: Sequence[Node], links: Sequence[Link], frame: OverlayFrame) -> None:
        index = {n.id: n for n in nodes}
        placed: List[Rect] = []
        for i, link in enumerate(links):
            source = index.get(link.source)
            target = index.get(link.target)
            if source is None or target is None:
                frame.skipped_links += 1
                continue
            a = self.projector.project_node(source)
            b = self.projector.project_node(target)
            if a is None or b is None:
                frame.skipped_links += 1
                continue
            mid = ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)
            spot = place_link_label(mid, i, placed, self.settings)
            placed.append(_box_at(spot.x, spot.y, self.settings.link_box))
            frame.elements.append(
                OverlayElement(link.key, "link-label", link_label_text(link), spot.x, spot.y, LINK_Z_INDEX)
            )

    def sync(self, nodes: Sequence[Node], links: Sequence[Link], flags: Optional[DisplayFlags] = None) -> OverlayFrame:
        flags = flags or DisplayFlags()
        frame = OverlayFrame()
        self._node_elements(nodes, flags, frame)
        if flags.show_link_texts:
            self._link_elements(nodes, links, frame)
        if frame.skipped_nodes or frame.skipped_links:
            logger.debug(
                "overlay-skipped",
                extra={"skipped_nodes": frame.skipped_nodes, "skipped_links": frame.skipped_links},
            )
        self.last_frame = frame
        return frame


__all__ = [
    "LINK_Z_INDEX",
    "NODE_Z_INDEX",
    "LabelPlacement",
    "OverlayElement",
    "OverlayFrame",
    "OverlaySynchronizer",
    "Rect",
    "link_label_text",
    "place_link_label",
    "rects_overlap",
]
