from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .twin_math import safe_float

logger = logging.getLogger(__name__)


def endpoint_id(value: Any) -> Optional[str]:
    """Bare id for a link endpoint given as an id, a Node or a mapping with an id."""
    if value is None:
        return None
    if isinstance(value, Node):
        return value.id
    if isinstance(value, dict):
        inner = value.get("id")
        return None if inner is None else str(inner)
    inner = getattr(value, "id", None)
    if inner is not None:
        return str(inner)
    return str(value)


@dataclass
class Node:
    id: str
    type: str = ""
    label: str = ""
    stress_level: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    # derived
    main_value: Optional[float] = None
    incoming_value: Optional[float] = None
    outgoing_value: Optional[float] = None
    original_stress_level: Optional[float] = None
    size: Optional[float] = None
    centrality: Optional[float] = None
    color: Optional[str] = None
    group: Optional[str] = None
    # owned by the layout engine of the clone this node lives in
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    fx: Optional[float] = None
    fy: Optional[float] = None
    fz: Optional[float] = None

    @property
    def confidence(self) -> Optional[float]:
        value = self.metadata.get("confidence")
        return None if value is None else safe_float(value, 0.0)

    @property
    def source_count(self) -> Optional[int]:
        value = self.metadata.get("sourceCount")
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        stress = data.get("stressLevel", data.get("stress_level"))
        node = cls(
            id=str(data["id"]),
            type=str(data.get("type") or ""),
            label=str(data.get("label") or data["id"]),
            stress_level=None if stress is None else safe_float(stress, 0.0),
            metadata=dict(data.get("metadata") or {}),
        )
        for key in ("x", "y", "z"):
            if data.get(key) is not None:
                setattr(node, key, safe_float(data[key], 0.0))
        return node

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "type": self.type, "label": self.label}
        if self.stress_level is not None:
            payload["stressLevel"] = self.stress_level
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        derived = {
            "mainValue": self.main_value,
            "incomingValue": self.incoming_value,
            "outgoingValue": self.outgoing_value,
            "originalStressLevel": self.original_stress_level,
            "size": self.size,
            "centrality": self.centrality,
            "color": self.color,
            "group": self.group,
            "x": self.x,
            "y": self.y,
            "z": self.z,
        }
        payload.update({k: v for k, v in derived.items() if v is not None})
        return payload


@dataclass
class Link:
    source: str
    target: str
    weight: float = 0.0
    influence_type: str = ""
    id: Optional[str] = None
    is_reverse: Optional[bool] = None
    parallel_sign: Optional[int] = None
    show_arrow: bool = False
    arrow_position: str = "target"
    arrow_color: str = "#ff4d4d"
    arrow_length: float = 6.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.id or f"{self.source}-{self.target}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        source = endpoint_id(data.get("source"))
        target = endpoint_id(data.get("target"))
        if source is None or target is None:
            raise ValueError("Link requires both source and target")
        link = cls(
            source=source,
            target=target,
            weight=safe_float(data.get("weight"), 0.0),
            influence_type=str(data.get("influenceType") or data.get("influence_type") or ""),
            id=data.get("id"),
            metadata=dict(data.get("metadata") or {}),
        )
        if "showArrow" in data:
            link.show_arrow = bool(data["showArrow"])
        if data.get("arrowPosition"):
            link.arrow_position = str(data["arrowPosition"])
        if data.get("arrowColor"):
            link.arrow_color = str(data["arrowColor"])
        if data.get("arrowLength"):
            link.arrow_length = safe_float(data["arrowLength"], 6.0)
        return link

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "weight": self.weight,
            "influenceType": self.influence_type,
        }
        if self.id:
            payload["id"] = self.id
        if self.is_reverse is not None:
            payload["isReverse"] = self.is_reverse
        if self.parallel_sign is not None:
            payload["parallelSign"] = self.parallel_sign
        if self.show_arrow:
            payload.update(
                {
                    "showArrow": True,
                    "arrowPosition": self.arrow_position,
                    "arrowColor": self.arrow_color,
                    "arrowLength": self.arrow_length,
                }
            )
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload


@dataclass
class GraphDataset:
    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "GraphDataset":
        return cls(nodes=[], links=[])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphDataset":
        nodes: List[Node] = []
        seen: Set[str] = set()
        for raw in data.get("nodes") or []:
            node = Node.from_dict(raw)
            if node.id in seen:
                logger.warning("duplicate-node", extra={"node_id": node.id})
                continue
            seen.add(node.id)
            nodes.append(node)
        links = [Link.from_dict(raw) for raw in data.get("links") or []]
        return cls(nodes=nodes, links=links)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
        }

    def clone(self) -> "GraphDataset":
        return copy.deepcopy(self)

    def node_index(self) -> Dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def dangling_links(self) -> List[Link]:
        ids = {n.id for n in self.nodes}
        return [l for l in self.links if l.source not in ids or l.target not in ids]

    @property
    def meta(self) -> Dict[str, int]:
        return {
            "nodes": len(self.nodes),
            "links": len(self.links),
            "dangling_links": len(self.dangling_links()),
        }
