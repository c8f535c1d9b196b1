"""
Derived node metrics.

Every function here is pure: nodes are copied, never mutated, so recomputing
from the same nodes and links always yields the same values.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .colors import node_color
from .config import NodeSizes
from .models import Link, Node
from .twin_math import _log, clamp, round2

DisplayValue = Union[str, List[str]]


def _weight(link: Link) -> float:
    return float(link.weight or 0.0)


def calculate_node_values(nodes: Sequence[Node], links: Sequence[Link]) -> List[Node]:
    if not nodes:
        return []
    incoming: Dict[str, float] = {}
    outgoing: Dict[str, float] = {}
    for link in links or []:
        incoming[link.target] = incoming.get(link.target, 0.0) + _weight(link)
        outgoing[link.source] = outgoing.get(link.source, 0.0) + _weight(link)

    out: List[Node] = []
    for node in nodes:
        inc = incoming.get(node.id, 0.0)
        outg = outgoing.get(node.id, 0.0)
        total = inc + outg
        stress = node.stress_level or 0.0
        main = total if total > 0 else stress
        out.append(
            replace(
                node,
                main_value=round2(main),
                incoming_value=round2(inc),
                outgoing_value=round2(outg),
                original_stress_level=round2(stress),
            )
        )
    return out


def calculate_centrality(node_id: str, links: Iterable[Link]) -> float:
    degree = 0
    weight_sum = 0.0
    for link in links:
        if link.source == node_id or link.target == node_id:
            degree += 1
            weight_sum += _weight(link)
    return (degree * 0.5) + (weight_sum * 0.5)


def get_node_size(node: Node, sizes: Optional[NodeSizes] = None) -> float:
    sizes = sizes or NodeSizes()
    confidence = node.confidence or 0.5
    return clamp(confidence * sizes.confidence_multiplier, sizes.min, sizes.max)


def get_node_display_value(
    node: Node,
    show_main_values: bool = True,
    show_in_out_values: bool = False,
) -> DisplayValue:
    if not show_main_values and not show_in_out_values:
        return ""

    lines: List[str] = []
    if show_main_values:
        main = ""
        if node.main_value is not None:
            main = f"{node.main_value:.1f}"
        elif node.stress_level is not None:
            main = f"{node.stress_level:.1f}"
        elif node.confidence:
            main = f"{node.confidence * 100:.0f}%"
        elif node.source_count:
            main = f"{node.source_count}"
        if main:
            lines.append(main)

    if show_in_out_values and node.incoming_value is not None and node.outgoing_value is not None:
        lines.append(f"↓{node.incoming_value:.1f} ↑{node.outgoing_value:.1f}")

    if not lines:
        return ""
    if len(lines) == 1:
        return lines[0]
    return lines


def get_node_value_statistics(nodes: Sequence[Node]) -> Dict[str, float]:
    if not nodes:
        return {
            "totalNodes": 0,
            "avgIncoming": 0,
            "avgOutgoing": 0,
            "avgMain": 0,
            "maxIncoming": 0,
            "maxOutgoing": 0,
            "maxMain": 0,
        }
    inc = [n.incoming_value or 0.0 for n in nodes]
    outg = [n.outgoing_value or 0.0 for n in nodes]
    main = [n.main_value or 0.0 for n in nodes]
    count = len(nodes)
    return {
        "totalNodes": count,
        "avgIncoming": round2(sum(inc) / count),
        "avgOutgoing": round2(sum(outg) / count),
        "avgMain": round2(sum(main) / count),
        "maxIncoming": max(inc),
        "maxOutgoing": max(outg),
        "maxMain": max(main),
    }


def prepare_nodes(
    nodes: Sequence[Node],
    links: Sequence[Link],
    alternative_shapes: bool = False,
    sizes: Optional[NodeSizes] = None,
) -> List[Node]:
    valued = calculate_node_values(nodes, links)
    prepared = [
        replace(
            node,
            color=node_color(node.type, alternative_shapes),
            centrality=calculate_centrality(node.id, links),
            size=get_node_size(node, sizes),
            group=node.type,
        )
        for node in valued
    ]
    _log("prepare_nodes", nodes=len(prepared), links=len(links), alternative_shapes=alternative_shapes)
    return prepared


def configure_arrows(links: Sequence[Link], arrow_config: Optional[Dict[str, Dict[str, Any]]] = None) -> List[Link]:
    """Apply per-link arrow settings keyed by "source-target" (either direction)."""
    arrow_config = arrow_config or {}
    out: List[Link] = []
    for link in links:
        cfg = arrow_config.get(f"{link.source}-{link.target}") or arrow_config.get(f"{link.target}-{link.source}")
        if not cfg:
            out.append(link)
            continue
        out.append(
            replace(
                link,
                show_arrow=bool(cfg.get("showArrow", False)),
                arrow_position=cfg.get("arrowPosition") or "target",
                arrow_color=cfg.get("arrowColor") or "#ff4d4d",
                arrow_length=float(cfg.get("arrowLength") or 6),
            )
        )
    return out
