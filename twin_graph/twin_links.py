from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List

from twin_core.models import Link, endpoint_id
from twin_core.twin_math import to_int32

logger = logging.getLogger(__name__)

FNV_OFFSET = 2166136261


def normalize_links(links: Iterable[Any]) -> List[Link]:
    """Canonical bare-id links from Link objects or raw mappings."""
    out: List[Link] = []
    for raw in links:
        if isinstance(raw, Link):
            out.append(replace(raw, source=endpoint_id(raw.source), target=endpoint_id(raw.target)))
        else:
            out.append(Link.from_dict(raw))
    return out


def pair_key(link: Link) -> str:
    a = endpoint_id(link.source)
    b = endpoint_id(link.target)
    return f"{a}||{b}" if a < b else f"{b}||{a}"


def to_bidirectional(links: Iterable[Link]) -> List[Link]:
    out: List[Link] = []
    seen: Dict[str, int] = {}
    for link in links:
        src = endpoint_id(link.source)
        tgt = endpoint_id(link.target)
        # repeats of the same directed link get an ordinal suffix: a-b-fwd, a-b-fwd-2, ...
        n = seen[f"{src}->{tgt}"] = seen.get(f"{src}->{tgt}", 0) + 1
        suffix = "" if n == 1 else f"-{n}"
        out.append(replace(link, source=src, target=tgt, id=f"{src}-{tgt}-fwd{suffix}", is_reverse=False))
        out.append(replace(link, source=tgt, target=src, id=f"{tgt}-{src}-rev{suffix}", is_reverse=True))

    groups: Dict[str, List[int]] = {}
    for idx, link in enumerate(out):
        groups.setdefault(pair_key(link), []).append(idx)

    for members in groups.values():
        # stable: forward links keep their order, reverse links follow
        members.sort(key=lambda i: 1 if out[i].is_reverse else 0)
        k = 1
        for pos, idx in enumerate(members):
            out[idx].parallel_sign = k if pos % 2 == 0 else -k
            if pos % 2 == 1:
                k += 1

    logger.debug("bidirectional-expand", extra={"links_in": len(out) // 2, "links_out": len(out)})
    return out


def pair_hash_angle(link: Link) -> float:
    """Deterministic curve rotation in [0, 2*pi), identical for A->B and B->A."""
    key = pair_key(link)
    h = FNV_OFFSET
    for ch in key:
        h = to_int32(h) ^ ord(ch)
        h += sum(to_int32(h << shift) for shift in (1, 4, 7, 8, 24))
    t = abs(h) % 360
    return (t / 360.0) * math.pi * 2
