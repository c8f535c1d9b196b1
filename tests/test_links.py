import math

import pytest

from twin_core.models import GraphDataset, Link, Node
from twin_graph.twin_links import normalize_links, pair_hash_angle, pair_key, to_bidirectional


def test_normalize_links_accepts_object_endpoints():
    links = normalize_links([{"source": {"id": "a"}, "target": "b", "weight": 0.4}, Link(Node("c"), Node("d"))])
    assert (links[0].source, links[0].target, links[0].weight) == ("a", "b", 0.4)
    assert (links[1].source, links[1].target) == ("c", "d")


def test_link_without_target_is_rejected():
    with pytest.raises(ValueError):
        Link.from_dict({"source": "a"})


def test_pair_key_is_order_free():
    assert pair_key(Link("b", "a")) == pair_key(Link("a", "b")) == "a||b"


def test_bidirectional_doubles_links():
    base = [Link("a", "b", 0.5, "Demand"), Link("b", "c", 0.2)]
    out = to_bidirectional(base)
    assert len(out) == 2 * len(base)
    ids = {l.id for l in out}
    assert {"a-b-fwd", "b-a-rev", "b-c-fwd", "c-b-rev"} == ids
    rev = next(l for l in out if l.id == "b-a-rev")
    assert (rev.source, rev.target, rev.is_reverse, rev.influence_type) == ("b", "a", True, "Demand")
    assert base[0].id is None


def test_parallel_signs_are_symmetric_per_pair():
    out = to_bidirectional([Link("a", "b"), Link("b", "a"), Link("c", "d")])
    groups = {}
    for link in out:
        groups.setdefault(pair_key(link), []).append(link.parallel_sign)
    assert sorted(groups["a||b"]) == [-2, -1, 1, 2]
    assert sorted(groups["c||d"]) == [-1, 1]
    for signs in groups.values():
        assert sum(signs) == 0


def test_single_pair_signs_follow_direction():
    fwd, rev = to_bidirectional([Link("a", "b")])
    assert fwd.parallel_sign == 1
    assert rev.parallel_sign == -1


def test_pair_hash_angle_ignores_direction():
    for a, b in [("a", "b"), ("market", "sales"), ("n1", "n22")]:
        forward = pair_hash_angle(Link(a, b))
        assert forward == pair_hash_angle(Link(b, a))
        assert 0 <= forward < 2 * math.pi


def test_pair_hash_angle_is_deterministic_and_spread():
    angles = {pair_hash_angle(Link(f"n{i}", f"n{i + 1}")) for i in range(20)}
    assert len(angles) > 5


def test_dataset_drops_duplicate_nodes_and_reports_dangling():
    ds = GraphDataset.from_dict(
        {
            "nodes": [{"id": "a"}, {"id": "a", "label": "dup"}, {"id": "b"}],
            "links": [{"source": "a", "target": "b"}, {"source": "a", "target": "ghost"}],
        }
    )
    assert [n.id for n in ds.nodes] == ["a", "b"]
    assert ds.meta == {"nodes": 2, "links": 2, "dangling_links": 1}


def test_clone_is_deep():
    ds = GraphDataset.from_dict({"nodes": [{"id": "a", "metadata": {"confidence": 0.5}}], "links": []})
    copy = ds.clone()
    copy.nodes[0].x = 10.0
    copy.nodes[0].metadata["confidence"] = 0.9
    assert ds.nodes[0].x is None
    assert ds.nodes[0].metadata["confidence"] == 0.5


def test_repeated_links_get_unique_ids():
    out = to_bidirectional([Link("a", "b", 0.5), Link("a", "b", 0.5)])
    assert [l.id for l in out] == ["a-b-fwd", "b-a-rev", "a-b-fwd-2", "b-a-rev-2"]
