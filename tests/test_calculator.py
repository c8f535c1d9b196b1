import pytest

from twin_core.calculator import (
    calculate_centrality,
    calculate_node_values,
    configure_arrows,
    get_node_display_value,
    get_node_size,
    get_node_value_statistics,
    prepare_nodes,
)
from twin_core.colors import ALT_EXTERNAL_COLOR, ALT_INTERNAL_COLOR, NODE_TYPE_COLORS
from twin_core.config import NodeSizes
from twin_core.models import Link, Node


def _nodes():
    return [
        Node(id="a", type="environment", stress_level=0.7),
        Node(id="b", type="boundary"),
        Node(id="c", type="system", stress_level=0.2),
        Node(id="d", type="system", stress_level=0.9),
    ]


def _links():
    return [Link("a", "b", 0.5), Link("b", "c", 0.3)]


def test_node_values_sum_incoming_and_outgoing():
    out = {n.id: n for n in calculate_node_values(_nodes(), _links())}
    assert out["a"].incoming_value == 0
    assert out["a"].outgoing_value == 0.5
    assert out["a"].main_value == 0.5
    assert out["b"].incoming_value == 0.5
    assert out["b"].outgoing_value == 0.3
    assert out["b"].main_value == 0.8
    assert out["c"].main_value == 0.3


def test_unlinked_node_falls_back_to_stress_level():
    out = {n.id: n for n in calculate_node_values(_nodes(), _links())}
    assert out["d"].main_value == 0.9
    assert out["d"].original_stress_level == 0.9
    lone = calculate_node_values([Node(id="x")], [])
    assert lone[0].main_value == 0


def test_node_values_leave_inputs_untouched():
    nodes = _nodes()
    first = calculate_node_values(nodes, _links())
    second = calculate_node_values(nodes, _links())
    assert all(n.main_value is None for n in nodes)
    assert first == second


def test_centrality_counts_degree_and_weight():
    assert calculate_centrality("b", _links()) == pytest.approx(2 * 0.5 + 0.8 * 0.5)
    assert calculate_centrality("a", _links()) == pytest.approx(0.5 + 0.25)
    assert calculate_centrality("zzz", _links()) == 0


def test_node_size_scales_confidence_within_bounds():
    assert get_node_size(Node(id="a", metadata={"confidence": 0.9})) == pytest.approx(7.2)
    assert get_node_size(Node(id="a")) == pytest.approx(4.0)
    assert get_node_size(Node(id="a", metadata={"confidence": 10})) == 32.0
    assert get_node_size(Node(id="a", metadata={"confidence": 0.1}), NodeSizes(min=2.0)) == 2.0


def test_display_value_variants():
    out = {n.id: n for n in calculate_node_values(_nodes(), _links())}
    assert get_node_display_value(out["b"]) == "0.8"
    assert get_node_display_value(out["b"], show_main_values=True, show_in_out_values=True) == ["0.8", "↓0.5 ↑0.3"]
    assert get_node_display_value(out["b"], show_main_values=False, show_in_out_values=True) == "↓0.5 ↑0.3"
    assert get_node_display_value(out["b"], show_main_values=False, show_in_out_values=False) == ""


def test_display_value_priority_without_main_value():
    assert get_node_display_value(Node(id="a", stress_level=0.4)) == "0.4"
    assert get_node_display_value(Node(id="a", metadata={"confidence": 0.75})) == "75%"
    assert get_node_display_value(Node(id="a", metadata={"sourceCount": 3})) == "3"
    assert get_node_display_value(Node(id="a")) == ""


def test_statistics():
    assert get_node_value_statistics([])["totalNodes"] == 0
    stats = get_node_value_statistics(calculate_node_values(_nodes(), _links()))
    assert stats["totalNodes"] == 4
    assert stats["maxMain"] == 0.9
    assert stats["maxIncoming"] == 0.5


def test_prepare_nodes_sets_color_size_and_group():
    prepared = {n.id: n for n in prepare_nodes(_nodes(), _links())}
    assert prepared["a"].color == NODE_TYPE_COLORS["environment"]
    assert prepared["b"].group == "boundary"
    assert prepared["b"].size == pytest.approx(4.0)
    assert prepared["b"].main_value == 0.8

    alt = {n.id: n for n in prepare_nodes(_nodes(), _links(), alternative_shapes=True)}
    assert alt["a"].color == ALT_EXTERNAL_COLOR
    assert alt["c"].color == ALT_INTERNAL_COLOR


def test_configure_arrows_matches_either_direction():
    links = configure_arrows(_links(), {"b-a": {"showArrow": True, "arrowColor": "#00ff00"}})
    assert links[0].show_arrow is True
    assert links[0].arrow_color == "#00ff00"
    assert links[0].arrow_position == "target"
    assert links[1].show_arrow is False


def test_worked_example_values_and_centrality():
    nodes = [Node(id="n1"), Node(id="n2"), Node(id="n3")]
    links = [Link("n1", "n2", 2.0), Link("n3", "n1", 1.0)]
    n1 = calculate_node_values(nodes, links)[0]
    assert (n1.outgoing_value, n1.incoming_value, n1.main_value) == (2.0, 1.0, 3.0)
    assert calculate_centrality("x", [Link("x", "y", 0.5), Link("z", "x", 1.5)]) == pytest.approx(2.0)
