import math

import pytest

from twin_core.config import DisplayFlags, OverlaySettings
from twin_core.models import Link, Node
from twin_view.overlay import (
    LINK_Z_INDEX,
    NODE_Z_INDEX,
    OverlaySynchronizer,
    Rect,
    link_label_text,
    place_link_label,
    rects_overlap,
)
from twin_view.projector import Projector2D, Viewport2D


def test_link_label_text():
    assert link_label_text(Link("a", "b", 0.456, "Demand")) == "Demand (0.46)"
    assert link_label_text(Link("a", "b")) == "Connection (0.00)"


def test_touching_rects_overlap():
    assert rects_overlap(Rect(0, 0, 10, 10), Rect(10, 0, 10, 10))
    assert not rects_overlap(Rect(0, 0, 10, 10), Rect(10.5, 0, 10, 10))


def test_free_spot_is_used_directly():
    spot = place_link_label((100.0, 100.0), 0, [])
    assert (spot.x, spot.y) == pytest.approx((115.0, 100.0))
    assert spot.attempts == 0
    assert not spot.overlapping


def test_index_rotates_first_guess():
    spot = place_link_label((0.0, 0.0), 4, [])
    assert (spot.x, spot.y) == pytest.approx((0.0, 15.0), abs=1e-9)


def test_collision_nudges_label_outwards():
    placed = [Rect(93.0, 94.0, 44.0, 12.0)]
    spot = place_link_label((100.0, 100.0), 0, placed)
    assert spot.attempts == 2
    assert not spot.overlapping
    assert spot.x == pytest.approx(100.0 + math.cos(math.pi / 3) * 25.0)
    assert spot.y == pytest.approx(100.0 + math.sin(math.pi / 3) * 25.0)


def test_crowded_area_gives_up_after_max_attempts():
    wall = [Rect(-1000.0, -1000.0, 5000.0, 5000.0)]
    spot = place_link_label((100.0, 100.0), 0, wall, OverlaySettings(max_attempts=8))
    assert spot.attempts == 8
    assert spot.overlapping
    assert spot.x == pytest.approx(100.0 + math.cos(8 * math.pi / 6) * 55.0)


def _sync(flags=None):
    viewport = Viewport2D(200, 200, k=1.0, tx=0.0, ty=0.0)
    sync = OverlaySynchronizer(Projector2D(viewport))
    nodes = [
        Node("a", x=50.0, y=50.0, stress_level=0.4),
        Node("b", label="Bee", x=150.0, y=50.0),
        Node("c"),
    ]
    links = [Link("a", "b", 0.5, "Demand"), Link("a", "ghost", 0.1), Link("a", "c")]
    return sync.sync(nodes, links, flags or DisplayFlags())


def test_node_texts_sit_above_and_below():
    frame = _sync()
    labels = {e.key: e for e in frame.of_kind("node-label")}
    values = {e.key: e for e in frame.of_kind("node-value")}
    assert labels["a"].text == "a"
    assert labels["b"].text == "Bee"
    assert labels["a"].y == pytest.approx(50.0 - 7.2 - 20.0)
    assert values["a"].y == pytest.approx(50.0 + 7.2 + 15.0)
    assert values["a"].text == "0.4"
    assert "b" not in values


def test_unplaced_and_missing_endpoints_are_skipped():
    frame = _sync()
    assert frame.skipped_nodes == 1
    assert frame.skipped_links == 2
    links = frame.of_kind("link-label")
    assert [e.text for e in links] == ["Demand (0.50)"]
    assert links[0].y == pytest.approx(50.0)
    assert links[0].x == pytest.approx(115.0)


def test_node_texts_draw_over_link_labels():
    ordered = _sync().ordered()
    assert ordered[0].z_index == LINK_Z_INDEX
    assert ordered[-1].z_index == NODE_Z_INDEX


def test_link_texts_can_be_hidden():
    frame = _sync(DisplayFlags(show_link_texts=False))
    assert frame.of_kind("link-label") == []
    assert frame.skipped_links == 0
