import pytest

from twin_core.config import DisplayFlags
from twin_core.models import GraphDataset
from twin_view.overlay import OverlayFrame
from twin_view.painter_2d import CanvasFrame
from twin_view.scene_3d import SceneFrame
from twin_view.shell import VIEW_2D, VIEW_3D, DualViewShell, compute_dimensions


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _dataset():
    return GraphDataset.from_dict(
        {
            "nodes": [
                {"id": "market", "type": "environment", "stressLevel": 0.6},
                {"id": "sales", "type": "boundary", "metadata": {"confidence": 0.8}},
                {"id": "ops", "type": "system"},
            ],
            "links": [
                {"source": "market", "target": "sales", "weight": 0.7, "influenceType": "Demand"},
                {"source": "sales", "target": "ops", "weight": 0.4},
            ],
        }
    )


def _shell(**kwargs):
    clock = FakeClock()
    return DualViewShell(_dataset(), clock=clock, **kwargs), clock


def test_views_own_independent_clones():
    dataset = _dataset()
    shell = DualViewShell(dataset, clock=FakeClock())
    left = shell.views[VIEW_2D].nodes
    right = shell.views[VIEW_3D].nodes
    assert [n.id for n in left] == [n.id for n in right]
    assert all(a is not b for a, b in zip(left, right))
    assert all(n.x is None for n in dataset.nodes)
    assert all(n.z is not None for n in right)


def test_frame_builds_both_views_and_overlay():
    shell, _ = _shell()
    out = shell.frame(0.1)
    assert isinstance(out[VIEW_2D], CanvasFrame)
    assert isinstance(out[VIEW_3D], SceneFrame)
    assert isinstance(out["overlay"], OverlayFrame)
    assert len(out[VIEW_2D].nodes) == 3
    assert len(out[VIEW_3D].links) == 2
    assert shell.views[VIEW_2D].layout.tick_count > 0
    assert shell.views[VIEW_3D].orbit.ticks > 0


def test_frame_without_time_passing_does_not_move_nodes():
    shell, _ = _shell()
    shell.frame(0.1)
    before = shell.views[VIEW_2D].layout.positions()
    shell.frame(0.1)
    assert shell.views[VIEW_2D].layout.positions() == before


def test_toggling_bidirectional_keeps_positions():
    shell, _ = _shell()
    shell.frame(0.2)
    before = {n.id: (n.x, n.y) for n in shell.views[VIEW_2D].nodes}
    shell.set_flags(bidirectional=True)
    assert {n.id: (n.x, n.y) for n in shell.views[VIEW_2D].nodes} == before
    for view in shell.views.values():
        assert len(view.links) == 4
        assert view.layout.ignored_links == 0
    shell.set_flags(bidirectional=False)
    assert len(shell.views[VIEW_3D].links) == 2


def test_alternative_shapes_recolors_nodes_in_place():
    shell, _ = _shell()
    node = shell.views[VIEW_2D].nodes[0]
    old_color = node.color
    shell.set_flags(alternative_shapes=True)
    assert shell.views[VIEW_2D].nodes[0] is node
    assert node.color != old_color


def test_rotation_flag_drives_orbit():
    shell, _ = _shell()
    shell.set_flags(is_rotating=False)
    orbit = shell.views[VIEW_3D].orbit
    assert not orbit.rotating
    task = shell.scheduler.get("orbit-3d")
    assert not task.active
    ticks, runs = orbit.ticks, task.runs
    shell.frame(0.5)
    assert orbit.ticks == ticks
    assert task.runs == runs
    assert shell.scene_frame.navigation_enabled
    shell.set_flags(is_rotating=True)
    assert task.active
    assert orbit.rotating


def test_orbit_timer_idle_when_built_without_rotation():
    shell, _ = _shell(flags=DisplayFlags(is_rotating=False))
    assert not shell.scheduler.get("orbit-3d").active


def test_fit_2d_brings_every_node_on_screen():
    shell, _ = _shell()
    view = shell.views[VIEW_2D]
    for i, node in enumerate(view.nodes):
        node.x, node.y = 5000.0 * (i + 1), -3000.0 * i
    shell.fit_2d()
    viewport = view.projector.viewport
    for node in view.nodes:
        sx, sy = viewport.graph_to_screen(node.x, node.y)
        assert 0.0 <= sx <= viewport.width
        assert 0.0 <= sy <= viewport.height


def test_click_reports_node_to_callback():
    clicks = []
    shell, _ = _shell(on_node_click=lambda view, node: clicks.append((view, node["id"])))
    shell.frame(0.05)
    view = shell.views[VIEW_2D]
    target = view.nodes[1]
    sx, sy = view.projector.project_node(target)
    picked = shell.click(VIEW_2D, sx, sy)
    assert picked is target
    assert clicks == [(VIEW_2D, target.id)]
    assert shell.click(VIEW_2D, -5000, -5000) is None
    assert len(clicks) == 1


def test_dimensions_split_and_fullscreen():
    assert compute_dimensions(1000, 800, 0.3, False, 64) == {"width2D": 300, "width3D": 700, "height": 736}
    assert compute_dimensions(1000, 800, 0.95)["width2D"] == 900
    assert compute_dimensions(1000, 800, 0.3, True, 64)["height"] == 800

    shell, _ = _shell(width=1600, height=900, chrome_height=64)
    shell.drag_split(0.3)
    shell.drag_split(0.7)
    shell.frame(1.0)
    assert shell.split_ratio == 0.7
    assert shell.views[VIEW_2D].projector.viewport.width == 1120
    assert shell.views[VIEW_3D].projector.camera.width == 480
    assert shell.views[VIEW_2D].projector.viewport.height == 836

    assert shell.toggle_fullscreen()
    assert shell.views[VIEW_3D].projector.camera.height == 900


def test_missing_webgl_degrades_3d_only():
    shell, _ = _shell()
    shell.set_3d_support(False)
    out = shell.frame(0.1)
    assert not out[VIEW_3D].available
    assert out[VIEW_3D].message
    assert len(out[VIEW_2D].nodes) == 3


def test_destroy_stops_everything():
    shell, _ = _shell()
    shell.frame(0.1)
    shell.destroy()
    assert shell.frame(0.5) is None
    assert shell.scheduler.tasks == []
    assert shell.click(VIEW_2D, 0, 0) is None


def test_empty_dataset_still_renders():
    shell = DualViewShell(GraphDataset.empty(), clock=FakeClock())
    out = shell.frame(0.1)
    assert out[VIEW_2D].nodes == []
    assert out[VIEW_3D].nodes == []


def test_split_ratio_rejects_garbage():
    shell, _ = _shell()
    shell.drag_split("wide")
    shell.frame(0.1)
    assert shell.split_ratio == pytest.approx(0.5)
