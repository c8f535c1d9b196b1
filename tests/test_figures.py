from twin_core.config import DisplayFlags
from twin_core.models import Link, Node
from twin_view.overlay import OverlaySynchronizer
from twin_view.painter_2d import build_canvas_frame
from twin_view.projector import PerspectiveCamera, Projector2D, Viewport2D
from twin_view.scene_3d import DEGRADED_MESSAGE, build_scene_frame
from gui.figures import canvas_figure, scene_figure


def _nodes():
    return [
        Node("a", type="environment", stress_level=0.3, x=0.0, y=0.0, z=0.0),
        Node("b", type="boundary", x=60.0, y=20.0, z=10.0),
    ]


def _links():
    return [Link("a", "b", 0.5, "Demand")]


def test_canvas_figure_has_node_targets_and_ordered_annotations():
    viewport = Viewport2D(400, 300)
    frame = build_canvas_frame(_nodes(), _links(), viewport)
    overlay = OverlaySynchronizer(Projector2D(viewport)).sync(_nodes(), _links())
    fig = canvas_figure(frame, overlay)

    markers = [t for t in fig.data if t.customdata is not None]
    assert len(markers) == 1
    assert list(markers[0].customdata) == ["a", "b"]

    texts = [a.text for a in fig.layout.annotations]
    assert texts[0] == "Demand (0.50)"
    assert set(texts[1:]) == {"a", "b", "0.3"}
    assert fig.layout.yaxis.range[0] == 300


def test_canvas_figure_without_frame_is_blank():
    fig = canvas_figure(None)
    assert len(fig.data) == 0


def test_scene_figure_shows_nodes_with_ids():
    camera = PerspectiveCamera(400, 300)
    frame = build_scene_frame(_nodes(), _links(), camera=camera)
    fig = scene_figure(frame)
    ids = [i for t in fig.data if getattr(t, "customdata", None) is not None for i in t.customdata]
    assert sorted(ids) == ["a", "b"]
    assert fig.layout.scene.dragmode is False


def test_scene_figure_unlocks_navigation_when_stopped():
    frame = build_scene_frame(_nodes(), _links(), DisplayFlags(is_rotating=False), camera=PerspectiveCamera(400, 300))
    fig = scene_figure(frame)
    assert fig.layout.scene.dragmode == "orbit"
    assert fig.layout.uirevision == "navigate"


def test_degraded_scene_figure_shows_message():
    fig = scene_figure(build_scene_frame(_nodes(), _links(), available=False))
    assert len(fig.data) == 0
    assert fig.layout.annotations[0].text == DEGRADED_MESSAGE
