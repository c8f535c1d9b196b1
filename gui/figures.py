"""
Plotly adapters: paint a canvas frame / scene frame onto a figure.

The 2D figure uses screen pixels directly (x right, y down) so canvas
primitives and overlay positions need no further transform.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from twin_core.config import RenderSettings
from twin_view.overlay import OverlayElement, OverlayFrame
from twin_view.painter_2d import CanvasFrame
from twin_view.scene_3d import SceneFrame

SYMBOL_3D = {
    "SphereGeometry": "circle",
    "ConeGeometry": "diamond",
    "OctahedronGeometry": "diamond-open",
    "BoxGeometry": "square",
}
FONT = "Inter, sans-serif"


def _text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "<br>".join(str(v) for v in value)
    return str(value)


def _polylines(paths: Iterable[Sequence[Sequence[float]]], dims: int = 2) -> Tuple[List[Optional[float]], ...]:
    """Flatten many paths into coordinate lists separated by None."""
    axes: Tuple[List[Optional[float]], ...] = tuple([] for _ in range(dims))
    for path in paths:
        for point in path:
            for k in range(dims):
                axes[k].append(point[k])
        for k in range(dims):
            axes[k].append(None)
    return axes


def _grouped(items, key):
    groups: Dict[Any, List[Any]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def _annotation(element: OverlayElement, render: RenderSettings) -> Dict[str, Any]:
    if element.kind == "node-label":
        font = dict(size=16, color=render.text_primary, family=FONT)
    elif element.kind == "node-value":
        font = dict(size=10, color=render.text_value, family=FONT)
    else:
        font = dict(size=10, color=render.link_label_color, family=FONT)
    return dict(
        x=element.x,
        y=element.y,
        xref="x",
        yref="y",
        text=_text(element.text),
        showarrow=False,
        xanchor="center",
        yanchor="middle",
        font=font,
    )


def canvas_figure(
    frame: Optional[CanvasFrame],
    overlay: Optional[OverlayFrame] = None,
    render: Optional[RenderSettings] = None,
) -> go.Figure:
    render = render or RenderSettings()
    fig = go.Figure()
    if frame is None:
        fig.update_layout(paper_bgcolor=render.background, plot_bgcolor=render.background)
        return fig

    for (color, width), strokes in _grouped(frame.links, lambda s: (s.color, s.width)).items():
        xs, ys = _polylines(s.points for s in strokes)
        fig.add_trace(
            go.Scatter(x=xs, y=ys, mode="lines", line=dict(color=color, width=width), hoverinfo="none", showlegend=False)
        )

    arrows = [s.arrow for s in frame.links if s.arrow is not None]
    for color, group in _grouped(arrows, lambda a: a.color).items():
        xs, ys = _polylines([a.tip, a.left, a.right, a.tip] for a in group)
        fig.add_trace(
            go.Scatter(
                x=xs, y=ys, mode="lines", fill="toself", fillcolor=color,
                line=dict(color=color, width=0), hoverinfo="none", showlegend=False,
            )
        )

    particles = [p for s in frame.links for p in s.particles]
    if particles:
        width = float(render.graph_2d.get("particle_width", 6.0))
        fig.add_trace(
            go.Scatter(
                x=[p[0] for p in particles], y=[p[1] for p in particles], mode="markers",
                marker=dict(size=width, color=render.particle_color), hoverinfo="none", showlegend=False,
            )
        )

    polygons = [n for n in frame.nodes if n.kind == "polygon"]
    for fill, group in _grouped(polygons, lambda n: n.fill).items():
        xs, ys = _polylines(n.points + n.points[:1] for n in group)
        fig.add_trace(
            go.Scatter(
                x=xs, y=ys, mode="lines", fill="toself", fillcolor=fill,
                line=dict(color=group[0].border, width=group[0].border_width), hoverinfo="none", showlegend=False,
            )
        )

    # one marker per node: the visible disc for circles, a click target for polygons
    if frame.nodes:
        fig.add_trace(
            go.Scatter(
                x=[n.center[0] for n in frame.nodes],
                y=[n.center[1] for n in frame.nodes],
                mode="markers",
                customdata=[n.node_id for n in frame.nodes],
                hoverinfo="none",
                marker=dict(
                    size=[2 * n.radius for n in frame.nodes],
                    color=[n.fill for n in frame.nodes],
                    opacity=[1.0 if n.kind == "circle" else 0.0 for n in frame.nodes],
                    line=dict(color=frame.nodes[0].border, width=1),
                ),
                showlegend=False,
            )
        )

    annotations = [_annotation(e, render) for e in overlay.ordered()] if overlay is not None else []
    fig.update_layout(
        width=frame.width,
        height=frame.height,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor=frame.background,
        plot_bgcolor=frame.background,
        showlegend=False,
        xaxis=dict(visible=False, range=[0, frame.width], fixedrange=True),
        yaxis=dict(visible=False, range=[frame.height, 0], fixedrange=True),
        annotations=annotations,
        uirevision="canvas",
    )
    return fig


def _scene_axes() -> Dict[str, Any]:
    hidden = dict(showbackground=False, showticklabels=False, visible=False)
    return dict(xaxis=hidden, yaxis=hidden, zaxis=hidden, aspectmode="data")


def _eye(camera: Dict[str, Any], distance: float) -> Dict[str, float]:
    x, y, z = camera.get("position") or (0.0, 0.0, distance)
    scale = 2.0 / max(distance, 1e-6)
    return dict(x=x * scale, y=y * scale, z=z * scale)


def scene_figure(frame: Optional[SceneFrame], render: Optional[RenderSettings] = None) -> go.Figure:
    render = render or RenderSettings()
    fig = go.Figure()
    background = frame.background if frame is not None else str(render.graph_3d.get("background", "#111111"))
    if frame is None or not frame.available:
        fig.update_layout(
            paper_bgcolor=background,
            plot_bgcolor=background,
            xaxis=dict(visible=False),
            yaxis=dict(visible=False),
            annotations=[
                dict(
                    text=frame.message if frame is not None else "",
                    x=0.5, y=0.5, xref="paper", yref="paper", showarrow=False,
                    font=dict(size=14, color=render.text_primary, family=FONT),
                )
            ],
            margin=dict(l=0, r=0, t=0, b=0),
        )
        return fig

    for (color, width), links in _grouped(frame.links, lambda l: (l.color, l.width)).items():
        xs, ys, zs = _polylines((l.points for l in links), dims=3)
        fig.add_trace(
            go.Scatter3d(x=xs, y=ys, z=zs, mode="lines", line=dict(color=color, width=width), hoverinfo="none", showlegend=False)
        )

    particles = [p for l in frame.links for p in l.particles]
    if particles:
        fig.add_trace(
            go.Scatter3d(
                x=[p[0] for p in particles], y=[p[1] for p in particles], z=[p[2] for p in particles],
                mode="markers", marker=dict(size=float(render.graph_3d.get("particle_width", 2.0)), color=render.particle_color),
                hoverinfo="none", showlegend=False,
            )
        )

    arrows = [l.arrow for l in frame.links if l.arrow]
    for arrow in arrows:
        (x, y, z), (u, v, w) = arrow["position"], arrow["direction"]
        fig.add_trace(
            go.Cone(
                x=[x], y=[y], z=[z], u=[u * arrow["length"]], v=[v * arrow["length"]], w=[w * arrow["length"]],
                sizemode="absolute", sizeref=arrow["length"], anchor="tip", showscale=False,
                colorscale=[[0, arrow["color"]], [1, arrow["color"]]], hoverinfo="none",
            )
        )

    link_labels = [l.label for l in frame.links if l.label is not None]
    if link_labels:
        fig.add_trace(
            go.Scatter3d(
                x=[s.position[0] for s in link_labels], y=[s.position[1] for s in link_labels], z=[s.position[2] for s in link_labels],
                mode="text", text=[_text(s.text) for s in link_labels],
                textfont=dict(color=link_labels[0].color, size=link_labels[0].text_height + 6, family=FONT),
                hoverinfo="none", showlegend=False,
            )
        )

    for symbol, nodes in _grouped(frame.nodes, lambda n: SYMBOL_3D.get(n.geometry.type, "circle")).items():
        fig.add_trace(
            go.Scatter3d(
                x=[n.position[0] for n in nodes], y=[n.position[1] for n in nodes], z=[n.position[2] for n in nodes],
                mode="markers", customdata=[n.node_id for n in nodes],
                hovertext=[_text(n.label.text) for n in nodes], hoverinfo="text",
                marker=dict(
                    size=[n.size for n in nodes], symbol=symbol,
                    color=[n.material.color for n in nodes], opacity=nodes[0].material.opacity,
                ),
                showlegend=False,
            )
        )

    sprites = [n.label for n in frame.nodes] + [n.value for n in frame.nodes if n.value is not None]
    for (color, height), group in _grouped(sprites, lambda s: (s.color, s.text_height)).items():
        fig.add_trace(
            go.Scatter3d(
                x=[s.position[0] for s in group], y=[s.position[1] for s in group], z=[s.position[2] for s in group],
                mode="text", text=[_text(s.text) for s in group],
                textfont=dict(color=color, size=height + 6, family=FONT), hoverinfo="none", showlegend=False,
            )
        )

    distance = float(render.graph_3d.get("camera_distance", 700.0))
    scene = _scene_axes()
    scene["camera"] = dict(eye=_eye(frame.camera, distance), up=dict(x=0, y=1, z=0))
    scene["dragmode"] = "orbit" if frame.navigation_enabled else False
    fig.update_layout(
        width=frame.camera.get("width"),
        height=frame.camera.get("height"),
        scene=scene,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor=frame.background,
        showlegend=False,
        # while orbiting the server owns the camera; once stopped the user's view is kept
        uirevision="navigate" if frame.navigation_enabled else None,
    )
    return fig


__all__ = ["canvas_figure", "scene_figure"]
