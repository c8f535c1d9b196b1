from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from dash import Dash, Input, Output, State, callback_context, dcc, html, no_update
from flask import jsonify

from gui.figures import canvas_figure, scene_figure
from gui.state import DatasetState
from twin_core.config import DisplayFlags, RenderSettings, load_config
from twin_core.logs import setup_logging
from twin_view.shell import VIEW_2D, VIEW_3D, DualViewShell

logger = logging.getLogger("twin_gui")

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"
DEFAULT_DATASET = DATA_DIR / "baseline.json"
DEFAULT_CONFIG_PATH = BASE_DIR / "config.yml"

BG = "#000000"
TEXT_MAIN = "#e6f1ff"
TEXT_MUTED = "#9aa4b2"
HEADER_HEIGHT = 64

FLAG_OPTIONS = [
    {"label": "Bidirectional", "value": "bidirectional"},
    {"label": "Alt shapes", "value": "alternative_shapes"},
    {"label": "Link texts", "value": "show_link_texts"},
    {"label": "Main values", "value": "show_main_values"},
    {"label": "In/out values", "value": "show_in_out_values"},
]

WEBGL_PROBE = """
function(_n) {
    try {
        var canvas = document.createElement('canvas');
        return !!(window.WebGLRenderingContext &&
            (canvas.getContext('webgl') || canvas.getContext('experimental-webgl')));
    } catch (e) {
        return false;
    }
}
"""

WINDOW_PROBE = """
function(_n) {
    return {width: window.innerWidth, height: window.innerHeight};
}
"""


def _pretty_json(payload: Any) -> str:
    try:
        return json.dumps(payload, indent=2, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return str(payload)


def _flag_values(flags: DisplayFlags) -> List[str]:
    return [opt["value"] for opt in FLAG_OPTIONS if getattr(flags, opt["value"])]


def _pane_style(width: float, height: float) -> Dict[str, Any]:
    return {"width": f"{width}px", "height": f"{height}px", "position": "relative", "overflow": "hidden"}


def _pane_update(shell: DualViewShell, last: Dict[str, Any]) -> Tuple[Any, Any]:
    """Pane styles for the committed dimensions, or no_update when they have not changed."""
    dims = shell.dimensions
    if last.get("dims") == dims:
        return no_update, no_update
    last["dims"] = dict(dims)
    return _pane_style(dims["width2D"], dims["height"]), _pane_style(dims["width3D"], dims["height"])


def build_layout(shell: DualViewShell, frame_ms: int) -> html.Div:
    dims = shell.dimensions
    button_style = {
        "height": "28px",
        "padding": "0 10px",
        "background": "transparent",
        "border": "1px solid rgba(154,164,178,0.4)",
        "color": TEXT_MAIN,
        "marginLeft": "8px",
    }
    header = html.Div(
        id="header",
        style={
            "height": f"{HEADER_HEIGHT}px",
            "display": "flex",
            "alignItems": "center",
            "gap": "16px",
            "padding": "0 12px",
            "color": TEXT_MAIN,
            "fontSize": "12px",
        },
        children=[
            dcc.Checklist(
                id="display-flags",
                options=FLAG_OPTIONS,
                value=_flag_values(shell.flags),
                inline=True,
                inputStyle={"marginRight": "4px", "marginLeft": "10px"},
            ),
            dcc.RadioItems(
                id="link-mode",
                options=[{"label": "Curved", "value": "curved"}, {"label": "Offset", "value": "offset"}],
                value=shell.flags.link_render_mode,
                inline=True,
            ),
            html.Div(
                dcc.Slider(id="split", min=10, max=90, step=1, value=50, marks=None, updatemode="drag"),
                style={"width": "180px"},
            ),
            html.Button(
                "Stop rotation" if shell.flags.is_rotating else "Rotate",
                id="rotate-btn",
                n_clicks=0,
                style=button_style,
            ),
            html.Button("Fullscreen", id="fullscreen-btn", n_clicks=0, style=button_style),
            html.Button("Fit", id="fit-btn", n_clicks=0, style=button_style),
            html.Span(id="webgl-indicator", style={"color": "#ff4d4d"}),
        ],
    )
    return html.Div(
        style={"width": "100vw", "height": "100vh", "backgroundColor": BG, "overflow": "hidden"},
        children=[
            header,
            html.Div(
                style={"display": "flex"},
                children=[
                    html.Div(
                        id="pane-2d",
                        style=_pane_style(dims["width2D"], dims["height"]),
                        children=dcc.Graph(id="graph-2d", config={"displayModeBar": False}, style={"height": "100%"}),
                    ),
                    html.Div(
                        id="pane-3d",
                        style=_pane_style(dims["width3D"], dims["height"]),
                        children=dcc.Graph(id="graph-3d", config={"displayModeBar": False}, style={"height": "100%"}),
                    ),
                ],
            ),
            html.Pre(
                id="node-panel",
                style={
                    "position": "fixed",
                    "right": "12px",
                    "bottom": "12px",
                    "maxWidth": "360px",
                    "maxHeight": "40vh",
                    "overflowY": "auto",
                    "color": TEXT_MUTED,
                    "fontSize": "11px",
                    "background": "rgba(0,0,0,0.7)",
                },
            ),
            dcc.Store(id="webgl-support", data=True),
            dcc.Store(id="window-size", data=None),
            dcc.Interval(id="probe-interval", interval=500, n_intervals=0, max_intervals=1),
            dcc.Interval(id="frame-interval", interval=max(frame_ms, 16), n_intervals=0),
        ],
    )


def create_app(shell: DualViewShell, state: DatasetState, render: RenderSettings, frame_ms: int = 50) -> Dash:
    lock = Lock()
    selected: Dict[str, Any] = {}
    panes: Dict[str, Any] = {"dims": dict(shell.dimensions)}

    app = Dash(__name__, suppress_callback_exceptions=True, title="Twin Graph", external_stylesheets=[])
    server = app.server
    app.layout = build_layout(shell, frame_ms)

    @server.route("/frame/2d")
    def _frame_2d():
        with lock:
            frame = shell.canvas_frame
            overlay = shell.overlay_frame
            return jsonify(
                {
                    "canvas": frame.to_dict() if frame is not None else None,
                    "overlay": overlay.to_dict() if overlay is not None else None,
                }
            )

    @server.route("/frame/3d")
    def _frame_3d():
        with lock:
            frame = shell.scene_frame
            return jsonify({"scene": frame.to_dict() if frame is not None else None})

    @server.route("/health")
    def _health():
        meta = state.to_dict()
        return jsonify(
            {
                "ok": not shell.destroyed,
                "dataset": meta,
                "flags": _flag_values(shell.flags),
                "webgl": shell.webgl_available,
                "schedulerErrors": shell.scheduler.errors,
            }
        )

    app.clientside_callback(
        WEBGL_PROBE,
        Output("webgl-support", "data"),
        Input("probe-interval", "n_intervals"),
    )
    app.clientside_callback(
        WINDOW_PROBE,
        Output("window-size", "data"),
        Input("probe-interval", "n_intervals"),
    )

    @app.callback(Output("webgl-indicator", "children"), Input("webgl-support", "data"))
    def _set_webgl(supported: Optional[bool]):
        with lock:
            shell.set_3d_support(bool(supported))
        return "" if supported else "3D disabled: WebGL unavailable"

    @app.callback(
        Output("graph-2d", "figure"),
        Output("graph-3d", "figure"),
        Output("pane-2d", "style"),
        Output("pane-3d", "style"),
        Input("frame-interval", "n_intervals"),
    )
    def _tick(_n: int):
        with lock:
            if shell.frame() is None:
                return no_update, no_update, no_update, no_update
            # a throttled split commits inside frame(), so the panes follow it here
            style_2d, style_3d = _pane_update(shell, panes)
            return (
                canvas_figure(shell.canvas_frame, shell.overlay_frame, render),
                scene_figure(shell.scene_frame, render),
                style_2d,
                style_3d,
            )

    @app.callback(
        Output("header", "title"),
        Input("display-flags", "value"),
        Input("link-mode", "value"),
        prevent_initial_call=True,
    )
    def _set_flags(values: List[str], mode: str):
        values = values or []
        with lock:
            flags = shell.set_flags(
                link_render_mode=mode or "curved",
                **{opt["value"]: opt["value"] in values for opt in FLAG_OPTIONS},
            )
        return ", ".join(_flag_values(flags))

    @app.callback(
        Output("rotate-btn", "children"),
        Input("rotate-btn", "n_clicks"),
        prevent_initial_call=True,
    )
    def _toggle_rotation(_n: int):
        with lock:
            flags = shell.set_flags(is_rotating=not shell.flags.is_rotating)
        return "Stop rotation" if flags.is_rotating else "Rotate"

    @app.callback(
        Output("header", "style"),
        Input("split", "value"),
        Input("fullscreen-btn", "n_clicks"),
        Input("window-size", "data"),
        State("header", "style"),
        prevent_initial_call=True,
    )
    def _layout_change(split: Optional[float], _fs: int, size: Optional[Dict[str, float]], header_style: Dict[str, Any]):
        triggered = {t.get("prop_id", "").split(".")[0] for t in (callback_context.triggered or [])}
        with lock:
            if "window-size" in triggered and size:
                shell.resize(float(size["width"]), float(size["height"]))
            if "fullscreen-btn" in triggered:
                shell.toggle_fullscreen()
            if "split" in triggered and split is not None:
                # committed by the throttle on the next frame
                shell.drag_split(float(split) / 100.0)
            fullscreen = shell.fullscreen
        header_style = dict(header_style or {})
        header_style["display"] = "none" if fullscreen else "flex"
        return header_style

    @app.callback(
        Output("fit-btn", "title"),
        Input("fit-btn", "n_clicks"),
        prevent_initial_call=True,
    )
    def _fit(_n: int):
        with lock:
            shell.fit_2d()
            k = shell.views[VIEW_2D].projector.viewport.k
        return f"zoom {k:.2f}"

    @app.callback(
        Output("node-panel", "children"),
        Input("graph-2d", "clickData"),
        Input("graph-3d", "clickData"),
        prevent_initial_call=True,
    )
    def _node_click(click_2d: Optional[Dict[str, Any]], click_3d: Optional[Dict[str, Any]]):
        trigger = (callback_context.triggered or [{}])[0].get("prop_id", "")
        view, data = (VIEW_3D, click_3d) if trigger.startswith("graph-3d") else (VIEW_2D, click_2d)
        points = (data or {}).get("points") or []
        node_id = points[0].get("customdata") if points else None
        if node_id is None:
            return no_update
        with lock:
            node = shell.select(view, str(node_id))
        if node is None:
            return no_update
        selected["view"] = view
        selected["node"] = node.to_dict()
        return _pretty_json(selected)

    return app


def main() -> None:
    ap = argparse.ArgumentParser(description="Twin Graph: side-by-side 2D/3D risk network views.")
    ap.add_argument("--data", type=str, default=str(DEFAULT_DATASET), help="Path to the {nodes, links} dataset JSON.")
    ap.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_PATH), help="Path to config.yml.")
    ap.add_argument("--host", type=str, default="127.0.0.1", help="Host bind.")
    ap.add_argument("--port", type=int, default=8050, help="Port.")
    ap.add_argument("--frame-ms", type=int, default=50, help="Figure refresh interval in milliseconds.")
    ap.add_argument("--log-dir", type=str, default="", help="Write twin_graph.log into this directory.")
    ap.add_argument("--debug", action="store_true", help="Verbose logging.")
    args = ap.parse_args()

    setup_logging(Path(args.log_dir).expanduser() if args.log_dir else None, logging.DEBUG if args.debug else logging.INFO)
    config_path = Path(args.config).expanduser()
    config = load_config(config_path if config_path.exists() else None)
    state = DatasetState(Path(args.data).expanduser())
    dataset = state.load()

    shell = DualViewShell(
        dataset,
        config=config,
        chrome_height=HEADER_HEIGHT,
        on_node_click=lambda view, node: logger.info("node-click", extra={"view": view, "node_id": node.get("id")}),
    )
    app = create_app(shell, state, RenderSettings.from_config(config), args.frame_ms)
    logger.info("gui-start", extra={"host": args.host, "port": args.port, **dataset.meta})
    try:
        app.run(host=args.host, port=args.port, debug=False)
    finally:
        shell.destroy()


if __name__ == "__main__":
    main()
