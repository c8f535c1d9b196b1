"""
Side-by-side composition of the 2D and 3D views.

Each view gets its own deep clone of the dataset, its own layout engine and
its own recurring tasks, so neither view ever sees positions written by the
other. The shell owns the display flags, the split/fullscreen dimensions and
the click callback, and is driven by calling `frame(now)` from a host loop.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from twin_core.calculator import configure_arrows, prepare_nodes
from twin_core.config import (
    DEFAULT_CONFIG,
    DisplayFlags,
    ForceProfile,
    OverlaySettings,
    RenderSettings,
    TimerSettings,
    node_sizes,
)
from twin_core.models import GraphDataset, Link, Node
from twin_core.twin_math import clamp, clamp_normalize
from twin_graph.twin_links import normalize_links, to_bidirectional
from twin_graph.twin_physics import ForceLayout, build_layout

from .camera import CameraOrbit
from .overlay import OverlayFrame, OverlaySynchronizer
from .painter_2d import CanvasFrame, build_canvas_frame
from .projector import PerspectiveCamera, Projector2D, Projector3D, Viewport2D, hit_test
from .scene_3d import SceneFrame, build_scene_frame
from .scheduler import FrameThrottle, RecurringTask, TaskScheduler
from .shapes import node_radius

logger = logging.getLogger(__name__)

VIEW_2D = "2d"
VIEW_3D = "3d"
DERIVED_FIELDS = (
    "main_value",
    "incoming_value",
    "outgoing_value",
    "original_stress_level",
    "size",
    "centrality",
    "color",
    "group",
)


@dataclass
class ViewState:
    name: str
    dataset: GraphDataset
    nodes: List[Node]
    links: List[Link]
    layout: ForceLayout
    projector: Any
    overlay: Optional[OverlaySynchronizer] = None
    orbit: Optional[CameraOrbit] = None
    tasks: List[RecurringTask] = field(default_factory=list)
    frame: Any = None
    overlay_frame: Optional[OverlayFrame] = None

    @property
    def dims(self) -> int:
        return self.layout.dims


def compute_dimensions(
    total_width: float,
    total_height: float,
    split_ratio: float = 0.5,
    fullscreen: bool = False,
    chrome_height: float = 0.0,
) -> Dict[str, float]:
    ratio = clamp(split_ratio, 0.1, 0.9)
    width_2d = round(total_width * ratio)
    height = total_height if fullscreen else max(total_height - chrome_height, 0)
    return {"width2D": width_2d, "width3D": total_width - width_2d, "height": height}


def _copy_derived(target: Node, source: Node) -> None:
    for name in DERIVED_FIELDS:
        setattr(target, name, getattr(source, name))


class DualViewShell:
    def __init__(
        self,
        dataset: GraphDataset,
        config: Optional[Dict[str, Any]] = None,
        flags: Optional[DisplayFlags] = None,
        width: float = 1600,
        height: float = 900,
        on_node_click: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        arrow_config: Optional[Dict[str, Dict[str, Any]]] = None,
        clock: Callable[[], float] = time.monotonic,
        chrome_height: float = 0.0,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.flags = flags or DisplayFlags.from_config(self.config)
        self.render = RenderSettings.from_config(self.config)
        self.timers = TimerSettings.from_config(self.config)
        self.overlay_settings = OverlaySettings.from_config(self.config)
        self.sizes = node_sizes(self.config)
        self.arrow_config = arrow_config or {}
        self.on_node_click = on_node_click
        self.clock = clock
        self.chrome_height = chrome_height
        self.total_width = width
        self.total_height = height
        self.split_ratio = 0.5
        self.fullscreen = False
        self.webgl_available = True
        self.destroyed = False
        self.scheduler = TaskScheduler(clock=clock)
        self.resize_throttle = FrameThrottle(self._commit_split, self.timers.resize_min_ms)

        dims = self.dimensions
        self.views: Dict[str, ViewState] = {
            VIEW_2D: self._build_view(VIEW_2D, dataset, dims["width2D"], dims["height"]),
            VIEW_3D: self._build_view(VIEW_3D, dataset, dims["width3D"], dims["height"]),
        }
        logger.info(
            "shell-ready",
            extra={"nodes": len(dataset.nodes), "links": len(dataset.links), "flags": asdict(self.flags)},
        )

    # -- construction ---------------------------------------------------
    def _display_links(self, base: List[Link]) -> List[Link]:
        links = to_bidirectional(base) if self.flags.bidirectional else [replace(l) for l in base]
        return configure_arrows(links, self.arrow_config)

    def _prepared_nodes(self, nodes: List[Node], base: List[Link]) -> List[Node]:
        return prepare_nodes(nodes, base, self.flags.alternative_shapes, self.sizes)

    def _build_view(self, name: str, dataset: GraphDataset, width: float, height: float) -> ViewState:
        clone = dataset.clone()
        base = normalize_links(clone.links)
        clone.links = base
        nodes = self._prepared_nodes(clone.nodes, base)
        links = self._display_links(base)
        profile = ForceProfile.from_config(self.config, name)
        layout = build_layout(nodes, links, profile, 3 if name == VIEW_3D else 2, clock=self.clock)
        layout.start(self.clock())

        if name == VIEW_3D:
            cfg = self.render.graph_3d
            camera = PerspectiveCamera(width, height, fov=float(cfg.get("fov", 50.0)))
            orbit = CameraOrbit(
                camera,
                distance=float(cfg.get("camera_distance", 700.0)),
                step=self.timers.orbit_step,
                rotating=self.flags.is_rotating,
            )
            projector = Projector3D(camera, float(cfg.get("label_gap", 4.0)))
            view = ViewState(name, clone, nodes, links, layout, projector, orbit=orbit)
        else:
            viewport = Viewport2D(width, height, k=float(self.render.view(VIEW_2D, "zoom", 1.0)))
            projector = Projector2D(viewport, self.overlay_settings.label_gap_above, self.overlay_settings.value_gap_below)
            overlay = OverlaySynchronizer(projector, self.overlay_settings, self.sizes.min, self.render.shape_scale)
            view = ViewState(name, clone, nodes, links, layout, projector, overlay=overlay)

        # simulation first, so the overlay and camera see this frame's positions
        view.tasks.append(self.scheduler.add(RecurringTask(f"layout-{name}", profile.tick_ms, layout.advance)))
        if view.orbit is not None:
            orbit_task = RecurringTask(f"orbit-{name}", self.timers.orbit_ms, view.orbit.tick)
            view.tasks.append(self.scheduler.add(orbit_task, start=self.flags.is_rotating))
        if view.overlay is not None:
            view.tasks.append(
                self.scheduler.add(
                    RecurringTask(f"overlay-{name}", self.timers.overlay_ms, lambda now, v=view: self._sync_overlay(v))
                )
            )
        return view

    # -- per-frame ------------------------------------------------------
    def _sync_overlay(self, view: ViewState) -> None:
        view.overlay_frame = view.overlay.sync(view.nodes, view.links, self.flags)

    def _build_frame(self, view: ViewState, now: float) -> Any:
        if view.name == VIEW_2D:
            return build_canvas_frame(view.nodes, view.links, view.projector.viewport, self.flags, now, self.render, self.sizes.min)
        return build_scene_frame(
            view.nodes,
            view.links,
            self.flags,
            now,
            self.render,
            camera=view.projector.camera,
            available=self.webgl_available,
            min_size=self.sizes.min,
        )

    def frame(self, now: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Run due tasks, commit a pending resize, rebuild both frames. No-op after destroy."""
        if self.destroyed:
            return None
        now = self.clock() if now is None else now
        self.scheduler.run_pending(now)
        self.resize_throttle.flush(now)
        for view in self.views.values():
            try:
                view.frame = self._build_frame(view, now)
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("frame-error", extra={"view": view.name, "error": str(exc)})
        return {
            VIEW_2D: self.views[VIEW_2D].frame,
            VIEW_3D: self.views[VIEW_3D].frame,
            "overlay": self.views[VIEW_2D].overlay_frame,
        }

    @property
    def canvas_frame(self) -> Optional[CanvasFrame]:
        return self.views[VIEW_2D].frame

    @property
    def scene_frame(self) -> Optional[SceneFrame]:
        return self.views[VIEW_3D].frame

    @property
    def overlay_frame(self) -> Optional[OverlayFrame]:
        return self.views[VIEW_2D].overlay_frame

    # -- inputs ---------------------------------------------------------
    def set_flags(self, **changes: Any) -> DisplayFlags:
        """Apply flag changes; links and derived metrics are re-derived, positions are kept."""
        previous = self.flags
        self.flags = self.flags.updated(**changes)
        if self.flags.is_rotating != previous.is_rotating:
            self._set_rotation(self.flags.is_rotating)
        if self.flags.bidirectional != previous.bidirectional or self.flags.alternative_shapes != previous.alternative_shapes:
            for view in self.views.values():
                base = view.dataset.links
                for node, fresh in zip(view.nodes, self._prepared_nodes(view.nodes, base)):
                    _copy_derived(node, fresh)
                view.links = self._display_links(base)
                view.layout.set_links(view.links)
        logger.info("flags-changed", extra={"changes": changes})
        return self.flags

    def _set_rotation(self, rotating: bool) -> None:
        # the orbit timer is stopped with the camera, not left firing as a no-op
        self.views[VIEW_3D].orbit.set_rotating(rotating)
        task = self.scheduler.get(f"orbit-{VIEW_3D}")
        if task is None:
            return
        if rotating:
            task.start(self.clock())
        else:
            task.stop()

    def fit_2d(self, padding: float = 20.0) -> None:
        """Zoom and pan the 2D viewport so every placed node is on screen."""
        view = self.views[VIEW_2D]
        view.projector.viewport.zoom_to_fit(
            [(n.x, n.y) for n in view.nodes if n.has_position], padding
        )

    def set_3d_support(self, available: bool) -> None:
        if self.webgl_available != bool(available):
            logger.warning("webgl-support", extra={"available": bool(available)})
        self.webgl_available = bool(available)

    @property
    def dimensions(self) -> Dict[str, float]:
        return compute_dimensions(self.total_width, self.total_height, self.split_ratio, self.fullscreen, self.chrome_height)

    def _apply_dimensions(self) -> None:
        dims = self.dimensions
        self.views[VIEW_2D].projector.viewport.resize(dims["width2D"], dims["height"])
        self.views[VIEW_3D].projector.camera.resize(dims["width3D"], dims["height"])

    def _commit_split(self, ratio: object) -> None:
        self.split_ratio = clamp_normalize(ratio, lo=0.1, hi=0.9, default=self.split_ratio, label="split_ratio")
        self._apply_dimensions()

    def drag_split(self, ratio: float) -> None:
        self.resize_throttle.request(ratio)

    def resize(self, width: float, height: float) -> None:
        self.total_width, self.total_height = width, height
        self._apply_dimensions()

    def toggle_fullscreen(self) -> bool:
        self.fullscreen = not self.fullscreen
        self._apply_dimensions()
        return self.fullscreen

    def click(self, view_name: str, sx: float, sy: float) -> Optional[Node]:
        view = self.views.get(view_name)
        if view is None or self.destroyed:
            return None
        hit = hit_test(
            view.nodes,
            view.projector,
            sx,
            sy,
            lambda n: node_radius(n, self.flags.fixed_node_size, self.sizes.min, self.render.shape_scale),
        )
        if hit is None:
            return None
        return self.select(view_name, hit.node.id)

    def select(self, view_name: str, node_id: str) -> Optional[Node]:
        view = self.views.get(view_name)
        if view is None:
            return None
        node = next((n for n in view.nodes if n.id == node_id), None)
        if node is not None and self.on_node_click is not None:
            self.on_node_click(view_name, node.to_dict())
        return node

    def destroy(self) -> None:
        self.scheduler.cancel_all()
        self.resize_throttle.cancel()
        for view in self.views.values():
            view.tasks.clear()
        self.destroyed = True
        logger.info("shell-destroyed")


__all__ = ["DualViewShell", "VIEW_2D", "VIEW_3D", "ViewState", "compute_dimensions"]
