from .camera import CameraOrbit
from .overlay import OverlayElement, OverlayFrame, OverlaySynchronizer, link_label_text, place_link_label
from .painter_2d import CanvasFrame, build_canvas_frame
from .projector import PerspectiveCamera, Projector2D, Projector3D, Viewport2D, hit_test
from .scene_3d import SceneFrame, build_scene_frame
from .scheduler import FrameThrottle, RecurringTask, TaskScheduler
from .shell import DualViewShell, ViewState, compute_dimensions

__all__ = [
    "CameraOrbit",
    "OverlayElement",
    "OverlayFrame",
    "OverlaySynchronizer",
    "link_label_text",
    "place_link_label",
    "CanvasFrame",
    "build_canvas_frame",
    "PerspectiveCamera",
    "Projector2D",
    "Projector3D",
    "Viewport2D",
    "hit_test",
    "SceneFrame",
    "build_scene_frame",
    "FrameThrottle",
    "RecurringTask",
    "TaskScheduler",
    "DualViewShell",
    "ViewState",
    "compute_dimensions",
]
