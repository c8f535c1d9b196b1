from __future__ import annotations

import logging
import math
from typing import Optional

from .projector import PerspectiveCamera

logger = logging.getLogger(__name__)


class CameraOrbit:
    """
    Slow horizontal orbit of the 3D camera around the scene origin.

    The angle survives stop/start, so resuming continues from where the
    camera was left instead of snapping back to angle 0. While orbiting,
    user navigation is disabled.
    """

    def __init__(
        self,
        camera: PerspectiveCamera,
        distance: float = 700.0,
        step: float = math.pi / 1000,
        rotating: bool = True,
    ) -> None:
        self.camera = camera
        self.distance = distance
        self.step = step
        self.angle = 0.0
        self.rotating = rotating
        self.ticks = 0
        self.camera.position = (0.0, self.camera.position[1], distance)

    @property
    def navigation_enabled(self) -> bool:
        return not self.rotating

    def start(self) -> None:
        if not self.rotating:
            logger.debug("orbit-start", extra={"angle": self.angle})
        self.rotating = True

    def stop(self) -> None:
        if self.rotating:
            logger.debug("orbit-stop", extra={"angle": self.angle})
        self.rotating = False

    def set_rotating(self, rotating: bool) -> None:
        if rotating:
            self.start()
        else:
            self.stop()

    def tick(self, now: Optional[float] = None) -> bool:
        if not self.rotating:
            return False
        self.camera.orbit_position(self.angle, self.distance)
        self.angle += self.step
        self.ticks += 1
        return True


__all__ = ["CameraOrbit"]
