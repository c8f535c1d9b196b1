import math

import pytest

from twin_view.camera import CameraOrbit
from twin_view.projector import PerspectiveCamera


def test_orbit_starts_in_front_of_scene():
    cam = PerspectiveCamera(800, 600, position=(5.0, 20.0, 1.0))
    CameraOrbit(cam, distance=500.0)
    assert cam.position == (0.0, 20.0, 500.0)


def test_tick_moves_camera_along_circle():
    cam = PerspectiveCamera(800, 600)
    orbit = CameraOrbit(cam, distance=700.0, step=0.1)
    for _ in range(3):
        assert orbit.tick()
    assert orbit.angle == pytest.approx(0.3)
    assert cam.position[0] == pytest.approx(700.0 * math.sin(0.2))
    assert cam.distance == pytest.approx(700.0)


def test_resume_continues_from_last_angle():
    cam = PerspectiveCamera(800, 600)
    orbit = CameraOrbit(cam, distance=700.0, step=0.1)
    orbit.tick()
    orbit.tick()
    orbit.stop()
    assert orbit.navigation_enabled
    assert not orbit.tick()
    assert orbit.angle == pytest.approx(0.2)

    orbit.set_rotating(True)
    assert not orbit.navigation_enabled
    orbit.tick()
    assert cam.position[0] == pytest.approx(700.0 * math.sin(0.2))
    assert orbit.ticks == 3
