import numpy as np
import pytest

from voxterrain.render.camera import FlyCamera
from voxterrain.util.math import direction, exp_smooth, look_at, normalize, perspective


def _camera() -> FlyCamera:
    return FlyCamera(
        position=(0.0, 10.0, 0.0),
        max_speed=10.0,
        accel=100.0,
        drag=0.0,
        turn_rate=1.0,
        climb_rate=5.0,
        input_smooth_k=1000.0,
    )


def test_direction_and_normalize() -> None:
    np.testing.assert_allclose(direction(0.0, 0.0), [0.0, 0.0, 1.0], atol=1e-7)
    np.testing.assert_allclose(direction(0.0, np.pi / 2), [0.0, 1.0, 0.0], atol=1e-7)
    np.testing.assert_allclose(normalize(np.array([3.0, 0.0, 4.0])), [0.6, 0.0, 0.8])
    np.testing.assert_array_equal(normalize(np.zeros(3)), np.zeros(3))


def test_look_at_moves_eye_to_origin() -> None:
    eye = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    m = look_at(eye, eye + np.array([0.0, 0.0, 1.0], dtype=np.float32), np.array([0.0, 1.0, 0.0], dtype=np.float32))
    # numpy holds the transpose of the GL matrix, so points multiply from the left
    out = np.append(eye, 1.0) @ m
    np.testing.assert_allclose(out[:3], 0.0, atol=1e-5)


def test_perspective_shape() -> None:
    m = perspective(90.0, 2.0, 0.1, 100.0)
    assert m[1, 1] == pytest.approx(1.0)
    assert m[0, 0] == pytest.approx(0.5)
    assert m[2, 3] == -1.0


def test_exp_smooth_converges() -> None:
    assert exp_smooth(0.0, 1.0, 5.0, 0.0) == 0.0
    assert exp_smooth(0.0, 1.0, 5.0, 10.0) == pytest.approx(1.0)


def test_camera_flies_forward_and_climbs() -> None:
    cam = _camera()
    for _ in range(60):
        cam.update(1.0 / 30.0, forward=1.0, turn=0.0, lift=1.0)
    assert cam.z > 5.0
    assert cam.x == pytest.approx(0.0, abs=1e-6)
    assert cam.y > 15.0
    assert cam.speed <= cam.max_speed + 1e-6
    assert cam.view_matrix().shape == (4, 4)
