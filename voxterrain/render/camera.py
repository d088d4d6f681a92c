from __future__ import annotations

import numpy as np

from voxterrain.util.math import direction, exp_smooth, look_at


def _clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


class FlyCamera:
    """Free-flying camera used as the streaming reference point.

    - Throttle accelerates along the view direction, drag bleeds speed off.
    - Turn input yaws, lift input climbs/descends at a fixed rate.
    - Digital inputs are smoothed so arrow keys don't feel like on/off switches.
    """

    def __init__(
        self,
        *,
        position: tuple[float, float, float],
        max_speed: float,
        accel: float,
        drag: float,
        turn_rate: float,
        climb_rate: float,
        input_smooth_k: float,
    ) -> None:
        self.x, self.y, self.z = (float(v) for v in position)
        self.yaw = 0.0
        self.pitch = -0.25
        self.speed = 0.0

        self.max_speed = float(max_speed)
        self.accel = float(accel)
        self.drag = float(drag)
        self.turn_rate = float(turn_rate)
        self.climb_rate = float(climb_rate)
        self.input_smooth_k = float(input_smooth_k)

        self._throttle = 0.0
        self._turn = 0.0
        self._lift = 0.0

    def update(self, dt: float, *, forward: float, turn: float, lift: float) -> None:
        """Advance the camera.

        Args:
            forward: -1..1 (back..forward)
            turn: -1..1 (left..right)
            lift: -1..1 (down..up)
        """
        dt = float(dt)
        self._throttle = exp_smooth(self._throttle, _clamp(forward, -1.0, 1.0), self.input_smooth_k, dt)
        self._turn = exp_smooth(self._turn, _clamp(turn, -1.0, 1.0), self.input_smooth_k, dt)
        self._lift = exp_smooth(self._lift, _clamp(lift, -1.0, 1.0), self.input_smooth_k, dt)

        target = self._throttle * self.max_speed
        step = _clamp(target - self.speed, -self.accel * dt, self.accel * dt)
        self.speed += step
        if self.drag > 0.0:
            self.speed *= float(np.exp(-self.drag * dt))

        # Negated so RIGHT arrow yaws right on screen.
        self.yaw -= self._turn * self.turn_rate * dt

        fwd = direction(self.yaw, 0.0)
        self.x += float(fwd[0]) * self.speed * dt
        self.z += float(fwd[2]) * self.speed * dt
        self.y += self._lift * self.climb_rate * dt

    def eye(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float32)

    def view_matrix(self) -> np.ndarray:
        eye = self.eye()
        target = eye + direction(self.yaw, self.pitch)
        return look_at(eye, target, np.array([0.0, 1.0, 0.0], dtype=np.float32))
