from __future__ import annotations

import numpy as np


def normalize(v: np.ndarray) -> np.ndarray:
    n = float(np.linalg.norm(v))
    return v if n == 0.0 else v / n


def direction(yaw: float, pitch: float) -> np.ndarray:
    """Unit view direction; yaw 0 looks down +Z, positive pitch looks up."""
    cp = np.cos(pitch)
    return np.array([np.sin(yaw) * cp, np.sin(pitch), np.cos(yaw) * cp], dtype=np.float32)


def look_at(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """Column-major view matrix (OpenGL convention, written row by row as numpy sees it)."""
    f = normalize(np.asarray(target, dtype=np.float32) - eye)
    s = normalize(np.cross(f, up))
    u = np.cross(s, f)

    m = np.eye(4, dtype=np.float32)
    m[:3, 0] = s
    m[:3, 1] = u
    m[:3, 2] = -f
    m[3, :3] = (-np.dot(s, eye), -np.dot(u, eye), np.dot(f, eye))
    return m


def perspective(fov_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Column-major projection matrix."""
    f = 1.0 / np.tan(np.radians(fov_deg) * 0.5)
    m = np.zeros((4, 4), dtype=np.float32)
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = (far + near) / (near - far)
    m[2, 3] = -1.0
    m[3, 2] = 2.0 * far * near / (near - far)
    return m


def exp_smooth(current: float, target: float, k: float, dt: float) -> float:
    """Frame-rate independent exponential approach of ``current`` toward ``target``."""
    return target + (current - target) * float(np.exp(-k * dt))
