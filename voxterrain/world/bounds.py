from __future__ import annotations

from typing import Sequence

import numpy as np

from voxterrain.errors import ConfigurationError


class BoundCurve:
    """Piecewise-linear mapping from world height to a density bound.

    Constant beyond the first and last control points.
    """

    def __init__(self, heights: Sequence[float], values: Sequence[float]) -> None:
        h = np.asarray(heights, dtype=np.float64).reshape(-1)
        v = np.asarray(values, dtype=np.float64).reshape(-1)
        if h.size == 0:
            raise ConfigurationError("bound curve needs at least one control point")
        if h.size != v.size:
            raise ConfigurationError(f"bound curve has {h.size} heights but {v.size} values")
        if not (np.all(np.isfinite(h)) and np.all(np.isfinite(v))):
            raise ConfigurationError("bound curve control points must be finite")
        if np.any(np.diff(h) <= 0.0):
            raise ConfigurationError("bound curve heights must be strictly increasing")
        self.heights = h
        self.values = v

    @classmethod
    def constant(cls, value: float) -> "BoundCurve":
        return cls([0.0], [float(value)])

    def __call__(self, y):
        out = np.interp(y, self.heights, self.values)
        if np.ndim(out) == 0:
            return float(out)
        return out

    def points(self) -> list[tuple[float, float]]:
        return [(float(a), float(b)) for a, b in zip(self.heights, self.values)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundCurve):
            return NotImplemented
        return np.array_equal(self.heights, other.heights) and np.array_equal(self.values, other.values)

    def __hash__(self) -> int:
        return hash((tuple(self.heights.tolist()), tuple(self.values.tolist())))

    def __repr__(self) -> str:
        return f"BoundCurve({self.points()})"
