from __future__ import annotations

from typing import Sequence

import numpy as np

from voxterrain.errors import ConfigurationError
from voxterrain.world.bounds import BoundCurve
from voxterrain.world.noise import NoiseLayer, layer_seeds, make_noise


class DensityField:
    """Signed terrain density: a weighted noise sum squeezed into a height band.

    ``raw = sum(w_i * noise_i(p * s_i))`` is remapped from its fixed range
    ``[-sum|w|, sum|w|]`` into ``[lower(y), upper(y)]``. Two bound curves give
    the whole world its layering (floor, caves, surface, hills, open air)
    from one coherent function. Values below the iso level are solid.
    """

    def __init__(
        self,
        seed: int,
        layers: Sequence[NoiseLayer],
        upper_curve: BoundCurve,
        lower_curve: BoundCurve,
        *,
        mode: str = "fast",
    ) -> None:
        self.seed = int(seed)
        self.layers = tuple(layers)
        if not self.layers:
            raise ConfigurationError("at least one noise layer is required")
        self.upper_curve = upper_curve
        self.lower_curve = lower_curve
        self.mode = mode

        self.raw_max = float(sum(abs(layer.weight) for layer in self.layers))
        if self.raw_max <= 0.0:
            raise ConfigurationError("noise layer weights sum to zero")
        self.raw_min = -self.raw_max

        self._sources = [make_noise(mode, s) for s in layer_seeds(self.seed, len(self.layers))]

    @classmethod
    def from_config(cls, cfg) -> "DensityField":
        return cls(cfg.seed, cfg.layers, cfg.upper_curve, cfg.lower_curve, mode=cfg.noise_mode)

    def _remap(self, raw: np.ndarray, y: np.ndarray) -> np.ndarray:
        upper = np.asarray(self.upper_curve(y), dtype=np.float64)
        lower = np.asarray(self.lower_curve(y), dtype=np.float64)
        diff = upper - lower
        t = (raw - self.raw_min) / (self.raw_max - self.raw_min)
        return (t * diff + lower).astype(np.float32)

    def sample_points(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        """Vectorized sample at arbitrary points (arrays of equal shape)."""
        x, y, z = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64), np.asarray(z, dtype=np.float64))
        raw = np.zeros(x.shape, dtype=np.float64)
        for layer, src in zip(self.layers, self._sources):
            s = layer.scale
            raw += layer.weight * src.points(x * s, y * s, z * s)
        return self._remap(raw, y)

    def sample(self, x: float, y: float, z: float) -> float:
        out = self.sample_points(np.array([x]), np.array([y]), np.array([z]))
        return float(out[0])

    def sample_lattice(self, xs: np.ndarray, ys: np.ndarray, zs: np.ndarray) -> np.ndarray:
        """Sample an axis-aligned lattice, returns float32 of shape (nz, ny, nx)."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        zs = np.asarray(zs, dtype=np.float64)
        raw = np.zeros((zs.size, ys.size, xs.size), dtype=np.float64)
        for layer, src in zip(self.layers, self._sources):
            s = layer.scale
            raw += layer.weight * src.lattice(xs * s, ys * s, zs * s)
        return self._remap(raw, ys[None, :, None])
