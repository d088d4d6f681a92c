from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from opensimplex import OpenSimplex

from voxterrain.errors import ConfigurationError

NOISE_MODES = ("fast", "simplex")


@dataclass(frozen=True)
class NoiseLayer:
    weight: float
    scale: float  # frequency applied to world coordinates


def fbm_layers(octaves: int = 4, base_scale: float = 0.02, lacunarity: float = 2.0, gain: float = 0.5) -> tuple[NoiseLayer, ...]:
    """Classic fBm octaves expressed as independent weighted layers."""
    layers = []
    freq = float(base_scale)
    amp = 1.0
    for _ in range(int(octaves)):
        layers.append(NoiseLayer(weight=amp, scale=freq))
        freq *= lacunarity
        amp *= gain
    return tuple(layers)


def layer_seeds(seed: int, count: int) -> list[int]:
    """Derive one independent seed per layer from the world seed (PCG64 stream)."""
    rng = np.random.default_rng(int(seed))
    return [int(s) for s in rng.integers(0, 2**31 - 1, size=int(count))]


class FastValueNoise3D:
    """Fast 3D value noise with fully vectorized numpy implementation.

    Uses an integer hash on lattice points and smootherstep trilinear
    interpolation. Output lies in [-1, 1). Deterministic for a given seed.
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed) & 0xFFFFFFFF

    @staticmethod
    def _fade(t: np.ndarray) -> np.ndarray:
        # smootherstep
        return t * t * t * (t * (t * 6 - 15) + 10)

    def _hash(self, xi: np.ndarray, yi: np.ndarray, zi: np.ndarray) -> np.ndarray:
        # Vectorized integer hash -> uint32 -> [0,1)
        h = (
            (xi.astype(np.uint32) * np.uint32(374761393))
            ^ (yi.astype(np.uint32) * np.uint32(668265263))
            ^ (zi.astype(np.uint32) * np.uint32(2147483647))
            ^ np.uint32(self.seed)
        )
        h ^= (h >> np.uint32(13))
        h *= np.uint32(1274126177)
        h ^= (h >> np.uint32(16))
        return h.astype(np.float64) / 2.0**32

    def points(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)

        xi0 = np.floor(x).astype(np.int64)
        yi0 = np.floor(y).astype(np.int64)
        zi0 = np.floor(z).astype(np.int64)

        u = self._fade(x - xi0)
        v = self._fade(y - yi0)
        w = self._fade(z - zi0)

        c000 = self._hash(xi0, yi0, zi0)
        c100 = self._hash(xi0 + 1, yi0, zi0)
        c010 = self._hash(xi0, yi0 + 1, zi0)
        c110 = self._hash(xi0 + 1, yi0 + 1, zi0)
        c001 = self._hash(xi0, yi0, zi0 + 1)
        c101 = self._hash(xi0 + 1, yi0, zi0 + 1)
        c011 = self._hash(xi0, yi0 + 1, zi0 + 1)
        c111 = self._hash(xi0 + 1, yi0 + 1, zi0 + 1)

        x00 = c000 + (c100 - c000) * u
        x10 = c010 + (c110 - c010) * u
        x01 = c001 + (c101 - c001) * u
        x11 = c011 + (c111 - c011) * u
        y0 = x00 + (x10 - x00) * v
        y1 = x01 + (x11 - x01) * v
        n = y0 + (y1 - y0) * w  # [0,1)
        return n * 2.0 - 1.0

    def lattice(self, xs: np.ndarray, ys: np.ndarray, zs: np.ndarray) -> np.ndarray:
        """Evaluate on an axis-aligned lattice, returns shape (nz, ny, nx)."""
        gz, gy, gx = np.meshgrid(np.asarray(zs), np.asarray(ys), np.asarray(xs), indexing="ij")
        return self.points(gx, gy, gz)


class SimplexNoise3D:
    """OpenSimplex-backed 3D noise. Slower, smoother than the value noise."""

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._simp = OpenSimplex(self.seed)

    def points(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        x, y, z = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64), np.asarray(z, dtype=np.float64))
        out = np.empty(x.shape, dtype=np.float64)
        for i in np.ndindex(x.shape):
            out[i] = self._simp.noise3(float(x[i]), float(y[i]), float(z[i]))
        return np.clip(out, -1.0, 1.0)

    def lattice(self, xs: np.ndarray, ys: np.ndarray, zs: np.ndarray) -> np.ndarray:
        out = self._simp.noise3array(
            np.asarray(xs, dtype=np.float64),
            np.asarray(ys, dtype=np.float64),
            np.asarray(zs, dtype=np.float64),
        )
        return np.clip(out, -1.0, 1.0)


def make_noise(mode: str, seed: int) -> FastValueNoise3D | SimplexNoise3D:
    if mode == "fast":
        return FastValueNoise3D(seed)
    if mode == "simplex":
        return SimplexNoise3D(seed)
    raise ConfigurationError(f"unknown noise mode {mode!r}, expected one of {NOISE_MODES}")
