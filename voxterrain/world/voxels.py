from __future__ import annotations

import numpy as np

from voxterrain.errors import ConfigurationError
from voxterrain.world.chunk import ChunkCoord
from voxterrain.world.density import DensityField
from voxterrain.world.matrix3d import Matrix3D


class VoxelGridBuilder:
    """Samples the density field on the (P+1)^3 lattice of one chunk.

    The last lattice plane of a chunk coincides with the first plane of its
    neighbour, so independently built chunks mesh without seams.
    """

    def __init__(self, field: DensityField, points_per_chunk: int, scale: float) -> None:
        if int(points_per_chunk) < 1:
            raise ConfigurationError(f"points_per_chunk must be >= 1, got {points_per_chunk}")
        if not float(scale) > 0.0:
            raise ConfigurationError(f"scale must be positive, got {scale}")
        self.field = field
        self.points_per_chunk = int(points_per_chunk)
        self.scale = float(scale)

    @property
    def chunk_size(self) -> float:
        return self.points_per_chunk * self.scale

    def lattice_axes(self, coord: ChunkCoord) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        steps = np.arange(self.points_per_chunk + 1, dtype=np.float64) * self.scale
        cx, cy, cz = coord
        return (
            cx * self.chunk_size + steps,
            cy * self.chunk_size + steps,
            cz * self.chunk_size + steps,
        )

    def build(self, coord: ChunkCoord) -> Matrix3D:
        xs, ys, zs = self.lattice_axes(coord)
        values = self.field.sample_lattice(xs, ys, zs)
        return Matrix3D.from_array(values).freeze()
