from __future__ import annotations

import logging
import time

from voxterrain.config import TerrainConfig
from voxterrain.world.chunk import ChunkCoord
from voxterrain.world.density import DensityField
from voxterrain.world.marching_cubes import extract
from voxterrain.world.matrix3d import Matrix3D
from voxterrain.world.mesh import MeshBuffer
from voxterrain.world.triangulation import TriangulationTable, load_table
from voxterrain.world.voxels import VoxelGridBuilder

log = logging.getLogger(__name__)


class Terrain:
    """Chunk mesh generator: density field -> voxel grid -> marching cubes.

    Holds no per-chunk state, so ``get_chunk`` can be called from worker
    threads.
    """

    def __init__(self, cfg: TerrainConfig, table: TriangulationTable | None = None) -> None:
        self.cfg = cfg
        self.table = table if table is not None else load_table(cfg.table_path)
        self.field = DensityField.from_config(cfg)
        self.builder = VoxelGridBuilder(self.field, cfg.points_per_chunk, cfg.scale)

    @property
    def chunk_size(self) -> float:
        return self.cfg.chunk_size

    def build_grid(self, coord: ChunkCoord) -> Matrix3D:
        return self.builder.build(coord)

    def mesh_grid(self, grid: Matrix3D) -> MeshBuffer:
        return extract(grid, self.cfg.scale, self.table, self.cfg.interpolate, iso_level=self.cfg.iso_level)

    def get_chunk(self, coord: ChunkCoord) -> MeshBuffer:
        t0 = time.perf_counter()
        mesh = self.mesh_grid(self.build_grid(coord))
        log.debug("chunk %s: %d triangles in %.1f ms", coord, mesh.triangle_count, (time.perf_counter() - t0) * 1000.0)
        return mesh
