from __future__ import annotations

import numpy as np

from voxterrain.world.matrix3d import Matrix3D
from voxterrain.world.mesh import MeshBuffer
from voxterrain.world.triangulation import CUBE_CORNERS, CUBE_EDGES, TriangulationTable

_CORNER_BITS = (1 << np.arange(len(CUBE_CORNERS), dtype=np.int64))
_DEGENERATE_EPS = 1e-12


def edge_start_weights(ds: np.ndarray, de: np.ndarray, iso_level: float) -> np.ndarray:
    """Weight of the start corner so the blended point sits on the iso crossing.

    ``point = start * w + end * (1 - w)``. Solved from whichever endpoint is
    lower; equal densities fall back to the midpoint. Clamped to [0, 1].
    """
    ds = np.asarray(ds, dtype=np.float64)
    de = np.asarray(de, dtype=np.float64)
    w = np.full(ds.shape, 0.5, dtype=np.float64)

    end_lower = de < ds
    w[end_lower] = (iso_level - de[end_lower]) / (ds[end_lower] - de[end_lower])

    start_lower = de > ds
    end_w = (iso_level - ds[start_lower]) / (de[start_lower] - ds[start_lower])
    w[start_lower] = 1.0 - end_w
    return np.clip(w, 0.0, 1.0)


def cube_config_ids(values_xyz: np.ndarray, iso_level: float) -> tuple[np.ndarray, np.ndarray]:
    """Return (ids, corner_values) for every cube of an (X,Y,Z) sample array.

    ids has shape (X-1, Y-1, Z-1); corner_values has an extra trailing axis of 8.
    Bit i of an id is set when corner i is below the iso level.
    """
    nx, ny, nz = (d - 1 for d in values_xyz.shape)
    corners = np.stack(
        [values_xyz[ox:ox + nx, oy:oy + ny, oz:oz + nz] for ox, oy, oz in CUBE_CORNERS],
        axis=-1,
    )
    ids = ((corners < iso_level) * _CORNER_BITS).sum(axis=-1)
    return ids, corners


def extract(
    grid: Matrix3D,
    scale: float,
    table: TriangulationTable,
    interpolate: bool = True,
    *,
    iso_level: float = 0.0,
) -> MeshBuffer:
    """Marching cubes over every unit cube of ``grid``.

    Cubes are visited z-major, then y, then x; each contributes the triangles
    listed for its corner configuration. Output is in chunk-local space,
    ``(cube_origin + local_offset) * scale``, with one face normal per
    triangle. Returns an empty buffer when no cube crosses the surface.
    """
    if min(grid.shape) < 2:
        return MeshBuffer.empty()

    values = grid.values.astype(np.float64).transpose(2, 1, 0)  # -> [x, y, z]
    ids, corners = cube_config_ids(values, iso_level)

    # (z, y, x) rows in lexicographic order
    active = np.argwhere(table.lengths[ids.transpose(2, 1, 0)] > 0)
    if active.shape[0] == 0:
        return MeshBuffer.empty()

    cz, cy, cx = active[:, 0], active[:, 1], active[:, 2]
    origins = np.stack([cx, cy, cz], axis=1).astype(np.float64)
    cube_ids = ids[cx, cy, cz]
    cube_vals = corners[cx, cy, cz]

    refs = table.padded[cube_ids]
    cube_of_ref, _ = np.nonzero(refs >= 0)
    ref = refs[refs >= 0]

    if table.uses_corners:
        local = CUBE_CORNERS[ref].astype(np.float64)
    else:
        start = CUBE_EDGES[ref, 0]
        end = CUBE_EDGES[ref, 1]
        if interpolate:
            w = edge_start_weights(cube_vals[cube_of_ref, start], cube_vals[cube_of_ref, end], iso_level)
        else:
            w = np.full(ref.shape, 0.5, dtype=np.float64)
        w = w[:, None]
        local = CUBE_CORNERS[start] * w + CUBE_CORNERS[end] * (1.0 - w)

    points = (origins[cube_of_ref] + local) * float(scale)
    return _flat_shaded(points)


def _flat_shaded(points: np.ndarray) -> MeshBuffer:
    tris = points.reshape(-1, 3, 3)
    normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    length = np.linalg.norm(normals, axis=1)

    keep = length > _DEGENERATE_EPS
    tris = tris[keep]
    normals = normals[keep] / length[keep, None]

    positions = tris.reshape(-1, 3).astype(np.float32)
    return MeshBuffer(
        positions=positions,
        normals=np.repeat(normals, 3, axis=0).astype(np.float32),
        uvs=np.zeros((positions.shape[0], 2), dtype=np.float32),
    )
