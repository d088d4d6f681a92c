from __future__ import annotations

import math
from typing import Sequence, Tuple

ChunkCoord = Tuple[int, int, int]


def world_to_chunk(position: Sequence[float], chunk_size: float) -> ChunkCoord:
    x, y, z = (float(v) for v in position)
    return (
        int(math.floor(x / chunk_size)),
        int(math.floor(y / chunk_size)),
        int(math.floor(z / chunk_size)),
    )


def chunk_origin(coord: ChunkCoord, chunk_size: float) -> tuple[float, float, float]:
    """World-space translation of a chunk's local mesh."""
    return (coord[0] * chunk_size, coord[1] * chunk_size, coord[2] * chunk_size)
