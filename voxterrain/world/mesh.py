from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class MeshBuffer:
    """Flat-shaded triangle soup for one chunk, in chunk-local space.

    Every three consecutive vertices form a triangle; indices are implicit
    (``0..N-1``). Handed over to the consumer after extraction.
    """

    positions: np.ndarray  # (N,3) float32
    normals: np.ndarray  # (N,3) float32, one per vertex, same for a triangle's 3 vertices
    uvs: np.ndarray  # (N,2) float32, placeholders

    def __post_init__(self) -> None:
        n = self.positions.shape[0]
        if self.positions.shape != (n, 3) or self.normals.shape != (n, 3) or self.uvs.shape != (n, 2):
            raise ValueError(
                f"mismatched mesh buffers: positions {self.positions.shape}, "
                f"normals {self.normals.shape}, uvs {self.uvs.shape}"
            )
        if n % 3 != 0:
            raise ValueError(f"vertex count {n} is not a multiple of 3")

    @classmethod
    def empty(cls) -> "MeshBuffer":
        return cls(
            positions=np.zeros((0, 3), dtype=np.float32),
            normals=np.zeros((0, 3), dtype=np.float32),
            uvs=np.zeros((0, 2), dtype=np.float32),
        )

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return self.vertex_count // 3

    @property
    def is_empty(self) -> bool:
        return self.vertex_count == 0

    @property
    def indices(self) -> np.ndarray:
        return np.arange(self.vertex_count, dtype=np.uint32)

    def triangles(self) -> np.ndarray:
        """Positions grouped per triangle, shape (T,3,3)."""
        return self.positions.reshape(-1, 3, 3)

    def interleaved(self) -> np.ndarray:
        """Pack as float32 ``pos(3) norm(3) uv(2)`` per vertex, flattened."""
        return np.concatenate([self.positions, self.normals, self.uvs], axis=1).astype(np.float32).reshape(-1)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        if self.is_empty:
            raise ValueError("empty mesh has no bounds")
        return self.positions.min(axis=0), self.positions.max(axis=0)
