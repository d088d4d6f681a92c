from __future__ import annotations

import operator

import numpy as np

from voxterrain.errors import GridIndexError


class Matrix3D:
    """Dense 3D scalar grid stored as one flat float32 array.

    Layout is row-major with x fastest: ``index = z*dx*dy + y*dx + x``.
    Out-of-range coordinates raise GridIndexError, they are never clamped.
    """

    def __init__(self, dx: int, dy: int, dz: int, data: np.ndarray | None = None) -> None:
        self.dx = int(dx)
        self.dy = int(dy)
        self.dz = int(dz)
        if self.dx <= 0 or self.dy <= 0 or self.dz <= 0:
            raise ValueError(f"grid dimensions must be positive, got {(dx, dy, dz)}")

        size = self.dx * self.dy * self.dz
        if data is None:
            self._data = np.zeros(size, dtype=np.float32)
        else:
            flat = np.ascontiguousarray(data, dtype=np.float32).reshape(-1)
            if flat.size != size:
                raise ValueError(f"expected {size} values, got {flat.size}")
            self._data = flat.copy()

    @classmethod
    def from_array(cls, values: np.ndarray) -> "Matrix3D":
        """Build from a ``(dz, dy, dx)`` array."""
        arr = np.asarray(values)
        if arr.ndim != 3:
            raise ValueError(f"expected a 3D array, got shape {arr.shape}")
        dz, dy, dx = arr.shape
        return cls(dx, dy, dz, arr)

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.dx, self.dy, self.dz

    @property
    def frozen(self) -> bool:
        return not self._data.flags.writeable

    def freeze(self) -> "Matrix3D":
        self._data.flags.writeable = False
        return self

    def index(self, x: int, y: int, z: int) -> int:
        try:
            x, y, z = operator.index(x), operator.index(y), operator.index(z)
        except TypeError as e:
            raise GridIndexError(f"grid coordinates must be integers, got {(x, y, z)}") from e
        if not (0 <= x < self.dx and 0 <= y < self.dy and 0 <= z < self.dz):
            raise GridIndexError(f"({x}, {y}, {z}) outside grid of size {self.shape}")
        return z * self.dx * self.dy + y * self.dx + x

    def get(self, x: int, y: int, z: int) -> float:
        return float(self._data[self.index(x, y, z)])

    def set(self, x: int, y: int, z: int, value: float) -> None:
        i = self.index(x, y, z)
        if self.frozen:
            raise ValueError("grid is frozen")
        self._data[i] = value

    @property
    def values(self) -> np.ndarray:
        """Read-only ``(dz, dy, dx)`` view of the grid."""
        view = self._data.reshape(self.dz, self.dy, self.dx)
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return int(self._data.size)

    def __repr__(self) -> str:
        return f"Matrix3D(dx={self.dx}, dy={self.dy}, dz={self.dz}, frozen={self.frozen})"
