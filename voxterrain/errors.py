from __future__ import annotations


class TerrainError(Exception):
    """Base class for voxterrain errors."""


class ConfigurationError(TerrainError, ValueError):
    """Raised at startup for a malformed table, layer list or chunk geometry."""


class GridIndexError(TerrainError, IndexError):
    """Raised on Matrix3D access outside the grid."""
