from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np

from voxterrain.errors import ConfigurationError

log = logging.getLogger(__name__)

TABLE_SIZE = 256
TABLE_VERSION = 1
MODES = ("edges", "corners")

DEFAULT_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "triangulation.json"

# Unit cube corners, y up. Corner i sets bit i of the configuration id.
CUBE_CORNERS = np.array(
    [
        (0, 0, 0),
        (1, 0, 0),
        (1, 0, 1),
        (0, 0, 1),
        (0, 1, 0),
        (1, 1, 0),
        (1, 1, 1),
        (0, 1, 1),
    ],
    dtype=np.int64,
)

# (start corner, end corner) per edge
CUBE_EDGES = np.array(
    [
        (0, 1),
        (1, 2),
        (2, 3),
        (3, 0),
        (4, 5),
        (5, 6),
        (6, 7),
        (7, 4),
        (0, 4),
        (1, 5),
        (2, 6),
        (3, 7),
    ],
    dtype=np.int64,
)


class TriangulationTable:
    """Triangle vertex references for each of the 256 corner configurations.

    In ``edges`` mode a reference is a cube edge (0..11) whose crossing point
    becomes the vertex; in ``corners`` mode it is a cube corner (0..7)
    connected directly. Immutable once constructed.
    """

    def __init__(
        self,
        entries: Sequence[Sequence[int]],
        *,
        mode: str = "edges",
        method: str = "lorensen-cline",
        version: int = TABLE_VERSION,
    ) -> None:
        if mode not in MODES:
            raise ConfigurationError(f"unknown triangulation mode {mode!r}, expected one of {MODES}")
        if len(entries) != TABLE_SIZE:
            raise ConfigurationError(f"triangulation table needs {TABLE_SIZE} entries, got {len(entries)}")

        limit = len(CUBE_EDGES) if mode == "edges" else len(CUBE_CORNERS)
        checked: list[tuple[int, ...]] = []
        for cid, entry in enumerate(entries):
            try:
                refs = tuple(int(r) for r in entry)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"triangulation entry {cid} is malformed: {e}") from e
            if len(refs) % 3 != 0:
                raise ConfigurationError(f"triangulation entry {cid} has {len(refs)} references, not a multiple of 3")
            for r in refs:
                if not 0 <= r < limit:
                    raise ConfigurationError(f"triangulation entry {cid} references {mode[:-1]} {r}, valid range is 0..{limit - 1}")
            checked.append(refs)

        # All corners on one side of the surface never produce geometry.
        for cid in (0, TABLE_SIZE - 1):
            if checked[cid]:
                raise ConfigurationError(f"triangulation entry {cid} must be empty")

        self._entries = tuple(checked)
        self.mode = mode
        self.method = str(method)
        self.version = int(version)

        width = max((len(e) for e in self._entries), default=0)
        padded = np.full((TABLE_SIZE, max(width, 1)), -1, dtype=np.int64)
        for cid, refs in enumerate(self._entries):
            padded[cid, : len(refs)] = refs
        padded.flags.writeable = False
        self._padded = padded
        lengths = np.array([len(e) for e in self._entries], dtype=np.int64)
        lengths.flags.writeable = False
        self._lengths = lengths

    @property
    def uses_corners(self) -> bool:
        return self.mode == "corners"

    @property
    def padded(self) -> np.ndarray:
        """(256, W) int array of references, -1 padded."""
        return self._padded

    @property
    def lengths(self) -> np.ndarray:
        return self._lengths

    def __getitem__(self, config_id: int) -> tuple[int, ...]:
        return self._entries[config_id]

    def __len__(self) -> int:
        return TABLE_SIZE

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TriangulationTable):
            return NotImplemented
        return (self._entries, self.mode, self.method, self.version) == (other._entries, other.mode, other.method, other.version)

    def __hash__(self) -> int:
        return hash((self._entries, self.mode, self.method, self.version))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "method": self.method,
            "mode": self.mode,
            "triangulation_table": [list(e) for e in self._entries],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TriangulationTable":
        if not isinstance(data, Mapping):
            raise ConfigurationError("triangulation document must be a mapping")
        if "triangulation_table" not in data:
            raise ConfigurationError("triangulation document has no 'triangulation_table'")
        version = data.get("version", TABLE_VERSION)
        if version != TABLE_VERSION:
            raise ConfigurationError(f"unsupported triangulation table version {version!r}")
        entries = data["triangulation_table"]
        if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
            raise ConfigurationError("'triangulation_table' must be a list of lists")
        return cls(
            entries,
            mode=str(data.get("mode", "edges")),
            method=str(data.get("method", "unknown")),
            version=int(version),
        )


def load_table(path: str | Path | None = None) -> TriangulationTable:
    """Load a triangulation table from JSON; the bundled table by default."""
    if path is None:
        return default_table()
    return _read_table(Path(path))


@lru_cache(maxsize=1)
def default_table() -> TriangulationTable:
    return _read_table(DEFAULT_TABLE_PATH)


def _read_table(p: Path) -> TriangulationTable:
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"cannot read triangulation table {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"triangulation table {p} is not valid JSON: {e}") from e
    table = TriangulationTable.from_dict(data)
    log.debug("loaded %s triangulation table (%s mode) from %s", table.method, table.mode, p)
    return table
