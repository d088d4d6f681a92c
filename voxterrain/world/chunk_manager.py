from __future__ import annotations

import itertools
import logging
import math
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set

from voxterrain.config import default_evict_radius
from voxterrain.errors import ConfigurationError
from voxterrain.world.chunk import ChunkCoord, chunk_origin, world_to_chunk
from voxterrain.world.mesh import MeshBuffer

log = logging.getLogger(__name__)

ChunkBuilder = Callable[[ChunkCoord], MeshBuffer]
ReadyCallback = Callable[[ChunkCoord, MeshBuffer, tuple], None]
RemovedCallback = Callable[[ChunkCoord], None]


@dataclass
class StreamUpdate:
    base: ChunkCoord
    created: List[ChunkCoord] = field(default_factory=list)  # got geometry, on_chunk_ready fired
    empty: List[ChunkCoord] = field(default_factory=list)  # activated with no geometry
    removed: List[ChunkCoord] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.empty or self.removed)


class ChunkWorker(threading.Thread):
    def __init__(self, task_q: "queue.Queue[ChunkCoord]", out_q: "queue.Queue[tuple]", *, build_chunk: ChunkBuilder, name: str) -> None:
        super().__init__(daemon=True, name=name)
        self.task_q = task_q
        self.out_q = out_q
        self.build_chunk = build_chunk
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                coord = self.task_q.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self.out_q.put((coord, self.build_chunk(coord), None))
            except Exception as e:
                # handed back to the tick that requested the chunk
                self.out_q.put((coord, None, e))
            finally:
                self.task_q.task_done()


class ChunkStreamer:
    """Keeps the set of materialized chunks in step with a moving reference point.

    Each ``update`` makes every chunk in the cube of ``view_radius`` around
    the reference chunk active, and evicts active chunks farther than
    ``evict_radius`` (chunk-space Euclidean distance). The gap between the
    two radii stops chunks from flickering in and out at the boundary.
    """

    def __init__(
        self,
        *,
        chunk_size: float,
        view_radius: int,
        build_chunk: ChunkBuilder,
        evict_radius: float | None = None,
        workers: int = 0,
        on_chunk_ready: Optional[ReadyCallback] = None,
        on_chunk_removed: Optional[RemovedCallback] = None,
    ) -> None:
        if not chunk_size > 0.0:
            raise ConfigurationError(f"chunk size must be positive, got {chunk_size}")
        if int(view_radius) < 0:
            raise ConfigurationError(f"view_radius must be >= 0, got {view_radius}")
        self.chunk_size = float(chunk_size)
        self.view_radius = int(view_radius)
        self.evict_radius = float(evict_radius) if evict_radius is not None else default_evict_radius(self.view_radius)
        if self.evict_radius <= self.view_radius * math.sqrt(3.0):
            raise ConfigurationError(
                f"evict_radius {self.evict_radius} must exceed view_radius*sqrt(3) = {self.view_radius * math.sqrt(3.0):.3f}"
            )
        self.build_chunk = build_chunk

        self.active: Set[ChunkCoord] = set()
        self._meshed: Set[ChunkCoord] = set()
        self._ready_cbs: List[ReadyCallback] = []
        self._removed_cbs: List[RemovedCallback] = []
        if on_chunk_ready is not None:
            self._ready_cbs.append(on_chunk_ready)
        if on_chunk_removed is not None:
            self._removed_cbs.append(on_chunk_removed)

        self.task_q: "queue.Queue[ChunkCoord]" = queue.Queue()
        self.out_q: "queue.Queue[tuple]" = queue.Queue()
        self.workers: List[ChunkWorker] = []
        for i in range(max(0, int(workers))):
            w = ChunkWorker(self.task_q, self.out_q, build_chunk=build_chunk, name=f"chunk-worker-{i}")
            w.start()
            self.workers.append(w)

    @classmethod
    def for_terrain(cls, terrain, *, workers: int = 0, **callbacks) -> "ChunkStreamer":
        cfg = terrain.cfg
        return cls(
            chunk_size=cfg.chunk_size,
            view_radius=cfg.view_radius,
            evict_radius=cfg.resolved_evict_radius,
            build_chunk=terrain.get_chunk,
            workers=workers,
            **callbacks,
        )

    def add_listener(self, listener) -> None:
        """Subscribe an object with ``on_chunk_ready`` and/or ``on_chunk_removed`` methods."""
        ready = getattr(listener, "on_chunk_ready", None)
        removed = getattr(listener, "on_chunk_removed", None)
        if ready is None and removed is None:
            raise TypeError(f"{listener!r} has neither on_chunk_ready nor on_chunk_removed")
        if ready is not None:
            self._ready_cbs.append(ready)
        if removed is not None:
            self._removed_cbs.append(removed)

    def shutdown(self) -> None:
        for w in self.workers:
            w.stop()
        for w in self.workers:
            w.join(timeout=1.0)
        self.workers = []

    def __enter__(self) -> "ChunkStreamer":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def world_to_chunk(self, position: Sequence[float]) -> ChunkCoord:
        return world_to_chunk(position, self.chunk_size)

    def needed_chunks(self, base: ChunkCoord) -> Set[ChunkCoord]:
        r = self.view_radius
        span = range(-r, r + 1)
        bx, by, bz = base
        return {(bx + dx, by + dy, bz + dz) for dx, dy, dz in itertools.product(span, span, span)}

    def is_evictable(self, coord: ChunkCoord, base: ChunkCoord) -> bool:
        return math.dist(coord, base) > self.evict_radius

    def update(self, position: Sequence[float]) -> StreamUpdate:
        base = self.world_to_chunk(position)
        result = StreamUpdate(base=base)

        for coord in sorted(c for c in self.active if self.is_evictable(c, base)):
            self._evict(coord)
            result.removed.append(coord)

        missing = sorted(self.needed_chunks(base) - self.active)
        meshes = self._build_all(missing)
        for coord in missing:
            mesh = meshes[coord]
            self.active.add(coord)
            if mesh.is_empty:
                result.empty.append(coord)
                continue
            self._meshed.add(coord)
            result.created.append(coord)
            transform = chunk_origin(coord, self.chunk_size)
            for cb in self._ready_cbs:
                cb(coord, mesh, transform)

        if result.changed:
            log.debug(
                "base=%s created=%d empty=%d removed=%d active=%d",
                base, len(result.created), len(result.empty), len(result.removed), len(self.active),
            )
        return result

    def clear(self) -> List[ChunkCoord]:
        """Evict every active chunk."""
        removed = sorted(self.active)
        for coord in removed:
            self._evict(coord)
        return removed

    def _evict(self, coord: ChunkCoord) -> None:
        self.active.discard(coord)
        if coord in self._meshed:
            self._meshed.discard(coord)
            for cb in self._removed_cbs:
                cb(coord)

    def _build_all(self, coords: List[ChunkCoord]) -> Dict[ChunkCoord, MeshBuffer]:
        if not self.workers:
            return {coord: self.build_chunk(coord) for coord in coords}

        for coord in coords:
            self.task_q.put(coord)
        self.task_q.join()

        meshes: Dict[ChunkCoord, MeshBuffer] = {}
        errors: Dict[ChunkCoord, Exception] = {}
        while True:
            try:
                coord, mesh, err = self.out_q.get_nowait()
            except queue.Empty:
                break
            if err is not None:
                errors[coord] = err
            else:
                meshes[coord] = mesh
        if errors:
            coord = min(errors)
            raise errors[coord]
        return meshes
