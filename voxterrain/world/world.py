from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

import moderngl

from voxterrain.world.chunk import ChunkCoord
from voxterrain.world.mesh import MeshBuffer

log = logging.getLogger(__name__)


@dataclass
class ChunkGPU:
    coord: ChunkCoord
    offset: tuple[float, float, float]
    vao: moderngl.VertexArray
    vbo: moderngl.Buffer

    def release(self) -> None:
        self.vao.release()
        self.vbo.release()


class World:
    """GPU side of the terrain: listens to a ChunkStreamer and owns the buffers.

    Indices are implicit (every 3 vertices is a triangle), so chunks are drawn
    without an index buffer.
    """

    def __init__(self, ctx: moderngl.Context, prog: moderngl.Program) -> None:
        self.ctx = ctx
        self.prog = prog
        self.chunks: Dict[ChunkCoord, ChunkGPU] = {}

    def on_chunk_ready(self, coord: ChunkCoord, mesh: MeshBuffer, transform: tuple[float, float, float]) -> None:
        old = self.chunks.pop(coord, None)
        if old is not None:
            old.release()
        vbo = self.ctx.buffer(mesh.interleaved().tobytes())
        vao = self.ctx.vertex_array(self.prog, [(vbo, "3f 3f 8x", "in_pos", "in_norm")])
        self.chunks[coord] = ChunkGPU(coord=coord, offset=tuple(float(v) for v in transform), vao=vao, vbo=vbo)

    def on_chunk_removed(self, coord: ChunkCoord) -> None:
        ch = self.chunks.pop(coord, None)
        if ch is not None:
            ch.release()

    def triangle_count(self) -> int:
        return sum(ch.vao.vertices for ch in self.chunks.values()) // 3

    def shutdown(self) -> None:
        for ch in self.chunks.values():
            ch.release()
        log.debug("released %d chunk buffers", len(self.chunks))
        self.chunks.clear()

    def draw(self, renderer) -> None:
        for ch in self.chunks.values():
            renderer.draw_chunk(ch.vao, ch.offset)
