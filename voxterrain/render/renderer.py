from __future__ import annotations

import moderngl
import numpy as np

from voxterrain.config import FAR, FOG_COLOR, FOG_END, FOG_START, FOV_DEG, NEAR, TERRAIN_COLOR
from voxterrain.render.shaders import shader_sources
from voxterrain.util.math import perspective


class Renderer:
    """Owns the terrain program. Terrain fades into a fog-coloured background."""

    def __init__(self, ctx: moderngl.Context, width: int, height: int) -> None:
        self.ctx = ctx
        vs, fs = shader_sources(ctx.version_code)
        self.prog = ctx.program(vertex_shader=vs, fragment_shader=fs)
        # cave interiors are seen from both sides
        ctx.disable(moderngl.CULL_FACE)
        ctx.enable(moderngl.DEPTH_TEST)

        self.prog["u_color"].value = TERRAIN_COLOR
        self.prog["u_fog_color"].value = FOG_COLOR
        self.prog["u_fog_start"].value = FOG_START
        self.prog["u_fog_end"].value = FOG_END
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        self.width, self.height = int(width), int(height)
        self.ctx.viewport = (0, 0, self.width, self.height)
        aspect = self.width / max(1, self.height)
        self.prog["u_proj"].write(perspective(FOV_DEG, aspect, NEAR, FAR).tobytes())

    def begin_frame(self, view: np.ndarray, eye: np.ndarray, light_dir: np.ndarray) -> None:
        self.ctx.clear(*FOG_COLOR, 1.0, depth=1.0)
        self.prog["u_view"].write(np.ascontiguousarray(view, dtype=np.float32).tobytes())
        self.prog["u_cam_pos"].value = tuple(map(float, eye))
        self.prog["u_light_dir"].value = tuple(map(float, light_dir))

    def draw_chunk(self, vao: moderngl.VertexArray, offset: tuple[float, float, float]) -> None:
        self.prog["u_offset"].value = offset
        vao.render(moderngl.TRIANGLES)

    def release(self) -> None:
        self.prog.release()
