from __future__ import annotations

import logging
import time

import moderngl
import numpy as np
import pygame

from voxterrain.config import (
    DEFAULT_ACCEL,
    DEFAULT_CLIMB_RATE,
    DEFAULT_DRAG,
    DEFAULT_INPUT_SMOOTH_K,
    DEFAULT_MAX_SPEED,
    DEFAULT_TURN_RATE,
    FPS_CAP,
    LIGHT_DIR,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
    TerrainConfig,
)
from voxterrain.render.camera import FlyCamera
from voxterrain.render.renderer import Renderer
from voxterrain.util.math import normalize
from voxterrain.world.chunk_manager import ChunkStreamer
from voxterrain.world.terrain import Terrain
from voxterrain.world.world import World

log = logging.getLogger(__name__)

_WINDOW_FLAGS = pygame.OPENGL | pygame.DOUBLEBUF | pygame.RESIZABLE
_MAX_DT = 0.05  # seconds; keeps the camera sane after a stall


def _open_window(title: str) -> moderngl.Context:
    pygame.init()
    for attr, value in (
        (pygame.GL_CONTEXT_MAJOR_VERSION, 3),
        (pygame.GL_CONTEXT_MINOR_VERSION, 3),
        (pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE),
        (pygame.GL_DEPTH_SIZE, 24),
        (pygame.GL_DOUBLEBUFFER, 1),
    ):
        pygame.display.gl_set_attribute(attr, value)
    pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT), _WINDOW_FLAGS)
    pygame.display.set_caption(title)
    try:
        return moderngl.create_context()
    except Exception as e:
        pygame.quit()
        raise RuntimeError("could not create an OpenGL 3.2+ context") from e


def _poll_events(renderer: Renderer) -> bool:
    """Handle window events; False once the user asked to quit."""
    keep_going = True
    for event in pygame.event.get():
        if event.type == pygame.QUIT or (event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE):
            keep_going = False
        elif event.type == pygame.VIDEORESIZE:
            size = (max(64, event.w), max(64, event.h))
            pygame.display.set_mode(size, _WINDOW_FLAGS)
            renderer.resize(*size)
    return keep_going


def _controls() -> tuple[float, float, float]:
    """(forward, turn, lift) from the arrow keys and Q/A."""
    keys = pygame.key.get_pressed()
    return (
        float(keys[pygame.K_UP]) - float(keys[pygame.K_DOWN]),
        float(keys[pygame.K_RIGHT]) - float(keys[pygame.K_LEFT]),
        float(keys[pygame.K_q]) - float(keys[pygame.K_a]),
    )


def run_app(
    *,
    cfg: TerrainConfig,
    start: tuple[float, float, float],
    workers: int,
    wireframe: bool,
) -> None:
    ctx = _open_window(f"voxterrain (seed={cfg.seed})")
    log.debug("GL %s on %s", ctx.version_code, ctx.info.get("GL_RENDERER"))
    ctx.wireframe = bool(wireframe)

    renderer = Renderer(ctx, WINDOW_WIDTH, WINDOW_HEIGHT)
    world = World(ctx, renderer.prog)
    streamer = ChunkStreamer.for_terrain(Terrain(cfg), workers=workers)
    streamer.add_listener(world)

    cam = FlyCamera(
        position=start,
        max_speed=DEFAULT_MAX_SPEED,
        accel=DEFAULT_ACCEL,
        drag=DEFAULT_DRAG,
        turn_rate=DEFAULT_TURN_RATE,
        climb_rate=DEFAULT_CLIMB_RATE,
        input_smooth_k=DEFAULT_INPUT_SMOOTH_K,
    )
    light_dir = normalize(np.asarray(LIGHT_DIR, dtype=np.float32))
    clock = pygame.time.Clock()
    frames = 0
    prev = stats_at = time.perf_counter()

    try:
        while _poll_events(renderer):
            now = time.perf_counter()
            dt, prev = min(now - prev, _MAX_DT), now

            forward, turn, lift = _controls()
            cam.update(dt, forward=forward, turn=turn, lift=lift)

            update = streamer.update(cam.eye())
            if update.changed:
                log.info(
                    "entered chunk %s: %d meshed, %d empty, %d evicted (%d on gpu)",
                    update.base, len(update.created), len(update.empty), len(update.removed), len(world.chunks),
                )

            renderer.begin_frame(cam.view_matrix(), cam.eye(), light_dir)
            world.draw(renderer)
            pygame.display.flip()
            clock.tick(FPS_CAP if FPS_CAP > 0 else 0)

            frames += 1
            if now - stats_at >= 1.0:
                log.debug(
                    "%.0f fps, %d active, %d tris, eye=(%.1f, %.1f, %.1f)",
                    frames / (now - stats_at), len(streamer.active), world.triangle_count(), cam.x, cam.y, cam.z,
                )
                frames, stats_at = 0, now
    finally:
        streamer.shutdown()
        # removal events release each chunk's buffers through `world`
        streamer.clear()
        world.shutdown()
        renderer.release()
        pygame.quit()
