from __future__ import annotations

import argparse
import dataclasses
import logging
import random
import time
from typing import Sequence

from voxterrain.config import (
    APP_VERSION,
    DEFAULT_START,
    DEFAULT_WORKERS,
    TerrainConfig,
    load_config,
)
from voxterrain.errors import ConfigurationError
from voxterrain.world.chunk_manager import ChunkStreamer
from voxterrain.world.noise import NOISE_MODES
from voxterrain.world.terrain import Terrain

log = logging.getLogger("voxterrain")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="voxterrain", description=f"Streaming marching-cubes voxel terrain v{APP_VERSION}")
    p.add_argument("--config", help="JSON terrain config; flags below override it")
    p.add_argument("--seed", help="int seed or 'random'")
    p.add_argument("--points-per-chunk", type=int, help="lattice cells per chunk side")
    p.add_argument("--scale", type=float, help="world units per lattice cell")
    p.add_argument("--view-radius", type=int, help="chunks kept around the reference chunk")
    p.add_argument("--evict-radius", type=float, help="chunk-space distance beyond which chunks are dropped")
    p.add_argument("--noise", choices=NOISE_MODES, help="noise source for every layer")
    p.add_argument("--iso-level", type=float, help="density threshold between solid and air")
    p.add_argument("--flat", action="store_true", help="place vertices at edge midpoints (low-poly look)")
    p.add_argument("--table", help="triangulation table JSON (default: bundled Lorensen-Cline table)")
    p.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="chunk build threads (0 = synchronous)")
    p.add_argument("--start", type=float, nargs=3, default=DEFAULT_START, metavar=("X", "Y", "Z"), help="starting reference position")
    p.add_argument("--headless", type=int, metavar="TICKS", help="stream for TICKS ticks without a window and exit")
    p.add_argument("--speed", type=float, default=4.0, help="headless: reference movement along +Z per tick (world units)")
    p.add_argument("--wireframe", action="store_true", help="render wireframe")
    p.add_argument("--debug", action="store_true", help="debug logging")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> TerrainConfig:
    cfg = load_config(args.config) if args.config else TerrainConfig()

    overrides = {}
    if args.seed is not None:
        if args.seed.lower() == "random":
            overrides["seed"] = random.randint(0, 2**31 - 1)
        else:
            try:
                overrides["seed"] = int(args.seed)
            except ValueError as e:
                raise ConfigurationError(f"--seed must be an integer or 'random', got {args.seed!r}") from e
    if args.points_per_chunk is not None:
        overrides["points_per_chunk"] = args.points_per_chunk
    if args.scale is not None:
        overrides["scale"] = args.scale
    if args.view_radius is not None:
        overrides["view_radius"] = args.view_radius
    if args.evict_radius is not None:
        overrides["evict_radius"] = args.evict_radius
    if args.noise is not None:
        overrides["noise_mode"] = args.noise
    if args.iso_level is not None:
        overrides["iso_level"] = args.iso_level
    if args.flat:
        overrides["interpolate"] = False
    if args.table is not None:
        overrides["table_path"] = args.table
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def run_headless(cfg: TerrainConfig, *, ticks: int, start: Sequence[float], speed: float, workers: int) -> dict[str, int]:
    terrain = Terrain(cfg)
    totals = {"created": 0, "empty": 0, "removed": 0, "triangles": 0}

    def count_triangles(coord, mesh, transform) -> None:
        totals["triangles"] += mesh.triangle_count

    x, y, z = (float(v) for v in start)
    t0 = time.perf_counter()
    with ChunkStreamer.for_terrain(terrain, workers=workers, on_chunk_ready=count_triangles) as streamer:
        for tick in range(int(ticks)):
            update = streamer.update((x, y, z + tick * speed))
            totals["created"] += len(update.created)
            totals["empty"] += len(update.empty)
            totals["removed"] += len(update.removed)
            if update.changed:
                log.info(
                    "tick %d chunk %s: +%d (%d empty) -%d active=%d",
                    tick, update.base, len(update.created), len(update.empty), len(update.removed), len(streamer.active),
                )
        totals["active"] = len(streamer.active)
    log.info(
        "%d ticks in %.2fs: created=%d empty=%d removed=%d active=%d triangles=%d",
        ticks, time.perf_counter() - t0, totals["created"], totals["empty"], totals["removed"], totals["active"], totals["triangles"],
    )
    return totals


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[voxterrain] %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = build_config(args)
    except ConfigurationError as e:
        log.error("invalid configuration: %s", e)
        return 2

    log.debug("config: %s", cfg.to_dict())
    try:
        if args.headless is not None:
            run_headless(cfg, ticks=args.headless, start=args.start, speed=args.speed, workers=args.workers)
            return 0

        # The viewer pulls in pygame/moderngl (the `viewer` extra).
        from voxterrain.app import run_app

        run_app(cfg=cfg, start=tuple(args.start), workers=args.workers, wireframe=bool(args.wireframe))
    except ConfigurationError as e:
        log.error("invalid configuration: %s", e)
        return 2
    return 0
