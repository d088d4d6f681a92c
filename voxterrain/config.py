from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from voxterrain.errors import ConfigurationError
from voxterrain.world.bounds import BoundCurve
from voxterrain.world.noise import NOISE_MODES, NoiseLayer, fbm_layers

# Window
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FPS_CAP = 0  # 0 = uncapped

# App
APP_VERSION = "0.3.0"

# Fly camera
DEFAULT_MAX_SPEED = 18.0
DEFAULT_ACCEL = 9.0
DEFAULT_DRAG = 0.6
DEFAULT_TURN_RATE = 1.6  # rad/sec
DEFAULT_CLIMB_RATE = 10.0  # units/sec for q/a lift control
DEFAULT_INPUT_SMOOTH_K = 5.0
DEFAULT_START = (0.0, 20.0, 0.0)

# Terrain
DEFAULT_SEED = 12345
DEFAULT_POINTS_PER_CHUNK = 15
DEFAULT_SCALE = 1.0
DEFAULT_ISO_LEVEL = 0.0
DEFAULT_INTERPOLATE = True
DEFAULT_NOISE = "fast"

# fBm octaves: weight halves and frequency doubles per layer
DEFAULT_OCTAVES = 4
DEFAULT_BASE_SCALE = 0.03

# Bound curves: floor (-64), caves (-32), surface (-8..0), hills (8), air (24+)
DEFAULT_CURVE_HEIGHTS = (-64.0, -32.0, -8.0, 0.0, 8.0, 24.0, 48.0)
DEFAULT_LOWER_VALUES = (-1.0, -1.0, -0.8, -0.5, -0.15, 0.05, 0.3)
DEFAULT_UPPER_VALUES = (-0.3, 0.5, 0.45, 0.5, 0.6, 0.8, 1.0)

# Streaming
DEFAULT_VIEW_RADIUS = 3  # chunks
DEFAULT_WORKERS = 0  # 0 = build chunks on the calling thread
DEFAULT_EVICT_FACTOR = 2.0  # evict radius = factor * (view_radius + 1)

# Rendering
FOV_DEG = 70.0
NEAR = 0.1
FAR = 400.0
FOG_START = 45.0
FOG_END = 90.0
LIGHT_DIR = (0.35, 0.9, 0.2)  # will be normalized in shader
TERRAIN_COLOR = (0.7188, 0.1578, 0.0)
FOG_COLOR = (0.70, 0.80, 0.92)  # also the clear colour


def default_evict_radius(view_radius: int) -> float:
    # Always clears the farthest desired corner at view_radius * sqrt(3).
    return DEFAULT_EVICT_FACTOR * (view_radius + 1)


def _default_layers() -> tuple[NoiseLayer, ...]:
    return fbm_layers(DEFAULT_OCTAVES, DEFAULT_BASE_SCALE)


def _default_upper() -> BoundCurve:
    return BoundCurve(DEFAULT_CURVE_HEIGHTS, DEFAULT_UPPER_VALUES)


def _default_lower() -> BoundCurve:
    return BoundCurve(DEFAULT_CURVE_HEIGHTS, DEFAULT_LOWER_VALUES)


@dataclass(frozen=True)
class TerrainConfig:
    """Everything the pipeline needs, validated on construction."""

    seed: int = DEFAULT_SEED
    points_per_chunk: int = DEFAULT_POINTS_PER_CHUNK
    scale: float = DEFAULT_SCALE
    layers: tuple[NoiseLayer, ...] = field(default_factory=_default_layers)
    upper_curve: BoundCurve = field(default_factory=_default_upper)
    lower_curve: BoundCurve = field(default_factory=_default_lower)
    view_radius: int = DEFAULT_VIEW_RADIUS
    evict_radius: float | None = None
    iso_level: float = DEFAULT_ISO_LEVEL
    interpolate: bool = DEFAULT_INTERPOLATE
    noise_mode: str = DEFAULT_NOISE
    table_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))
        self.validate()

    @property
    def chunk_size(self) -> float:
        return self.points_per_chunk * self.scale

    @property
    def resolved_evict_radius(self) -> float:
        if self.evict_radius is None:
            return default_evict_radius(self.view_radius)
        return float(self.evict_radius)

    def validate(self) -> None:
        if int(self.seed) < 0:
            raise ConfigurationError(f"seed must be a non-negative integer, got {self.seed}")
        if int(self.points_per_chunk) < 1:
            raise ConfigurationError(f"points_per_chunk must be >= 1, got {self.points_per_chunk}")
        if not (math.isfinite(self.scale) and self.scale > 0.0):
            raise ConfigurationError(f"scale must be positive, got {self.scale}")
        if not (self.chunk_size > 0.0):
            raise ConfigurationError(f"chunk size must be positive, got {self.chunk_size}")
        if not self.layers:
            raise ConfigurationError("at least one noise layer is required")
        for i, layer in enumerate(self.layers):
            if not isinstance(layer, NoiseLayer):
                raise ConfigurationError(f"layer {i} is not a NoiseLayer: {layer!r}")
            if not (math.isfinite(layer.weight) and math.isfinite(layer.scale)):
                raise ConfigurationError(f"layer {i} has a non-finite weight or scale")
        if sum(abs(layer.weight) for layer in self.layers) <= 0.0:
            raise ConfigurationError("noise layer weights sum to zero")
        if not isinstance(self.upper_curve, BoundCurve) or not isinstance(self.lower_curve, BoundCurve):
            raise ConfigurationError("upper_curve and lower_curve must be BoundCurve instances")
        if int(self.view_radius) < 0:
            raise ConfigurationError(f"view_radius must be >= 0, got {self.view_radius}")
        if self.resolved_evict_radius <= self.view_radius * math.sqrt(3.0):
            raise ConfigurationError(
                f"evict_radius {self.resolved_evict_radius} must exceed view_radius*sqrt(3) "
                f"= {self.view_radius * math.sqrt(3.0):.3f}"
            )
        if self.noise_mode not in NOISE_MODES:
            raise ConfigurationError(f"unknown noise mode {self.noise_mode!r}, expected one of {NOISE_MODES}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TerrainConfig":
        """Build a config from plain data (e.g. a decoded JSON document).

        Layers are given either as ``layers: [{"weight": w, "scale": s}, ...]``
        or as parallel ``weights`` / ``scales`` lists. Curves are
        ``{"heights": [...], "values": [...]}``.
        """
        kwargs: dict[str, Any] = {}
        for key in ("seed", "points_per_chunk", "view_radius"):
            if key in data:
                kwargs[key] = _convert(key, int, data[key])
        for key in ("scale", "iso_level"):
            if key in data:
                kwargs[key] = _convert(key, float, data[key])
        if data.get("evict_radius") is not None:
            kwargs["evict_radius"] = _convert("evict_radius", float, data["evict_radius"])
        if "interpolate" in data:
            kwargs["interpolate"] = bool(data["interpolate"])
        if "noise_mode" in data:
            kwargs["noise_mode"] = str(data["noise_mode"])
        if data.get("table_path") is not None:
            kwargs["table_path"] = str(data["table_path"])

        if "layers" in data:
            try:
                kwargs["layers"] = tuple(NoiseLayer(float(l["weight"]), float(l["scale"])) for l in data["layers"])
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"malformed layers entry: {e!r}") from e
        elif "weights" in data or "scales" in data:
            kwargs["layers"] = layers_from_lists(data.get("weights", []), data.get("scales", []))

        for key in ("upper_curve", "lower_curve"):
            if key in data:
                kwargs[key] = _curve_from_data(key, data[key])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": int(self.seed),
            "points_per_chunk": int(self.points_per_chunk),
            "scale": float(self.scale),
            "layers": [{"weight": l.weight, "scale": l.scale} for l in self.layers],
            "upper_curve": {"heights": self.upper_curve.heights.tolist(), "values": self.upper_curve.values.tolist()},
            "lower_curve": {"heights": self.lower_curve.heights.tolist(), "values": self.lower_curve.values.tolist()},
            "view_radius": int(self.view_radius),
            "evict_radius": self.evict_radius,
            "iso_level": float(self.iso_level),
            "interpolate": bool(self.interpolate),
            "noise_mode": self.noise_mode,
            "table_path": self.table_path,
        }


def _convert(key: str, kind, raw: Any):
    try:
        return kind(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be {kind.__name__}, got {raw!r}") from e


def layers_from_lists(weights, scales) -> tuple[NoiseLayer, ...]:
    weights = list(weights)
    scales = list(scales)
    if len(weights) != len(scales):
        raise ConfigurationError(f"got {len(weights)} layer weights but {len(scales)} layer scales")
    try:
        return tuple(NoiseLayer(weight=float(w), scale=float(s)) for w, s in zip(weights, scales))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"malformed layer weight or scale: {e}") from e


def _curve_from_data(name: str, raw: Any) -> BoundCurve:
    if isinstance(raw, (int, float)):
        return BoundCurve.constant(float(raw))
    if isinstance(raw, Mapping):
        try:
            return BoundCurve(raw["heights"], raw["values"])
        except ConfigurationError:
            raise
        except KeyError as e:
            raise ConfigurationError(f"{name} is missing {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{name} control points must be numbers: {e}") from e
    raise ConfigurationError(f"{name} must be a number or a heights/values mapping")


def load_config(path: str | Path) -> TerrainConfig:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"cannot read config {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"config {p} is not valid JSON: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"config {p} must contain a JSON object")
    return TerrainConfig.from_mapping(data)
