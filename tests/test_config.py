import json

import pytest

from voxterrain.config import TerrainConfig, layers_from_lists, load_config
from voxterrain.errors import ConfigurationError
from voxterrain.world.bounds import BoundCurve
from voxterrain.world.noise import NoiseLayer, fbm_layers


def test_defaults_are_valid() -> None:
    cfg = TerrainConfig()
    assert cfg.chunk_size == pytest.approx(cfg.points_per_chunk * cfg.scale)
    assert cfg.resolved_evict_radius == pytest.approx(2.0 * (cfg.view_radius + 1))
    assert cfg.iso_level == 0.0
    assert cfg.noise_mode == "fast"


def test_config_is_a_configuration_value_error() -> None:
    with pytest.raises(ValueError):
        TerrainConfig(points_per_chunk=0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"seed": -1},
        {"points_per_chunk": 0},
        {"scale": 0.0},
        {"scale": float("inf")},
        {"layers": ()},
        {"layers": ((1.0, 0.1),)},
        {"layers": (NoiseLayer(0.0, 0.1), NoiseLayer(0.0, 0.2))},
        {"layers": (NoiseLayer(float("nan"), 0.1),)},
        {"upper_curve": 1.0},
        {"view_radius": -1},
        {"view_radius": 3, "evict_radius": 5.0},
        {"noise_mode": "perlin"},
    ],
)
def test_invalid_configs_rejected(overrides) -> None:
    with pytest.raises(ConfigurationError):
        TerrainConfig(**overrides)


def test_layers_from_parallel_lists() -> None:
    assert layers_from_lists([1.0, 0.5], [0.1, 0.2]) == (NoiseLayer(1.0, 0.1), NoiseLayer(0.5, 0.2))
    with pytest.raises(ConfigurationError):
        layers_from_lists([1.0, 0.5], [0.1])


def test_from_mapping() -> None:
    cfg = TerrainConfig.from_mapping(
        {
            "seed": 7,
            "points_per_chunk": 8,
            "weights": [1.0, 0.25],
            "scales": [0.05, 0.2],
            "upper_curve": 1.0,
            "lower_curve": {"heights": [-10, 10], "values": [-1.0, 0.0]},
            "evict_radius": 9.5,
            "noise_mode": "simplex",
            "interpolate": False,
        }
    )
    assert cfg.seed == 7
    assert cfg.layers == (NoiseLayer(1.0, 0.05), NoiseLayer(0.25, 0.2))
    assert cfg.upper_curve == BoundCurve.constant(1.0)
    assert cfg.lower_curve(0.0) == pytest.approx(-0.5)
    assert cfg.resolved_evict_radius == 9.5
    assert cfg.noise_mode == "simplex"
    assert cfg.interpolate is False


def test_dict_round_trip() -> None:
    cfg = TerrainConfig(seed=99, view_radius=2, evict_radius=6.0)
    assert TerrainConfig.from_mapping(cfg.to_dict()) == cfg


@pytest.mark.parametrize(
    "data",
    [
        {"layers": [{"weight": 1.0}]},
        {"weights": [1.0], "scales": []},
        {"upper_curve": {"heights": [0.0]}},
        {"lower_curve": "steep"},
        {"lower_curve": {"heights": ["low", "high"], "values": [0.0, 1.0]}},
        {"seed": "abc"},
        {"scale": None},
        {"evict_radius": "far"},
        {"layers": [{"weight": "heavy", "scale": 0.1}]},
        {"layers": "octaves"},
        {"weights": ["x"], "scales": [0.1]},
    ],
)
def test_malformed_mappings_rejected(data) -> None:
    with pytest.raises(ConfigurationError):
        TerrainConfig.from_mapping(data)


def test_load_config(tmp_path) -> None:
    path = tmp_path / "terrain.json"
    path.write_text(json.dumps({"seed": 5, "view_radius": 1}))
    cfg = load_config(path)
    assert cfg.seed == 5
    assert cfg.view_radius == 1


def test_load_config_errors(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2")
    with pytest.raises(ConfigurationError):
        load_config(bad)
    listy = tmp_path / "list.json"
    listy.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        load_config(listy)


def test_default_layers_are_fbm_octaves() -> None:
    assert TerrainConfig().layers == fbm_layers(4, 0.03)
