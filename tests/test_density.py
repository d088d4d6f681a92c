import numpy as np
import pytest

from voxterrain.errors import ConfigurationError
from voxterrain.world.bounds import BoundCurve
from voxterrain.world.density import DensityField
from voxterrain.world.noise import NoiseLayer

LAYERS = (NoiseLayer(1.0, 0.05), NoiseLayer(0.5, 0.1), NoiseLayer(-0.25, 0.2))


def _field(seed: int = 42, *, upper: float = 1.0, lower: float = -1.0, mode: str = "fast") -> DensityField:
    return DensityField(seed, LAYERS, BoundCurve.constant(upper), BoundCurve.constant(lower), mode=mode)


def test_raw_range_is_sum_of_absolute_weights() -> None:
    field = _field()
    assert field.raw_max == pytest.approx(1.75)
    assert field.raw_min == pytest.approx(-1.75)


def test_same_seed_same_samples() -> None:
    a, b = _field(7), _field(7)
    for p in [(0.0, 0.0, 0.0), (12.5, -3.0, 40.25), (-100.0, 7.0, 2.0)]:
        assert a.sample(*p) == b.sample(*p)
    assert a.sample(1.5, 2.5, 3.5) != _field(8).sample(1.5, 2.5, 3.5)


def test_samples_stay_inside_the_bounds() -> None:
    field = _field(upper=0.5, lower=-0.25)
    rng = np.random.default_rng(1)
    x, y, z = rng.uniform(-200.0, 200.0, size=(3, 1000))
    out = field.sample_points(x, y, z)
    assert out.dtype == np.float32
    assert np.all(out >= np.float32(-0.25))
    assert np.all(out <= np.float32(0.5))


def test_collapsed_bounds_pin_the_density() -> None:
    field = DensityField(3, LAYERS, BoundCurve([0.0, 4.0], [-1.0, 1.0]), BoundCurve([0.0, 4.0], [-1.0, 1.0]))
    assert field.sample(13.0, 0.0, -4.0) == pytest.approx(-1.0)
    assert field.sample(13.0, 2.0, -4.0) == pytest.approx(0.0)
    assert field.sample(13.0, 9.0, -4.0) == pytest.approx(1.0)


def test_lattice_is_bit_identical_to_point_samples() -> None:
    field = _field(99)
    xs = np.arange(4) * 0.5 + 10.0
    ys = np.arange(3) * 0.5 - 1.0
    zs = np.arange(5) * 0.5
    grid = field.sample_lattice(xs, ys, zs)
    assert grid.shape == (5, 3, 4)
    for k, z in enumerate(zs):
        for j, y in enumerate(ys):
            for i, x in enumerate(xs):
                assert grid[k, j, i] == np.float32(field.sample(x, y, z))


def test_simplex_mode_samples() -> None:
    field = _field(5, mode="simplex")
    v = field.sample(0.3, 1.7, -2.2)
    assert -1.0 <= v <= 1.0
    assert v == _field(5, mode="simplex").sample(0.3, 1.7, -2.2)


def test_layer_validation() -> None:
    with pytest.raises(ConfigurationError):
        DensityField(1, (), BoundCurve.constant(1.0), BoundCurve.constant(-1.0))
    with pytest.raises(ConfigurationError):
        DensityField(1, (NoiseLayer(0.0, 0.1),), BoundCurve.constant(1.0), BoundCurve.constant(-1.0))
    with pytest.raises(ConfigurationError):
        DensityField(1, LAYERS, BoundCurve.constant(1.0), BoundCurve.constant(-1.0), mode="bogus")
