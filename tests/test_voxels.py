import numpy as np
import pytest

from voxterrain.errors import ConfigurationError
from voxterrain.world.bounds import BoundCurve
from voxterrain.world.density import DensityField
from voxterrain.world.noise import NoiseLayer
from voxterrain.world.voxels import VoxelGridBuilder


@pytest.fixture
def field() -> DensityField:
    return DensityField(
        42,
        (NoiseLayer(1.0, 0.1), NoiseLayer(0.5, 0.23)),
        BoundCurve([-4.0, 4.0], [0.0, 1.0]),
        BoundCurve([-4.0, 4.0], [-1.0, -0.2]),
    )


def test_grid_has_p_plus_one_samples_per_axis(field) -> None:
    grid = VoxelGridBuilder(field, 4, 0.5).build((0, 0, 0))
    assert grid.shape == (5, 5, 5)
    assert grid.frozen


def test_grid_values_match_field_samples(field) -> None:
    builder = VoxelGridBuilder(field, 4, 0.5)
    coord = (1, 0, -1)
    grid = builder.build(coord)
    for z in range(5):
        for y in range(5):
            for x in range(5):
                wx = coord[0] * builder.chunk_size + x * 0.5
                wy = coord[1] * builder.chunk_size + y * 0.5
                wz = coord[2] * builder.chunk_size + z * 0.5
                assert grid.get(x, y, z) == np.float32(field.sample(wx, wy, wz))


def test_neighbouring_chunks_share_boundary_planes(field) -> None:
    builder = VoxelGridBuilder(field, 4, 0.5)
    a = builder.build((0, 0, 0)).values
    east = builder.build((1, 0, 0)).values
    up = builder.build((0, 1, 0)).values
    north = builder.build((0, 0, 1)).values
    np.testing.assert_array_equal(a[:, :, -1], east[:, :, 0])
    np.testing.assert_array_equal(a[:, -1, :], up[:, 0, :])
    np.testing.assert_array_equal(a[-1, :, :], north[0, :, :])


def test_builder_rejects_bad_geometry(field) -> None:
    with pytest.raises(ConfigurationError):
        VoxelGridBuilder(field, 0, 1.0)
    with pytest.raises(ConfigurationError):
        VoxelGridBuilder(field, 4, 0.0)
