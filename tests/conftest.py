from pathlib import Path
import sys

import numpy as np
import pytest

# Make the voxterrain package importable when running tests from the repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from voxterrain.world.mesh import MeshBuffer  # noqa: E402


@pytest.fixture
def one_triangle() -> MeshBuffer:
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], dtype=np.float32)
    return MeshBuffer(
        positions=positions,
        normals=np.tile(np.array([0.0, -1.0, 0.0], dtype=np.float32), (3, 1)),
        uvs=np.zeros((3, 2), dtype=np.float32),
    )
