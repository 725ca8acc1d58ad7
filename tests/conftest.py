import numpy as np
import pytest
import warp as wp

from utils import Transform, LevelSet, Boundary, square_loop

wp.init()


def pool_level_set(xform, size, depth, narrow_band=5):
    """Liquid filling the bottom `depth` of the domain; the loop extends past the walls."""
    width = xform.dx * size[0]
    level_set = LevelSet(xform, size, narrow_band=narrow_band)
    loop = square_loop((0.5 * width, 0.5 * depth - 0.1), (0.5 * width + 0.2, 0.5 * depth + 0.1))
    level_set.initialize(Boundary([loop]))
    return level_set


@pytest.fixture
def xform():
    return Transform(1.0 / 32.0)


@pytest.fixture
def square_level_set(xform):
    """Square of half-width 0.25 centred in the unit domain."""
    level_set = LevelSet(xform, (32, 32), narrow_band=5)
    level_set.initialize(Boundary([square_loop((0.5, 0.5), 0.25)]))
    return level_set


@pytest.fixture
def pool(xform):
    """Bottom half of the unit domain filled with liquid; the interface is flat."""
    return pool_level_set(xform, (32, 32), 0.5)


@pytest.fixture
def rng():
    return np.random.default_rng(7)
