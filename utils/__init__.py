"""
Utils package for grids, level sets, boundaries and particle seeding.
"""
from .transform import Transform
from .grids import ScalarGrid, VectorGrid
from .level_set import LevelSet
from .integrator import Integrator
from .shapes import Boundary, square_loop, circle_loop
from .sample_jittered_grid import sample_jittered_grid
from .given_kernels import torch2warp_vec2

__all__ = [
    'Transform',
    'ScalarGrid',
    'VectorGrid',
    'LevelSet',
    'Integrator',
    'Boundary',
    'square_loop',
    'circle_loop',
    'sample_jittered_grid',
    'torch2warp_vec2',
]
