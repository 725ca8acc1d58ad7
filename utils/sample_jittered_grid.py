import numpy as np
from math import ceil, sqrt

def sample_jittered_grid(cells, per_cell, xform, k=100, rng=None):
    """
    Generate jittered, stratified samples inside a set of grid cells.

    Each cell is split into a ceil(sqrt(per_cell))^2 lattice of strata; the
    first `per_cell` strata receive one sample each, displaced randomly
    inside its stratum.

    Args:
        cells (array-like, shape (m, 2)): Integer cell indices to fill.
        per_cell (int): Samples per cell.
        xform (Transform): Maps cell indices to world space.
        k (float): Jitter amount as a percentage of the stratum size (0 = no jitter, 100 = full stratum).
        rng (np.random.Generator): Source of randomness (default: a fresh default_rng()).

    Returns:
        np.ndarray: Array of shape (m * per_cell, 2) of world-space sample positions.
    """
    cells = np.asarray(cells, dtype=np.float32).reshape(-1, 2)
    if per_cell <= 0 or cells.shape[0] == 0:
        return np.zeros((0, 2), dtype=np.float32)
    rng = np.random.default_rng() if rng is None else rng

    strata_per_dim = int(ceil(sqrt(per_cell)))
    strata = np.arange(per_cell)
    stratum_origin = np.stack([strata % strata_per_dim, strata // strata_per_dim], axis=1).astype(np.float32)

    # Jitter is uniformly distributed in [-k/2, k/2] percent of a stratum around its centre
    jitter_scale = k / 100.0
    jitter = rng.uniform(-0.5 * jitter_scale, 0.5 * jitter_scale, size=(cells.shape[0], per_cell, 2))

    local = (stratum_origin[None, :, :] + 0.5 + jitter) / strata_per_dim
    index = cells[:, None, :] + local
    return xform.to_world(index.reshape(-1, 2)).astype(np.float32)
