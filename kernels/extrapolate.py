import warp as wp
from utils.structs import *

@wp.kernel
def extrapolate_ring(
    values_in: wp.array(dtype=float, ndim=2),
    valid_in: wp.array(dtype=int, ndim=2),
    values_out: wp.array(dtype=float, ndim=2),
    valid_out: wp.array(dtype=int, ndim=2),
):
    """
    Grow the valid region of a field by one ring.

    PURPOSE:
    An invalid sample with at least one valid 4-neighbour takes the average of those
    neighbours and becomes valid. Valid samples and samples with no valid neighbour are
    copied through unchanged, so repeated launches (ping-ponging in/out) extend the
    field one ring per launch.

    INPUT VARIABLES:
    - values_in[i, j]: float - Field values
    - valid_in[i, j]: int - 1 where values_in is trusted, 0 otherwise

    OUTPUT VARIABLES:
    - values_out[i, j]: float - Field with one more ring filled in
    - valid_out[i, j]: int - Updated validity mask
    """
    i, j = wp.tid()
    nx = values_in.shape[0]
    ny = values_in.shape[1]

    values_out[i, j] = values_in[i, j]
    valid_out[i, j] = valid_in[i, j]
    if valid_in[i, j] == 0:
        total = float(0.0)
        count = int(0)
        if i > 0:
            if valid_in[i - 1, j] != 0:
                total = total + values_in[i - 1, j]
                count = count + 1
        if i + 1 < nx:
            if valid_in[i + 1, j] != 0:
                total = total + values_in[i + 1, j]
                count = count + 1
        if j > 0:
            if valid_in[i, j - 1] != 0:
                total = total + values_in[i, j - 1]
                count = count + 1
        if j + 1 < ny:
            if valid_in[i, j + 1] != 0:
                total = total + values_in[i, j + 1]
                count = count + 1
        if count > 0:
            values_out[i, j] = total / float(count)
            valid_out[i, j] = 1

@wp.kernel
def liquid_cell_mask(
    phi: wp.array(dtype=float, ndim=2),
    valid: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    valid[i, j] = 0
    if phi[i, j] <= 0.0:
        valid[i, j] = 1

@wp.kernel
def liquid_u_face_mask(
    phi: wp.array(dtype=float, ndim=2),
    valid: wp.array(dtype=int, ndim=2),
):
    # a u face is liquid if either neighbouring cell is
    i, j = wp.tid()
    nx = phi.shape[0]
    valid[i, j] = 0
    if i > 0:
        if phi[i - 1, j] <= 0.0:
            valid[i, j] = 1
    if i < nx:
        if phi[i, j] <= 0.0:
            valid[i, j] = 1

@wp.kernel
def liquid_v_face_mask(
    phi: wp.array(dtype=float, ndim=2),
    valid: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    ny = phi.shape[1]
    valid[i, j] = 0
    if j > 0:
        if phi[i, j - 1] <= 0.0:
            valid[i, j] = 1
    if j < ny:
        if phi[i, j] <= 0.0:
            valid[i, j] = 1

@wp.kernel
def zero_invalid(
    values: wp.array(dtype=float, ndim=2),
    valid: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    if valid[i, j] == 0:
        values[i, j] = 0.0


def extrapolate(values, valid, band_width):
    """
    Extrapolate a 2D wp.array in place from its valid samples, band_width rings out.

    Samples farther than band_width rings from any valid sample are left untouched,
    and an all-invalid mask leaves the field untouched.
    """
    shape = values.shape
    if tuple(valid.shape) != tuple(shape):
        raise ValueError(f"valid mask must have shape {shape}, got {valid.shape}")
    device = values.device
    values_a = wp.clone(values)
    valid_a = wp.clone(valid)
    values_b = wp.empty_like(values)
    valid_b = wp.empty_like(valid)
    for ring in range(int(band_width)):
        wp.launch(
            kernel=extrapolate_ring,
            dim=shape,
            inputs=[values_a, valid_a, values_b, valid_b],
            device=device,
        )
        values_a, values_b = values_b, values_a
        valid_a, valid_b = valid_b, valid_a
    wp.copy(values, values_a)
    return valid_a


def liquid_cells(level_set):
    valid = wp.zeros(shape=level_set.size, dtype=int, device=level_set.device)
    wp.launch(kernel=liquid_cell_mask, dim=level_set.size, inputs=[level_set.data, valid], device=level_set.device)
    return valid


def liquid_faces(level_set):
    nx, ny = level_set.size
    u_valid = wp.zeros(shape=(nx + 1, ny), dtype=int, device=level_set.device)
    v_valid = wp.zeros(shape=(nx, ny + 1), dtype=int, device=level_set.device)
    wp.launch(kernel=liquid_u_face_mask, dim=(nx + 1, ny), inputs=[level_set.data, u_valid], device=level_set.device)
    wp.launch(kernel=liquid_v_face_mask, dim=(nx, ny + 1), inputs=[level_set.data, v_valid], device=level_set.device)
    return u_valid, v_valid


def extrapolate_scalar(grid, level_set, band_width):
    """Extend a cell-centred field from the liquid cells of `level_set`."""
    if not grid.is_matched(level_set):
        raise ValueError("Extrapolated grid and level set must be matched")
    extrapolate(grid.data, liquid_cells(level_set), band_width)


def extrapolate_velocity(velocity, u_valid, v_valid, band_width):
    """Extend both face components from their valid faces; returns the grown masks."""
    return extrapolate(velocity.u, u_valid, band_width), extrapolate(velocity.v, v_valid, band_width)
