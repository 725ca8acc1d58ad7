import warp as wp
from utils.structs import *

@wp.func
def cut_cell_divergence(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    u_solid: wp.array(dtype=float, ndim=2),
    v_solid: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    inv_dx: float,
    i: int,
    j: int,
):
    """Net outflow of cell (i, j), each face mixing fluid and solid velocity by its open fraction."""
    wr = u_weight[i + 1, j]
    wl = u_weight[i, j]
    wt = v_weight[i, j + 1]
    wb = v_weight[i, j]
    flux_r = wr * u[i + 1, j] + (1.0 - wr) * u_solid[i + 1, j]
    flux_l = wl * u[i, j] + (1.0 - wl) * u_solid[i, j]
    flux_t = wt * v[i, j + 1] + (1.0 - wt) * v_solid[i, j + 1]
    flux_b = wb * v[i, j] + (1.0 - wb) * v_solid[i, j]
    return (flux_r - flux_l + flux_t - flux_b) * inv_dx

@wp.kernel
def compute_rhs_divergence(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    u_solid: wp.array(dtype=float, ndim=2),
    v_solid: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    dx: float,
    dt: float,
    target_divergence: float,
    rhs: wp.array(dtype=float, ndim=2),
):
    """
    Right-hand side of the pressure equation at cell centres.

    PURPOSE:
    Computes the divergence of the intermediate velocity on the staggered (MAC) grid,
    with each face flux blended between the fluid velocity and the solid velocity by
    the cut-cell open fraction, and turns it into the pressure right-hand side.

    INPUT VARIABLES:
    - u[i, j], v[i, j]: float - Intermediate velocity on u and v faces
    - u_solid, v_solid: float arrays - Solid velocity on the same faces
    - u_weight, v_weight: float arrays - Open fraction of each face (0 = solid, 1 = open)
    - phi[i, j]: float - Liquid level set; only cells with phi <= 0 get a right-hand side
    - dx, dt: float - Cell size and time step
    - target_divergence: float - Divergence the projection should produce in liquid
        cells (0 for incompressible flow, non-zero when volume correction is active)

    OUTPUT VARIABLES:
    - rhs[i, j]: float - (dx^2 / dt) * (target_divergence - div u*) in liquid cells, 0 elsewhere
    """
    i, j = wp.tid()
    rhs[i, j] = 0.0
    if phi[i, j] <= 0.0:
        div = cut_cell_divergence(u, v, u_solid, v_solid, u_weight, v_weight, 1.0 / dx, i, j)
        rhs[i, j] = (dx * dx / dt) * (target_divergence - div)

@wp.kernel
def compute_divergence(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    u_solid: wp.array(dtype=float, ndim=2),
    v_solid: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    dx: float,
    divergence: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    divergence[i, j] = 0.0
    if phi[i, j] <= 0.0:
        divergence[i, j] = cut_cell_divergence(u, v, u_solid, v_solid, u_weight, v_weight, 1.0 / dx, i, j)
