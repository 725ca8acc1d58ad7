import warp as wp
from utils.structs import *

@wp.func
def clamped_value(phi: wp.array(dtype=float, ndim=2), i: int, j: int):
    ci = wp.clamp(i, 0, phi.shape[0] - 1)
    cj = wp.clamp(j, 0, phi.shape[1] - 1)
    return phi[ci, cj]

@wp.kernel
def compute_curvature(
    phi: wp.array(dtype=float, ndim=2),
    dx: float,
    curvature: wp.array(dtype=float, ndim=2),
):
    """
    Mean curvature of the level set at cell centres.

    PURPOSE:
    Evaluates kappa = div(grad(phi) / |grad(phi)|) with central differences,
        kappa = (phi_xx phi_y^2 - 2 phi_x phi_y phi_xy + phi_yy phi_x^2) / |grad(phi)|^3
    Positive for convex liquid regions (e.g. 1 / r for a disc of radius r). The result
    is clamped to +/- 1 / dx, the largest curvature the grid can resolve.

    INPUT VARIABLES:
    - phi[i, j]: float - Signed distance of the liquid surface
    - dx: float - Cell size

    OUTPUT VARIABLES:
    - curvature[i, j]: float - Clamped curvature, 0 where the gradient vanishes
    """
    i, j = wp.tid()
    c = phi[i, j]
    l = clamped_value(phi, i - 1, j)
    r = clamped_value(phi, i + 1, j)
    b = clamped_value(phi, i, j - 1)
    t = clamped_value(phi, i, j + 1)

    inv_dx = 1.0 / dx
    phi_x = 0.5 * (r - l) * inv_dx
    phi_y = 0.5 * (t - b) * inv_dx
    phi_xx = (r - 2.0 * c + l) * inv_dx * inv_dx
    phi_yy = (t - 2.0 * c + b) * inv_dx * inv_dx
    phi_xy = (
        clamped_value(phi, i + 1, j + 1)
        - clamped_value(phi, i + 1, j - 1)
        - clamped_value(phi, i - 1, j + 1)
        + clamped_value(phi, i - 1, j - 1)
    ) * 0.25 * inv_dx * inv_dx

    grad_sq = phi_x * phi_x + phi_y * phi_y
    kappa = float(0.0)
    if grad_sq > 1.0e-12:
        grad_norm = wp.sqrt(grad_sq)
        kappa = (phi_xx * phi_y * phi_y - 2.0 * phi_x * phi_y * phi_xy + phi_yy * phi_x * phi_x) / (grad_sq * grad_norm)
    curvature[i, j] = wp.clamp(kappa, -inv_dx, inv_dx)
