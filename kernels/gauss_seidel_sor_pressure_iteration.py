import warp as wp
from utils.structs import *
from kernels.pressure_projection import pressure_neighbour

@wp.kernel
def gauss_seidel_sor_pressure_iteration(
    pressure: wp.array(dtype=float, ndim=2),
    rhs: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    omega: float,
    color: int,
):
    """
    One red-black Gauss-Seidel SOR sweep of the pressure equation.

    PURPOSE:
    Relaxes the cut-cell, ghost-fluid pressure equation of every liquid cell of the given
    colour. All four neighbours of a cell have the opposite colour, so the sweep updates
    `pressure` in place and each half-sweep sees the other colour's newest values.

    For liquid cell c the discrete equation is
        sum_f (w_f / theta_f) * (p_c - p_f) = rhs_c
    where w_f is the open fraction of face f, theta_f = 1 for liquid neighbours and the
    clamped interface fraction for air neighbours, and p_f is the neighbour pressure or
    the ghost interface pressure (air/bubble pressure plus tension * curvature).

    INPUT VARIABLES:
    - pressure[i, j]: float - Current pressure iterate (warm start from the previous step)
    - rhs[i, j]: float - Right-hand side from compute_rhs_divergence
    - phi[i, j]: float - Liquid level set; cells with phi <= 0 are unknowns
    - u_weight, v_weight: float arrays - Cut-cell face open fractions (0 = closed)
    - curvature[i, j]: float - Liquid surface curvature (surface tension)
    - bubble_id[i, j]: int - Bubble index of air cells, -1 for atmospheric air
    - bubble_pressure[b]: float - Current pressure of bubble b
    - tension: float - Surface tension scale (0 disables it)
    - omega: float - SOR relaxation parameter (1.0 = plain Gauss-Seidel)
    - color: int - 0 for cells with (i + j) even, 1 for odd

    OUTPUT VARIABLES:
    - pressure[i, j]: float - Relaxed pressure of the liquid cells of this colour
    """
    i, j = wp.tid()

    if (i + j) % 2 != color:
        return
    if phi[i, j] > 0.0:
        return

    left = pressure_neighbour(phi, pressure, curvature, bubble_id, bubble_pressure, tension, u_weight[i, j], i, j, i - 1, j)
    right = pressure_neighbour(phi, pressure, curvature, bubble_id, bubble_pressure, tension, u_weight[i + 1, j], i, j, i + 1, j)
    bottom = pressure_neighbour(phi, pressure, curvature, bubble_id, bubble_pressure, tension, v_weight[i, j], i, j, i, j - 1)
    top = pressure_neighbour(phi, pressure, curvature, bubble_id, bubble_pressure, tension, v_weight[i, j + 1], i, j, i, j + 1)

    diag = left[0] + right[0] + bottom[0] + top[0]
    if diag <= 0.0:
        return

    p_old = pressure[i, j]
    p_gs = (left[1] + right[1] + bottom[1] + top[1] + rhs[i, j]) / diag
    pressure[i, j] = omega * p_gs + (1.0 - omega) * p_old
