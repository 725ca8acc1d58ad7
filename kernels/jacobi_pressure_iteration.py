import warp as wp
from utils.structs import *
from kernels.pressure_projection import pressure_neighbour

@wp.kernel
def jacobi_pressure_iteration(
    pressure: wp.array(dtype=float, ndim=2),
    pressure_old: wp.array(dtype=float, ndim=2),
    rhs: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    alpha: float,
    beta: float,
):
    """
    One damped Jacobi iteration of the pressure equation.

    PURPOSE:
    Same discrete equation as gauss_seidel_sor_pressure_iteration, but every neighbour is
    read from pressure_old, so all cells can be updated at once.

    INPUT VARIABLES:
    - pressure_old[i, j]: float - Pressure from the previous iteration
    - alpha: float - Weight of the Jacobi update (1.0 = standard Jacobi)
    - beta: float - Weight of the old value, typically 1 - alpha
    - (remaining inputs as in the Gauss-Seidel sweep)

    OUTPUT VARIABLES:
    - pressure[i, j]: float - alpha * p_jacobi + beta * p_old in liquid cells
    """
    i, j = wp.tid()

    if phi[i, j] > 0.0:
        return

    left = pressure_neighbour(phi, pressure_old, curvature, bubble_id, bubble_pressure, tension, u_weight[i, j], i, j, i - 1, j)
    right = pressure_neighbour(phi, pressure_old, curvature, bubble_id, bubble_pressure, tension, u_weight[i + 1, j], i, j, i + 1, j)
    bottom = pressure_neighbour(phi, pressure_old, curvature, bubble_id, bubble_pressure, tension, v_weight[i, j], i, j, i, j - 1)
    top = pressure_neighbour(phi, pressure_old, curvature, bubble_id, bubble_pressure, tension, v_weight[i, j + 1], i, j, i, j + 1)

    diag = left[0] + right[0] + bottom[0] + top[0]
    if diag <= 0.0:
        return

    p_jacobi = (left[1] + right[1] + bottom[1] + top[1] + rhs[i, j]) / diag
    pressure[i, j] = alpha * p_jacobi + beta * pressure_old[i, j]
