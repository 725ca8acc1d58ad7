import warp as wp
from utils.structs import *
from utils.given_kernels import sample_scalar, index_to_world

# face classes used by the viscosity solve
FACE_AIR = wp.constant(0)
FACE_LIQUID = wp.constant(1)
FACE_SOLID = wp.constant(2)

@wp.kernel
def classify_u_faces(
    phi: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    face_class: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    face_class[i, j] = FACE_AIR
    if u_weight[i, j] <= 0.0:
        face_class[i, j] = FACE_SOLID
    elif phi[i - 1, j] <= 0.0 or phi[i, j] <= 0.0:
        face_class[i, j] = FACE_LIQUID

@wp.kernel
def classify_v_faces(
    phi: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    face_class: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    face_class[i, j] = FACE_AIR
    if v_weight[i, j] <= 0.0:
        face_class[i, j] = FACE_SOLID
    elif phi[i, j - 1] <= 0.0 or phi[i, j] <= 0.0:
        face_class[i, j] = FACE_LIQUID

@wp.func
def viscous_neighbour(
    values: wp.array(dtype=float, ndim=2),
    solid_values: wp.array(dtype=float, ndim=2),
    face_class: wp.array(dtype=int, ndim=2),
    mu: float,
    ni: int,
    nj: int,
):
    """
    Returns vec2(coefficient, coefficient * neighbour value).

    Liquid neighbours couple through their current value, solid neighbours through the
    solid velocity (no-slip), air neighbours and faces outside the grid not at all
    (traction free).
    """
    coef = float(0.0)
    value = float(0.0)
    if ni >= 0 and ni < values.shape[0] and nj >= 0 and nj < values.shape[1]:
        c = face_class[ni, nj]
        if c == FACE_LIQUID:
            coef = mu
            value = mu * values[ni, nj]
        elif c == FACE_SOLID:
            coef = mu
            value = mu * solid_values[ni, nj]
    return wp.vec2(coef, value)

@wp.kernel
def viscosity_u_iteration(
    u: wp.array(dtype=float, ndim=2),
    u_old: wp.array(dtype=float, ndim=2),
    u_solid: wp.array(dtype=float, ndim=2),
    face_class: wp.array(dtype=int, ndim=2),
    viscosity: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    color: int,
):
    """
    One red-black Gauss-Seidel sweep of implicit viscous diffusion on u faces.

    PURPOSE:
    Relaxes (1 + dt/dx^2 sum_k mu_k) u - dt/dx^2 sum_k mu_k u_k = u_old on every liquid
    u face of the given colour. mu_k is the viscosity between the face and neighbour k:
    the cell-centred value for neighbours along x, the value interpolated to the grid
    node for neighbours along y.

    INPUT VARIABLES:
    - u[i, j]: float - Current iterate (starts at u_old)
    - u_old[i, j]: float - Velocity before the viscosity step
    - u_solid[i, j]: float - Solid velocity used by solid neighbours
    - face_class[i, j]: int - FACE_AIR, FACE_LIQUID or FACE_SOLID
    - viscosity[i, j]: float - Cell-centred viscosity coefficient
    - dt: float - Time step size
    - color: int - Parity of (i + j) to update

    OUTPUT VARIABLES:
    - u[i, j]: float - Relaxed velocity on liquid faces of this colour
    """
    i, j = wp.tid()
    if (i + j) % 2 != color:
        return
    if face_class[i, j] != FACE_LIQUID:
        return

    mu_r = viscosity[i, j]
    mu_l = viscosity[i - 1, j]
    mu_t = sample_scalar(viscosity, xform, index_to_world(xform, wp.vec2(float(i), float(j + 1))))
    mu_b = sample_scalar(viscosity, xform, index_to_world(xform, wp.vec2(float(i), float(j))))

    right = viscous_neighbour(u, u_solid, face_class, mu_r, i + 1, j)
    left = viscous_neighbour(u, u_solid, face_class, mu_l, i - 1, j)
    top = viscous_neighbour(u, u_solid, face_class, mu_t, i, j + 1)
    bottom = viscous_neighbour(u, u_solid, face_class, mu_b, i, j - 1)

    scale = dt / (xform.dx * xform.dx)
    diag = 1.0 + scale * (right[0] + left[0] + top[0] + bottom[0])
    u[i, j] = (u_old[i, j] + scale * (right[1] + left[1] + top[1] + bottom[1])) / diag

@wp.kernel
def viscosity_v_iteration(
    v: wp.array(dtype=float, ndim=2),
    v_old: wp.array(dtype=float, ndim=2),
    v_solid: wp.array(dtype=float, ndim=2),
    face_class: wp.array(dtype=int, ndim=2),
    viscosity: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    color: int,
):
    i, j = wp.tid()
    if (i + j) % 2 != color:
        return
    if face_class[i, j] != FACE_LIQUID:
        return

    mu_t = viscosity[i, j]
    mu_b = viscosity[i, j - 1]
    mu_r = sample_scalar(viscosity, xform, index_to_world(xform, wp.vec2(float(i + 1), float(j))))
    mu_l = sample_scalar(viscosity, xform, index_to_world(xform, wp.vec2(float(i), float(j))))

    right = viscous_neighbour(v, v_solid, face_class, mu_r, i + 1, j)
    left = viscous_neighbour(v, v_solid, face_class, mu_l, i - 1, j)
    top = viscous_neighbour(v, v_solid, face_class, mu_t, i, j + 1)
    bottom = viscous_neighbour(v, v_solid, face_class, mu_b, i, j - 1)

    scale = dt / (xform.dx * xform.dx)
    diag = 1.0 + scale * (right[0] + left[0] + top[0] + bottom[0])
    v[i, j] = (v_old[i, j] + scale * (right[1] + left[1] + top[1] + bottom[1])) / diag
