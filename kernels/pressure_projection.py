import warp as wp
from utils.structs import *
from utils.given_kernels import sample_scalar, index_to_world

# smallest ghost-fluid interface fraction, keeps the 1 / theta coefficients bounded
MIN_THETA = wp.constant(0.01)
# cut-cell face weights below this are treated as fully solid
MIN_FACE_WEIGHT = wp.constant(0.01)

@wp.func
def fraction_inside(phi0: float, phi1: float):
    """Fraction of the segment between two samples where phi < 0."""
    result = float(0.0)
    if phi0 < 0.0 and phi1 < 0.0:
        result = 1.0
    elif phi0 < 0.0:
        result = phi0 / (phi0 - phi1)
    elif phi1 < 0.0:
        result = phi1 / (phi1 - phi0)
    return result

@wp.func
def ghost_theta(phi_liquid: float, phi_air: float):
    """Distance from the liquid sample to the interface as a fraction of dx."""
    return wp.clamp(phi_liquid / (phi_liquid - phi_air), MIN_THETA, 1.0)

@wp.func
def air_pressure(
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    i: int,
    j: int,
):
    # air cells outside any bubble are at zero (atmospheric) pressure
    result = float(0.0)
    b = bubble_id[i, j]
    if b >= 0:
        result = bubble_pressure[b]
    return result

@wp.func
def interface_pressure(
    phi: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    li: int,
    lj: int,
    ai: int,
    aj: int,
):
    """
    Ghost pressure at the liquid/air interface between liquid cell (li, lj) and air
    cell (ai, aj), plus the interface fraction theta.

    Returns vec2(theta, pressure) where pressure = air pressure + tension * curvature,
    the curvature being interpolated to the interface location.
    """
    theta = ghost_theta(phi[li, lj], phi[ai, aj])
    kappa = (1.0 - theta) * curvature[li, lj] + theta * curvature[ai, aj]
    p = air_pressure(bubble_id, bubble_pressure, ai, aj) + tension * kappa
    return wp.vec2(theta, p)

@wp.func
def pressure_neighbour(
    phi: wp.array(dtype=float, ndim=2),
    pressure: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    weight: float,
    i: int,
    j: int,
    ni: int,
    nj: int,
):
    """
    Contribution of neighbour (ni, nj) to the pressure row of liquid cell (i, j).

    Returns vec2(coefficient, coefficient * neighbour pressure). Solid faces
    (weight == 0) contribute nothing; air neighbours use the ghost-fluid pressure
    with coefficient weight / theta.
    """
    coef = float(0.0)
    value = float(0.0)
    if weight > 0.0:
        if phi[ni, nj] <= 0.0:
            coef = weight
            value = weight * pressure[ni, nj]
        else:
            ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i, j, ni, nj)
            coef = weight / ghost[0]
            value = coef * ghost[1]
    return wp.vec2(coef, value)

@wp.kernel
def compute_u_face_weights(
    collision: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    u_weight: wp.array(dtype=float, ndim=2),
):
    """
    Cut-cell open fraction of every u face.

    The collision level set is sampled at the two face end points (grid nodes); the
    weight is the fraction of the face outside the solid. Faces on the domain boundary
    are closed.
    """
    i, j = wp.tid()
    nx = u_weight.shape[0] - 1
    w = float(0.0)
    if i > 0 and i < nx:
        phi0 = sample_scalar(collision, xform, index_to_world(xform, wp.vec2(float(i), float(j))))
        phi1 = sample_scalar(collision, xform, index_to_world(xform, wp.vec2(float(i), float(j + 1))))
        w = 1.0 - fraction_inside(phi0, phi1)
        if w < MIN_FACE_WEIGHT:
            w = 0.0
    u_weight[i, j] = w

@wp.kernel
def compute_v_face_weights(
    collision: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    v_weight: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    ny = v_weight.shape[1] - 1
    w = float(0.0)
    if j > 0 and j < ny:
        phi0 = sample_scalar(collision, xform, index_to_world(xform, wp.vec2(float(i), float(j))))
        phi1 = sample_scalar(collision, xform, index_to_world(xform, wp.vec2(float(i + 1), float(j))))
        w = 1.0 - fraction_inside(phi0, phi1)
        if w < MIN_FACE_WEIGHT:
            w = 0.0
    v_weight[i, j] = w

@wp.kernel
def copy_pressure_to_old(
    pressure: wp.array(dtype=float, ndim=2),
    pressure_old: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    pressure_old[i, j] = pressure[i, j]

@wp.kernel
def pressure_projection_u(
    u: wp.array(dtype=float, ndim=2),
    u_solid: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    pressure: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    scale: float,
    valid: wp.array(dtype=int, ndim=2),
):
    """
    Subtract the pressure gradient from the u faces.

    PURPOSE:
    Applies u_new = u - (dt / dx) * dp/dx across every open face touching liquid, using
    the ghost-fluid interface pressure (divided by theta) where one side is air.

    INPUT VARIABLES:
    - u[i, j]: float - Velocity before projection
    - u_solid[i, j]: float - Solid velocity, copied onto closed faces
    - u_weight[i, j]: float - Cut-cell open fraction, 0 on closed faces
    - phi[i, j]: float - Liquid level set (cell centred)
    - pressure[i, j]: float - Solved pressure
    - curvature, bubble_id, bubble_pressure, tension - Interface pressure terms
    - scale: float - dt / dx

    OUTPUT VARIABLES:
    - u[i, j]: float - Projected velocity
    - valid[i, j]: int - 1 on projected liquid faces, 0 elsewhere
    """
    i, j = wp.tid()
    valid[i, j] = 0
    if u_weight[i, j] <= 0.0:
        u[i, j] = u_solid[i, j]
        return
    # open faces are never on the domain boundary
    phi_l = phi[i - 1, j]
    phi_r = phi[i, j]
    if phi_l <= 0.0 and phi_r <= 0.0:
        u[i, j] = u[i, j] - scale * (pressure[i, j] - pressure[i - 1, j])
        valid[i, j] = 1
    elif phi_l <= 0.0:
        ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i - 1, j, i, j)
        u[i, j] = u[i, j] - scale * (ghost[1] - pressure[i - 1, j]) / ghost[0]
        valid[i, j] = 1
    elif phi_r <= 0.0:
        ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i, j, i - 1, j)
        u[i, j] = u[i, j] - scale * (pressure[i, j] - ghost[1]) / ghost[0]
        valid[i, j] = 1

@wp.kernel
def pressure_projection_v(
    v: wp.array(dtype=float, ndim=2),
    v_solid: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    pressure: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    scale: float,
    valid: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    valid[i, j] = 0
    if v_weight[i, j] <= 0.0:
        v[i, j] = v_solid[i, j]
        return
    phi_b = phi[i, j - 1]
    phi_t = phi[i, j]
    if phi_b <= 0.0 and phi_t <= 0.0:
        v[i, j] = v[i, j] - scale * (pressure[i, j] - pressure[i, j - 1])
        valid[i, j] = 1
    elif phi_b <= 0.0:
        ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i, j - 1, i, j)
        v[i, j] = v[i, j] - scale * (ghost[1] - pressure[i, j - 1]) / ghost[0]
        valid[i, j] = 1
    elif phi_t <= 0.0:
        ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i, j, i, j - 1)
        v[i, j] = v[i, j] - scale * (pressure[i, j] - ghost[1]) / ghost[0]
        valid[i, j] = 1

@wp.kernel
def set_solid_faces(
    values: wp.array(dtype=float, ndim=2),
    solid_values: wp.array(dtype=float, ndim=2),
    weight: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    if weight[i, j] <= 0.0:
        values[i, j] = solid_values[i, j]
