import warp as wp
from utils.structs import *
from utils.given_kernels import (
    sample_scalar,
    sample_u,
    sample_v,
    sample_gradient,
    cell_center,
    u_face_position,
    v_face_position,
)
from utils.integrator import trace, as_order

@wp.kernel
def advect_scalar_kernel(
    field_old: wp.array(dtype=float, ndim=2),
    field_new: wp.array(dtype=float, ndim=2),
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    order: int,
):
    """
    Semi-Lagrangian advection of a cell-centred scalar field.

    PURPOSE:
    Each cell centre is traced backwards through the velocity field over dt, and the old
    field is resampled at the departure point.

    INPUT VARIABLES:
    - field_old[i, j]: float - Scalar field before advection (read only)
    - u[i, j], v[i, j]: float - Staggered velocity components used for the trace
    - xform: TransformStruct - Grid spacing and offset shared by all fields
    - dt: float - Time step size
    - order: int - Integrator order (1 = forward Euler, 2 = midpoint, 3 = Ralston RK3)

    OUTPUT VARIABLES:
    - field_new[i, j]: float - Scalar field after advection
    """
    i, j = wp.tid()
    pos = cell_center(xform, i, j)
    departure = trace(u, v, xform, pos, -dt, order)
    field_new[i, j] = sample_scalar(field_old, xform, departure)

@wp.kernel
def advect_u_kernel(
    u_old: wp.array(dtype=float, ndim=2),
    u_adv: wp.array(dtype=float, ndim=2),
    v_adv: wp.array(dtype=float, ndim=2),
    u_new: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    order: int,
):
    i, j = wp.tid()
    pos = u_face_position(xform, i, j)
    departure = trace(u_adv, v_adv, xform, pos, -dt, order)
    u_new[i, j] = sample_u(u_old, xform, departure)

@wp.kernel
def advect_v_kernel(
    v_old: wp.array(dtype=float, ndim=2),
    u_adv: wp.array(dtype=float, ndim=2),
    v_adv: wp.array(dtype=float, ndim=2),
    v_new: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    order: int,
):
    i, j = wp.tid()
    pos = v_face_position(xform, i, j)
    departure = trace(u_adv, v_adv, xform, pos, -dt, order)
    v_new[i, j] = sample_v(v_old, xform, departure)

@wp.kernel
def advect_particles_kernel(
    particle_x: wp.array(dtype=wp.vec2),
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    dt: float,
    order: int,
    collision: wp.array(dtype=float, ndim=2),
    use_collision: int,
    lower: wp.vec2,
    upper: wp.vec2,
):
    """
    Forward advection of marker particles.

    PURPOSE:
    Moves every particle along the grid velocity with the chosen Runge-Kutta order. A
    particle that ends up inside a solid is pushed back to the solid surface along the
    collision level set gradient, then all particles are clamped into the domain.

    INPUT VARIABLES:
    - particle_x[p]: vec2 - World-space position of particle p
    - u, v: float arrays - Staggered grid velocity
    - collision[i, j]: float - Signed distance to solids (negative inside), read only
        when use_collision != 0
    - lower, upper: vec2 - Containment box, already shrunk by the containment margin

    OUTPUT VARIABLES:
    - particle_x[p]: vec2 - Advected, contained position
    """
    p = wp.tid()
    pos = trace(u, v, xform, particle_x[p], dt, order)

    if use_collision != 0:
        phi = sample_scalar(collision, xform, pos)
        if phi < 0.0:
            grad = sample_gradient(collision, xform, pos)
            length = wp.length(grad)
            if length > 1.0e-6:
                pos = pos - (phi / length) * (grad / length)

    particle_x[p] = wp.vec2(
        wp.clamp(pos[0], lower[0], upper[0]),
        wp.clamp(pos[1], lower[1], upper[1]),
    )


def advect_scalar(field, velocity, dt, order=1):
    """Advect a ScalarGrid (or LevelSet) in place through a VectorGrid."""
    if not field.xform.is_matched(velocity.xform):
        raise ValueError("Advected field and velocity must share a transform")
    order = as_order(order)
    field_old = wp.clone(field.data)
    wp.launch(
        kernel=advect_scalar_kernel,
        dim=field.size,
        inputs=[field_old, field.data, velocity.u, velocity.v, field.xform.to_struct(), float(dt), order],
        device=field.device,
    )


def advect_level_set(level_set, velocity, dt, order=1):
    # distances are resampled, not re-distanced; reinitialize() restores the metric
    advect_scalar(level_set, velocity, dt, order)


def advect_velocity(velocity, dt, order=1, advecting_velocity=None):
    """
    Semi-Lagrangian advection of a staggered field.

    With no `advecting_velocity` the field is self-advected: both components are traced
    through the velocity as it was before this call.
    """
    order = as_order(order)
    if advecting_velocity is not None and not velocity.is_matched(advecting_velocity):
        raise ValueError("Advected and advecting velocity grids must be matched")
    u_old = wp.clone(velocity.u)
    v_old = wp.clone(velocity.v)
    if advecting_velocity is None:
        u_adv, v_adv = u_old, v_old
    else:
        u_adv, v_adv = advecting_velocity.u, advecting_velocity.v
    xform = velocity.xform.to_struct()
    nx, ny = velocity.size

    # trace through the advecting field, resample the advected one
    wp.launch(
        kernel=advect_u_kernel,
        dim=(nx + 1, ny),
        inputs=[u_old, u_adv, v_adv, velocity.u, xform, float(dt), order],
        device=velocity.device,
    )
    wp.launch(
        kernel=advect_v_kernel,
        dim=(nx, ny + 1),
        inputs=[v_old, u_adv, v_adv, velocity.v, xform, float(dt), order],
        device=velocity.device,
    )


def advect_particles(particle_x, velocity, dt, order=1, collision=None, margin=None):
    """
    Advect a wp.array of vec2 positions in place.

    Args:
        particle_x: wp.array(dtype=wp.vec2) of positions
        velocity: VectorGrid to integrate through
        dt: time step (may be negative to integrate backwards)
        order: integrator order
        collision: optional LevelSet of solids to push particles out of
        margin: containment margin from the domain walls (default 1e-3 * dx)
    """
    order = as_order(order)
    n = particle_x.shape[0]
    if n == 0:
        return
    if collision is not None and not collision.is_matched(velocity):
        raise ValueError("Collision level set must match the velocity grid")
    xform = velocity.xform
    margin = 1.0e-3 * xform.dx if margin is None else margin
    lower = xform.to_world((0.0, 0.0)) + margin
    upper = xform.to_world(velocity.size) - margin
    wp.launch(
        kernel=advect_particles_kernel,
        dim=n,
        inputs=[
            particle_x,
            velocity.u,
            velocity.v,
            xform.to_struct(),
            float(dt),
            order,
            collision.data if collision is not None else velocity.u,
            0 if collision is None else 1,
            wp.vec2(float(lower[0]), float(lower[1])),
            wp.vec2(float(upper[0]), float(upper[1])),
        ],
        device=particle_x.device,
    )
