import warp as wp
from utils.structs import *
from utils.given_kernels import sample_velocity

@wp.kernel
def g2p(
    particle_x: wp.array(dtype=wp.vec2),
    particle_v: wp.array(dtype=wp.vec2),
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    u_old: wp.array(dtype=float, ndim=2),
    v_old: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    alpha: float,
):
    """
    Grid-to-particle (G2P) transfer using PIC-FLIP blending.

    PURPOSE:
    Transfers the grid velocity back to particles. The PIC part is the interpolated grid
    velocity, the FLIP part adds the change of the grid velocity since the last transfer
    to the particle's own velocity.

    INPUT VARIABLES:
    - particle_x[p]: vec2 - World-space position of particle p
    - particle_v[p]: vec2 - Velocity of particle p from the previous transfer
    - u, v: float arrays - Current staggered grid velocity (PIC component)
    - u_old, v_old: float arrays - Grid velocity stored at the last particle-to-grid transfer
    - alpha: float - PIC-FLIP blending parameter
        - alpha = 1.0: Pure PIC
        - alpha = 0.0: Pure FLIP
        - 0 < alpha < 1: Blended (typically ~0.1, mostly FLIP)

    OUTPUT VARIABLES:
    - particle_v[p]: vec2 - Updated particle velocity
        v_new = alpha * v_PIC + (1 - alpha) * (v_p + (v_PIC - v_old_grid))
    """
    p = wp.tid()
    pos = particle_x[p]
    v_pic = sample_velocity(u, v, xform, pos)
    delta = v_pic - sample_velocity(u_old, v_old, xform, pos)
    particle_v[p] = alpha * v_pic + (1.0 - alpha) * (particle_v[p] + delta)
