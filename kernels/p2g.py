import warp as wp
from utils.structs import *
from utils.given_kernels import world_to_index

# faces whose accumulated weight is below this keep their grid value
MIN_SPLAT_WEIGHT = wp.constant(1.0e-6)

@wp.func
def splat_tent(
    values: wp.array(dtype=float, ndim=2),
    weights: wp.array(dtype=float, ndim=2),
    coord: wp.vec2,
    value: float,
):
    nx = values.shape[0]
    ny = values.shape[1]
    i0 = int(wp.floor(coord[0]))
    j0 = int(wp.floor(coord[1]))
    fx = coord[0] - float(i0)
    fy = coord[1] - float(j0)
    for a in range(2):
        for b in range(2):
            i = i0 + a
            j = j0 + b
            if i >= 0 and i < nx and j >= 0 and j < ny:
                wx = 1.0 - fx
                if a == 1:
                    wx = fx
                wy = 1.0 - fy
                if b == 1:
                    wy = fy
                w = wx * wy
                wp.atomic_add(values, i, j, w * value)
                wp.atomic_add(weights, i, j, w)

@wp.kernel
def p2g(
    particle_x: wp.array(dtype=wp.vec2),
    particle_v: wp.array(dtype=wp.vec2),
    xform: TransformStruct,
    u_sum: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_sum: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
):
    """
    Particle-to-Grid (P2G) transfer onto a staggered grid with tent (bilinear) weights.

    PURPOSE:
    Every particle deposits its velocity onto the 2x2 block of u faces and the 2x2 block
    of v faces that surround it. Weighted sums and total weights are accumulated
    separately; normalize_splat divides them afterwards.

    INPUT VARIABLES:
    - particle_x[p]: vec2 - World-space position of particle p
    - particle_v[p]: vec2 - Velocity of particle p
    - xform: TransformStruct - Grid spacing and offset

    OUTPUT VARIABLES (accumulated via atomic_add, must be zeroed beforehand):
    - u_sum[i, j], u_weight[i, j]: float - Weighted x-velocity and weight on u faces
    - v_sum[i, j], v_weight[i, j]: float - Weighted y-velocity and weight on v faces

    PARALLELIZATION:
    - One thread per particle; faces shared between particles are updated atomically
    """
    p = wp.tid()
    coord = world_to_index(xform, particle_x[p])
    vel = particle_v[p]
    # u faces sit at (i, j + 1/2), v faces at (i + 1/2, j)
    splat_tent(u_sum, u_weight, coord - wp.vec2(0.0, 0.5), vel[0])
    splat_tent(v_sum, v_weight, coord - wp.vec2(0.5, 0.0), vel[1])

@wp.kernel
def normalize_splat(
    face_sum: wp.array(dtype=float, ndim=2),
    face_weight: wp.array(dtype=float, ndim=2),
    values: wp.array(dtype=float, ndim=2),
    valid: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    w = face_weight[i, j]
    if w > MIN_SPLAT_WEIGHT:
        values[i, j] = face_sum[i, j] / w
        valid[i, j] = 1
    else:
        valid[i, j] = 0
