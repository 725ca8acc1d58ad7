"""
Enclosed air pockets as incompressible bubbles.

Every 4-connected component of air cells (connected through open faces) is a
candidate bubble. The largest component is the atmosphere and stays at zero
pressure; every other component gets one pressure unknown chosen so that the
net liquid flux into it vanishes.
"""
from collections import deque

import numpy as np
import warp as wp
from utils.structs import *
from kernels.pressure_projection import interface_pressure

@wp.func
def accumulate_bubble_face(
    phi: wp.array(dtype=float, ndim=2),
    pressure: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    flux_scale: float,
    weight: float,
    outflow: float,
    i: int,
    j: int,
    ni: int,
    nj: int,
    numerator: wp.array(dtype=float),
    denominator: wp.array(dtype=float),
):
    if weight > 0.0:
        if phi[ni, nj] > 0.0:
            b = bubble_id[ni, nj]
            if b >= 0:
                ghost = interface_pressure(phi, curvature, bubble_id, bubble_pressure, tension, i, j, ni, nj)
                coef = weight / ghost[0]
                jump = ghost[1] - bubble_pressure[b]
                wp.atomic_add(numerator, b, coef * (pressure[i, j] - jump) + flux_scale * weight * outflow)
                wp.atomic_add(denominator, b, coef)

@wp.kernel
def accumulate_bubble_terms(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    u_weight: wp.array(dtype=float, ndim=2),
    v_weight: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    pressure: wp.array(dtype=float, ndim=2),
    curvature: wp.array(dtype=float, ndim=2),
    bubble_id: wp.array(dtype=int, ndim=2),
    bubble_pressure: wp.array(dtype=float),
    tension: float,
    flux_scale: float,
    numerator: wp.array(dtype=float),
    denominator: wp.array(dtype=float),
):
    """
    Accumulate the zero-net-flux condition of every bubble.

    PURPOSE:
    For bubble k with pressure P_k, the projected outflow through a liquid/bubble face f
    (seen from the liquid cell c) is
        w_f * (u*_f - (dt / dx) * (P_k + s_f - p_c) / theta_f)
    Requiring the sum over the bubble boundary to vanish gives
        P_k = [sum_f (w_f / theta_f) * (p_c - s_f) + (dx / dt) * sum_f w_f * u*_f] / sum_f (w_f / theta_f)
    This kernel accumulates the numerator and denominator; update_bubble_pressure divides.

    INPUT VARIABLES:
    - u, v: float arrays - Intermediate (unprojected) velocity
    - u_weight, v_weight: float arrays - Cut-cell face open fractions
    - phi[i, j]: float - Liquid level set
    - pressure[i, j]: float - Current liquid pressure iterate
    - curvature, tension - Surface tension terms (s_f = tension * interface curvature)
    - bubble_id[i, j]: int - Bubble index of air cells, -1 otherwise
    - flux_scale: float - dx / dt

    OUTPUT VARIABLES (accumulated via atomic_add, zeroed by the caller):
    - numerator[k], denominator[k]: float - Terms of the bubble pressure update
    """
    i, j = wp.tid()
    if phi[i, j] > 0.0:
        return
    accumulate_bubble_face(phi, pressure, curvature, bubble_id, bubble_pressure, tension, flux_scale,
                           u_weight[i, j], -u[i, j], i, j, i - 1, j, numerator, denominator)
    accumulate_bubble_face(phi, pressure, curvature, bubble_id, bubble_pressure, tension, flux_scale,
                           u_weight[i + 1, j], u[i + 1, j], i, j, i + 1, j, numerator, denominator)
    accumulate_bubble_face(phi, pressure, curvature, bubble_id, bubble_pressure, tension, flux_scale,
                           v_weight[i, j], -v[i, j], i, j, i, j - 1, numerator, denominator)
    accumulate_bubble_face(phi, pressure, curvature, bubble_id, bubble_pressure, tension, flux_scale,
                           v_weight[i, j + 1], v[i, j + 1], i, j, i, j + 1, numerator, denominator)

@wp.kernel
def update_bubble_pressure(
    numerator: wp.array(dtype=float),
    denominator: wp.array(dtype=float),
    bubble_pressure: wp.array(dtype=float),
):
    b = wp.tid()
    # a bubble that touches no liquid keeps its pressure
    if denominator[b] > 0.0:
        bubble_pressure[b] = numerator[b] / denominator[b]

@wp.kernel
def zero_bubble_terms(
    numerator: wp.array(dtype=float),
    denominator: wp.array(dtype=float),
):
    b = wp.tid()
    numerator[b] = 0.0
    denominator[b] = 0.0


def label_bubbles(phi, u_weight, v_weight):
    """
    Label the enclosed air components.

    Args:
        phi: np.ndarray (nx, ny), liquid level set
        u_weight: np.ndarray (nx + 1, ny), u face open fractions
        v_weight: np.ndarray (nx, ny + 1), v face open fractions

    Returns:
        (bubble_id, n_bubbles): int32 array (nx, ny) holding the bubble index of every
        bubble cell and -1 elsewhere (liquid, atmosphere, sealed-off cells), and the
        number of bubbles.
    """
    nx, ny = phi.shape
    air = phi > 0.0
    # cells with every face closed are inside solids
    open_faces = (u_weight[:-1, :] > 0.0) | (u_weight[1:, :] > 0.0) | (v_weight[:, :-1] > 0.0) | (v_weight[:, 1:] > 0.0)
    air &= open_faces

    component = np.full((nx, ny), -1, dtype=np.int32)
    sizes = []
    for si, sj in np.argwhere(air):
        if component[si, sj] >= 0:
            continue
        label = len(sizes)
        component[si, sj] = label
        size = 0
        queue = deque([(si, sj)])
        while queue:
            i, j = queue.popleft()
            size += 1
            neighbours = (
                (i - 1, j, u_weight[i, j]),
                (i + 1, j, u_weight[i + 1, j]),
                (i, j - 1, v_weight[i, j]),
                (i, j + 1, v_weight[i, j + 1]),
            )
            for ni, nj, w in neighbours:
                if w > 0.0 and 0 <= ni < nx and 0 <= nj < ny and air[ni, nj] and component[ni, nj] < 0:
                    component[ni, nj] = label
                    queue.append((ni, nj))
        sizes.append(size)

    if len(sizes) <= 1:
        return np.full((nx, ny), -1, dtype=np.int32), 0

    atmosphere = int(np.argmax(sizes))
    # renumber the remaining components 0..n-1
    remap = np.full(len(sizes) + 1, -1, dtype=np.int32)
    others = [k for k in range(len(sizes)) if k != atmosphere]
    remap[others] = np.arange(len(others), dtype=np.int32)
    bubble_id = remap[component]
    return bubble_id.astype(np.int32), len(others)
