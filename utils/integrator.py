"""
Explicit Runge-Kutta stepping used by every semi-Lagrangian trace.
"""
from enum import IntEnum

import warp as wp
from utils.structs import *
from utils.given_kernels import sample_velocity


class Integrator(IntEnum):
    FORWARD_EULER = 1
    RK2 = 2
    RK3 = 3


@wp.func
def trace(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    pos: wp.vec2,
    dt: float,
    order: int,
):
    """
    Integrate `pos` through the staggered velocity (u, v) over `dt`.

    order 1 is forward Euler, 2 the midpoint rule and 3 Ralston's third order
    scheme. A negative `dt` traces backwards along the characteristic.
    """
    k1 = sample_velocity(u, v, xform, pos)
    result = pos + dt * k1
    if order >= 2:
        k2 = sample_velocity(u, v, xform, pos + (0.5 * dt) * k1)
        result = pos + dt * k2
        if order >= 3:
            k3 = sample_velocity(u, v, xform, pos + (0.75 * dt) * k2)
            result = pos + dt * ((2.0 / 9.0) * k1 + (3.0 / 9.0) * k2 + (4.0 / 9.0) * k3)
    return result


def as_order(order):
    """Accept an Integrator member or a plain int and validate it."""
    order = int(order)
    if order not in (1, 2, 3):
        raise ValueError(f"Unsupported integrator order: {order}. Must be 1, 2 or 3")
    return order
