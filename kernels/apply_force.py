import warp as wp
from utils.structs import *

@wp.kernel
def apply_constant_force(
    values: wp.array(dtype=float, ndim=2),
    acceleration: float,
    dt: float,
):
    """
    Apply a uniform body force to one velocity component.

    PURPOSE:
    Forward Euler update of every face of a staggered component with a constant
    acceleration (e.g. gravity). Faces inside solids or air are updated too; the
    projection and extrapolation stages overwrite them.

    INPUT VARIABLES:
    - values[i, j]: float - u or v face velocities
    - acceleration: float - Matching component of the acceleration
    - dt: float - Time step size

    OUTPUT VARIABLES:
    - values[i, j]: float - values + acceleration * dt
    """
    i, j = wp.tid()
    values[i, j] = values[i, j] + acceleration * dt

@wp.kernel
def apply_field_force(
    values: wp.array(dtype=float, ndim=2),
    acceleration: wp.array(dtype=float, ndim=2),
    dt: float,
):
    i, j = wp.tid()
    values[i, j] = values[i, j] + acceleration[i, j] * dt
