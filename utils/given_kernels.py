import warp as wp
import torch
from utils.structs import *

# Sampling clamp policy: coordinates outside the stored samples are clamped to
# the nearest valid sample, so queries outside the domain return the boundary
# value (constant edge extension). No query is ever an out-of-bounds read.

@wp.func
def world_to_index(xform: TransformStruct, pos: wp.vec2):
    return (pos - xform.offset) * (1.0 / xform.dx)

@wp.func
def index_to_world(xform: TransformStruct, index: wp.vec2):
    return xform.offset + index * xform.dx

@wp.func
def sample_bilinear(values: wp.array(dtype=float, ndim=2), coord: wp.vec2):
    """Bilinear interpolation at a fractional sample coordinate (clamped)."""
    nx = values.shape[0]
    ny = values.shape[1]
    x = wp.clamp(coord[0], 0.0, float(nx - 1))
    y = wp.clamp(coord[1], 0.0, float(ny - 1))
    i = wp.max(wp.min(int(wp.floor(x)), nx - 2), 0)
    j = wp.max(wp.min(int(wp.floor(y)), ny - 2), 0)
    i1 = wp.min(i + 1, nx - 1)
    j1 = wp.min(j + 1, ny - 1)
    fx = x - float(i)
    fy = y - float(j)
    v00 = values[i, j]
    v10 = values[i1, j]
    v01 = values[i, j1]
    v11 = values[i1, j1]
    return (1.0 - fx) * ((1.0 - fy) * v00 + fy * v01) + fx * ((1.0 - fy) * v10 + fy * v11)

@wp.func
def sample_scalar(values: wp.array(dtype=float, ndim=2), xform: TransformStruct, pos: wp.vec2):
    # cell-centred samples sit half a cell in from the index origin
    coord = world_to_index(xform, pos) - wp.vec2(0.5, 0.5)
    return sample_bilinear(values, coord)

@wp.func
def sample_u(u: wp.array(dtype=float, ndim=2), xform: TransformStruct, pos: wp.vec2):
    coord = world_to_index(xform, pos) - wp.vec2(0.0, 0.5)
    return sample_bilinear(u, coord)

@wp.func
def sample_v(v: wp.array(dtype=float, ndim=2), xform: TransformStruct, pos: wp.vec2):
    coord = world_to_index(xform, pos) - wp.vec2(0.5, 0.0)
    return sample_bilinear(v, coord)

@wp.func
def sample_velocity(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    pos: wp.vec2,
):
    return wp.vec2(sample_u(u, xform, pos), sample_v(v, xform, pos))

@wp.func
def sample_gradient(values: wp.array(dtype=float, ndim=2), xform: TransformStruct, pos: wp.vec2):
    h = xform.dx
    gx = sample_scalar(values, xform, pos + wp.vec2(h, 0.0)) - sample_scalar(values, xform, pos - wp.vec2(h, 0.0))
    gy = sample_scalar(values, xform, pos + wp.vec2(0.0, h)) - sample_scalar(values, xform, pos - wp.vec2(0.0, h))
    return wp.vec2(gx, gy) * (0.5 / h)

@wp.func
def cell_center(xform: TransformStruct, i: int, j: int):
    return index_to_world(xform, wp.vec2(float(i) + 0.5, float(j) + 0.5))

@wp.func
def u_face_position(xform: TransformStruct, i: int, j: int):
    return index_to_world(xform, wp.vec2(float(i), float(j) + 0.5))

@wp.func
def v_face_position(xform: TransformStruct, i: int, j: int):
    return index_to_world(xform, wp.vec2(float(i) + 0.5, float(j)))

@wp.kernel
def sample_scalar_points(
    values: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    points: wp.array(dtype=wp.vec2),
    out: wp.array(dtype=float),
):
    p = wp.tid()
    out[p] = sample_scalar(values, xform, points[p])

@wp.kernel
def sample_velocity_points(
    u: wp.array(dtype=float, ndim=2),
    v: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    points: wp.array(dtype=wp.vec2),
    out: wp.array(dtype=wp.vec2),
):
    p = wp.tid()
    out[p] = sample_velocity(u, v, xform, points[p])

@wp.kernel
def set_value_to_float_array(target_array: wp.array(dtype=float, ndim=2), value: float):
    i, j = wp.tid()
    target_array[i, j] = value

@wp.kernel
def min_float_arrays(
    target_array: wp.array(dtype=float, ndim=2),
    other_array: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    target_array[i, j] = wp.min(target_array[i, j], other_array[i, j])

@wp.kernel
def max_float_arrays(
    target_array: wp.array(dtype=float, ndim=2),
    other_array: wp.array(dtype=float, ndim=2),
):
    i, j = wp.tid()
    target_array[i, j] = wp.max(target_array[i, j], other_array[i, j])

def torch2warp_vec2(t):
    """Alias an (N, 2) float32 torch tensor as a Warp vec2 array."""
    if t.dtype != torch.float32:
        raise RuntimeError(
            "Error aliasing Torch tensor to Warp array. Torch tensor must be float32 type"
        )
    if t.dim() != 2 or t.shape[1] != 2:
        raise ValueError(f"tensor must have shape (n, 2), got {tuple(t.shape)}")
    return wp.from_torch(t.contiguous(), dtype=wp.vec2)
