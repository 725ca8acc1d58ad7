"""
Cell-centred scalar grids and staggered (MAC) vector grids.

Sample layout for a grid of `size = (nx, ny)` cells and a Transform `xform`:
  - ScalarGrid sample (i, j)    -> xform.to_world((i + 0.5, j + 0.5)), shape (nx, ny)
  - VectorGrid u-face (i, j)    -> xform.to_world((i, j + 0.5)),       shape (nx + 1, ny)
  - VectorGrid v-face (i, j)    -> xform.to_world((i + 0.5, j)),       shape (nx, ny + 1)
Queries outside the samples are clamped (see utils/given_kernels.py).
"""
import numpy as np
import warp as wp

from utils.given_kernels import (
    sample_scalar_points,
    sample_velocity_points,
    set_value_to_float_array,
)


def _as_size(size):
    size = tuple(int(n) for n in np.broadcast_to(np.asarray(size), (2,)))
    if size[0] < 2 or size[1] < 2:
        raise ValueError(f"grid size must be at least 2x2, got {size}")
    return size


def _as_points(points):
    points = np.asarray(points, dtype=np.float32)
    if points.ndim == 1:
        points = points.reshape(1, 2)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"points must be shape (m, 2), got {points.shape}")
    return np.ascontiguousarray(points)


class ScalarGrid:
    def __init__(self, xform, size, value=0.0, device="cpu"):
        self.xform = xform
        self.size = _as_size(size)
        self.device = device
        self.data = wp.full(shape=self.size, value=float(value), dtype=float, device=device)

    @property
    def dx(self):
        return self.xform.dx

    def is_matched(self, other):
        return self.xform.is_matched(other.xform) and tuple(self.size) == tuple(other.size)

    def numpy(self):
        return self.data.numpy()

    def assign(self, values):
        values = np.asarray(values, dtype=np.float32)
        if values.shape != self.size:
            raise ValueError(f"values must have shape {self.size}, got {values.shape}")
        wp.copy(self.data, wp.array(values, dtype=float, device=self.device))

    def fill(self, value):
        wp.launch(
            kernel=set_value_to_float_array,
            dim=self.size,
            inputs=[self.data, float(value)],
            device=self.device,
        )

    def copy(self):
        grid = ScalarGrid(self.xform, self.size, device=self.device)
        wp.copy(grid.data, self.data)
        return grid

    def sample_positions(self):
        """World positions of all samples, shape (nx, ny, 2)."""
        ii, jj = np.meshgrid(np.arange(self.size[0]), np.arange(self.size[1]), indexing="ij")
        return self.xform.to_world(np.stack([ii + 0.5, jj + 0.5], axis=-1))

    def interp_points(self, points):
        points = _as_points(points)
        out = wp.zeros(points.shape[0], dtype=float, device=self.device)
        if points.shape[0] > 0:
            wp.launch(
                kernel=sample_scalar_points,
                dim=points.shape[0],
                inputs=[
                    self.data,
                    self.xform.to_struct(),
                    wp.array(points, dtype=wp.vec2, device=self.device),
                    out,
                ],
                device=self.device,
            )
        return out.numpy()

    def interp(self, position):
        return float(self.interp_points(position)[0])

    def max_magnitude(self):
        return float(np.abs(self.numpy()).max())


class VectorGrid:
    """Staggered velocity-like field with u on vertical faces and v on horizontal faces."""

    def __init__(self, xform, size, value=0.0, device="cpu"):
        self.xform = xform
        self.size = _as_size(size)
        self.device = device
        value = np.broadcast_to(np.asarray(value, dtype=np.float32), (2,))
        nx, ny = self.size
        self.u = wp.full(shape=(nx + 1, ny), value=float(value[0]), dtype=float, device=device)
        self.v = wp.full(shape=(nx, ny + 1), value=float(value[1]), dtype=float, device=device)

    @property
    def dx(self):
        return self.xform.dx

    def is_matched(self, other):
        return self.xform.is_matched(other.xform) and tuple(self.size) == tuple(other.size)

    def numpy(self):
        return self.u.numpy(), self.v.numpy()

    def assign(self, u, v):
        nx, ny = self.size
        u = np.asarray(u, dtype=np.float32)
        v = np.asarray(v, dtype=np.float32)
        if u.shape != (nx + 1, ny) or v.shape != (nx, ny + 1):
            raise ValueError(
                f"u and v must have shapes {(nx + 1, ny)} and {(nx, ny + 1)}, got {u.shape} and {v.shape}"
            )
        wp.copy(self.u, wp.array(u, dtype=float, device=self.device))
        wp.copy(self.v, wp.array(v, dtype=float, device=self.device))

    def fill(self, value):
        value = np.broadcast_to(np.asarray(value, dtype=np.float32), (2,))
        nx, ny = self.size
        wp.launch(set_value_to_float_array, dim=(nx + 1, ny), inputs=[self.u, float(value[0])], device=self.device)
        wp.launch(set_value_to_float_array, dim=(nx, ny + 1), inputs=[self.v, float(value[1])], device=self.device)

    def copy(self):
        grid = VectorGrid(self.xform, self.size, device=self.device)
        wp.copy(grid.u, self.u)
        wp.copy(grid.v, self.v)
        return grid

    def copy_from(self, other):
        if not self.is_matched(other):
            raise ValueError("Cannot copy between vector grids with mismatched transforms or sizes")
        wp.copy(self.u, other.u)
        wp.copy(self.v, other.v)

    def face_positions(self, axis):
        """World positions of the u (axis=0) or v (axis=1) faces."""
        nx, ny = self.size
        if axis == 0:
            ii, jj = np.meshgrid(np.arange(nx + 1), np.arange(ny), indexing="ij")
            return self.xform.to_world(np.stack([ii, jj + 0.5], axis=-1))
        ii, jj = np.meshgrid(np.arange(nx), np.arange(ny + 1), indexing="ij")
        return self.xform.to_world(np.stack([ii + 0.5, jj], axis=-1))

    def interp_points(self, points):
        points = _as_points(points)
        out = wp.zeros(points.shape[0], dtype=wp.vec2, device=self.device)
        if points.shape[0] > 0:
            wp.launch(
                kernel=sample_velocity_points,
                dim=points.shape[0],
                inputs=[
                    self.u,
                    self.v,
                    self.xform.to_struct(),
                    wp.array(points, dtype=wp.vec2, device=self.device),
                    out,
                ],
                device=self.device,
            )
        return out.numpy().reshape(-1, 2)

    def interp(self, position):
        return self.interp_points(position)[0]

    def cell_centered(self):
        """Face values averaged to cell centres, shape (nx, ny, 2)."""
        u, v = self.numpy()
        uc = 0.5 * (u[:-1, :] + u[1:, :])
        vc = 0.5 * (v[:, :-1] + v[:, 1:])
        return np.stack([uc, vc], axis=-1)

    def max_magnitude(self):
        return float(np.sqrt((self.cell_centered() ** 2).sum(axis=-1)).max())
