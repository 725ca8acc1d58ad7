"""
Signed-distance level sets on a cell-centred grid.

Negative values are inside the tracked region. Distances are exact after
initialize() and, after reinitialize(), exact within the narrow band and
clamped to +/- narrow_band * dx beyond it (the sign stays correct everywhere).
"""
import numpy as np
import warp as wp

from utils.structs import *
from utils.given_kernels import cell_center, sample_scalar, min_float_arrays, max_float_arrays
from utils.grids import ScalarGrid

FAR_DISTANCE = wp.constant(1.0e10)


@wp.func
def point_segment_distance(p: wp.vec2, a: wp.vec2, b: wp.vec2):
    ab = b - a
    denom = wp.dot(ab, ab)
    t = float(0.0)
    if denom > 0.0:
        t = wp.clamp(wp.dot(p - a, ab) / denom, 0.0, 1.0)
    return wp.length(p - (a + t * ab))


@wp.kernel
def init_from_segments(
    phi: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    seg_start: wp.array(dtype=wp.vec2),
    seg_end: wp.array(dtype=wp.vec2),
    n_segments: int,
    invert: int,
):
    """
    Exact signed distance to a set of closed loops.

    Distance is the minimum over all segments; the sign comes from the parity
    of crossings of a ray cast in +x, so nested loops carve holes.
    """
    i, j = wp.tid()
    p = cell_center(xform, i, j)

    min_dist = float(FAR_DISTANCE)
    crossings = int(0)
    for s in range(n_segments):
        a = seg_start[s]
        b = seg_end[s]
        min_dist = wp.min(min_dist, point_segment_distance(p, a, b))
        if (a[1] > p[1] and b[1] <= p[1]) or (a[1] <= p[1] and b[1] > p[1]):
            x_cross = a[0] + (p[1] - a[1]) * (b[0] - a[0]) / (b[1] - a[1])
            if p[0] < x_cross:
                crossings = crossings + 1

    value = min_dist
    if crossings % 2 == 1:
        value = -min_dist
    if invert != 0:
        value = -value
    phi[i, j] = value


@wp.kernel
def redistance_from_segments(
    phi_old: wp.array(dtype=float, ndim=2),
    phi: wp.array(dtype=float, ndim=2),
    xform: TransformStruct,
    seg_start: wp.array(dtype=wp.vec2),
    seg_end: wp.array(dtype=wp.vec2),
    n_segments: int,
    band_distance: float,
):
    i, j = wp.tid()
    p = cell_center(xform, i, j)

    dist = float(band_distance)
    if wp.abs(phi_old[i, j]) < band_distance + 2.0 * xform.dx:
        for s in range(n_segments):
            dist = wp.min(dist, point_segment_distance(p, seg_start[s], seg_end[s]))

    if phi_old[i, j] <= 0.0:
        phi[i, j] = -dist
    else:
        phi[i, j] = dist


@wp.kernel
def count_inside_samples(
    phi: wp.array(dtype=float, ndim=2),
    exclude_phi: wp.array(dtype=float, ndim=2),
    use_exclude: int,
    xform: TransformStruct,
    samples: int,
    counts: wp.array(dtype=int, ndim=2),
):
    i, j = wp.tid()
    inv = 1.0 / float(samples)
    count = int(0)
    for a in range(samples):
        for b in range(samples):
            offset = wp.vec2(float(i) + (float(a) + 0.5) * inv, float(j) + (float(b) + 0.5) * inv)
            pos = xform.offset + offset * xform.dx
            if sample_scalar(phi, xform, pos) <= 0.0:
                if use_exclude == 0 or sample_scalar(exclude_phi, xform, pos) > 0.0:
                    count = count + 1
    counts[i, j] = count


@wp.kernel
def negate_float_array(values: wp.array(dtype=float, ndim=2)):
    i, j = wp.tid()
    values[i, j] = -values[i, j]


def zero_crossing_segments(phi, xform):
    """
    Marching squares over the dual grid of cell centres.

    Args:
        phi: np.ndarray (nx, ny) of signed distances
        xform: Transform of the level set

    Returns:
        (starts, ends): world-space segment endpoints, each shaped (k, 2)
    """
    phi = np.asarray(phi, dtype=np.float64)
    inside = phi <= 0.0
    c00, c10, c01, c11 = phi[:-1, :-1], phi[1:, :-1], phi[:-1, 1:], phi[1:, 1:]
    s00, s10, s01, s11 = inside[:-1, :-1], inside[1:, :-1], inside[:-1, 1:], inside[1:, 1:]

    ii, jj = np.meshgrid(
        np.arange(phi.shape[0] - 1, dtype=np.float64),
        np.arange(phi.shape[1] - 1, dtype=np.float64),
        indexing="ij",
    )
    base = np.stack([ii, jj], axis=-1)

    def crossing(pa, pb, corner_a, corner_b):
        denom = pa - pb
        safe = np.where(np.abs(denom) > 1e-30, denom, 1.0)
        t = np.clip(pa / safe, 0.0, 1.0)[..., None]
        return base + corner_a + t * (corner_b - corner_a)

    corners = {
        "00": np.array([0.0, 0.0]),
        "10": np.array([1.0, 0.0]),
        "01": np.array([0.0, 1.0]),
        "11": np.array([1.0, 1.0]),
    }
    # edges: bottom, right, top, left
    mask = np.stack([s00 != s10, s10 != s11, s01 != s11, s00 != s01], axis=-1)
    points = np.stack(
        [
            crossing(c00, c10, corners["00"], corners["10"]),
            crossing(c10, c11, corners["10"], corners["11"]),
            crossing(c01, c11, corners["01"], corners["11"]),
            crossing(c00, c01, corners["00"], corners["01"]),
        ],
        axis=-2,
    )
    count = mask.sum(axis=-1)

    starts, ends = [], []

    two = count == 2
    if np.any(two):
        pts = points[two]
        edge_ids = np.nonzero(mask[two])[1].reshape(-1, 2)
        rows = np.arange(pts.shape[0])
        starts.append(pts[rows, edge_ids[:, 0]])
        ends.append(pts[rows, edge_ids[:, 1]])

    four = count == 4
    if np.any(four):
        pts = points[four]
        center_inside = (0.25 * (c00 + c10 + c01 + c11))[four] <= 0.0
        # saddle: cut off the two corners whose sign differs from the centre
        joined = center_inside == s00[four]
        starts.append(pts[:, 0])
        ends.append(np.where(joined[:, None], pts[:, 1], pts[:, 3]))
        starts.append(np.where(joined[:, None], pts[:, 2], pts[:, 1]))
        ends.append(np.where(joined[:, None], pts[:, 3], pts[:, 2]))

    if not starts:
        empty = np.zeros((0, 2), dtype=np.float32)
        return empty, empty.copy()

    # dual-grid node (i, j) is the cell centre (i + 0.5, j + 0.5)
    starts = xform.to_world(np.concatenate(starts, axis=0) + 0.5)
    ends = xform.to_world(np.concatenate(ends, axis=0) + 0.5)
    return starts.astype(np.float32), ends.astype(np.float32)


class LevelSet(ScalarGrid):
    def __init__(self, xform, size, narrow_band=5, device="cpu"):
        super().__init__(xform, size, value=float(narrow_band) * xform.dx, device=device)
        if narrow_band < 1:
            raise ValueError(f"narrow_band must be at least one cell, got {narrow_band}")
        self.narrow_band = int(narrow_band)

    @property
    def band_distance(self):
        return float(self.narrow_band) * self.dx

    def copy(self):
        level_set = LevelSet(self.xform, self.size, self.narrow_band, device=self.device)
        wp.copy(level_set.data, self.data)
        return level_set

    def initialize(self, boundary, invert=False):
        """Rasterize a closed Boundary into exact signed distances."""
        starts, ends = boundary.segments()
        n_segments = starts.shape[0]
        if n_segments == 0:
            raise ValueError("Cannot initialize a level set from an empty boundary")
        wp.launch(
            kernel=init_from_segments,
            dim=self.size,
            inputs=[
                self.data,
                self.xform.to_struct(),
                wp.array(starts, dtype=wp.vec2, device=self.device),
                wp.array(ends, dtype=wp.vec2, device=self.device),
                n_segments,
                int(bool(invert)),
            ],
            device=self.device,
        )

    def is_inside(self, position):
        return self.interp(position) <= 0.0

    def union_with(self, other):
        if not self.is_matched(other):
            raise ValueError("Level set union requires matched transforms and sizes")
        wp.launch(
            kernel=min_float_arrays,
            dim=self.size,
            inputs=[self.data, other.data],
            device=self.device,
        )

    def intersect_with(self, other):
        if not self.is_matched(other):
            raise ValueError("Level set intersection requires matched transforms and sizes")
        wp.launch(
            kernel=max_float_arrays,
            dim=self.size,
            inputs=[self.data, other.data],
            device=self.device,
        )

    def negate(self):
        wp.launch(kernel=negate_float_array, dim=self.size, inputs=[self.data], device=self.device)

    def negated(self):
        level_set = self.copy()
        level_set.negate()
        return level_set

    def zero_crossings(self):
        return zero_crossing_segments(self.numpy(), self.xform)

    def perimeter(self):
        starts, ends = self.zero_crossings()
        return float(np.linalg.norm(ends - starts, axis=1).sum())

    def reinitialize(self):
        """Restore the signed-distance property within the narrow band."""
        starts, ends = self.zero_crossings()
        phi_old = wp.clone(self.data)
        wp.launch(
            kernel=redistance_from_segments,
            dim=self.size,
            inputs=[
                phi_old,
                self.data,
                self.xform.to_struct(),
                wp.array(starts, dtype=wp.vec2, device=self.device),
                wp.array(ends, dtype=wp.vec2, device=self.device),
                starts.shape[0],
                self.band_distance,
            ],
            device=self.device,
        )

    def estimate_volume(self, samples=3, exclude=None):
        """
        Area inside the zero crossing, super-sampling every cell samples x samples times.

        Args:
            samples: super-samples per cell along each axis
            exclude: optional matched LevelSet whose interior is not counted
        """
        if samples < 1:
            raise ValueError(f"samples must be positive, got {samples}")
        if exclude is not None and not self.is_matched(exclude):
            raise ValueError("Volume exclusion requires a matched level set")
        counts = wp.zeros(shape=self.size, dtype=int, device=self.device)
        wp.launch(
            kernel=count_inside_samples,
            dim=self.size,
            inputs=[
                self.data,
                exclude.data if exclude is not None else self.data,
                0 if exclude is None else 1,
                self.xform.to_struct(),
                int(samples),
                counts,
            ],
            device=self.device,
        )
        total = int(counts.numpy().astype(np.int64).sum())
        return total * (self.dx / samples) ** 2
