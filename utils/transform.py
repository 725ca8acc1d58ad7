"""
Mapping between integer grid indices and world-space positions.
"""
import numpy as np
import warp as wp

from utils.structs import TransformStruct


class Transform:
    """Grid spacing and world offset shared by every field of one simulation."""

    def __init__(self, dx, offset=(0.0, 0.0)):
        if dx <= 0.0:
            raise ValueError(f"dx must be positive, got {dx}")
        offset = np.asarray(offset, dtype=np.float32)
        if offset.shape != (2,):
            raise ValueError(f"offset must be a 2-vector, got shape {offset.shape}")
        self._dx = np.float32(dx)
        self._offset = offset.copy()

    @property
    def dx(self):
        return float(self._dx)

    @property
    def offset(self):
        return self._offset.copy()

    def to_world(self, index):
        """Index (possibly fractional) to world position. Accepts (2,) or (N, 2)."""
        index = np.asarray(index, dtype=np.float32)
        return self._offset + self._dx * index

    def to_index(self, position):
        """
        World position to index space.

        Returns:
            (index, fraction): the integer index of the containing cell and the
            fractional offset inside it, both with the shape of `position`.
        """
        coord = (np.asarray(position, dtype=np.float32) - self._offset) / self._dx
        index = np.floor(coord).astype(np.int32)
        return index, coord - index

    def is_matched(self, other):
        return (
            isinstance(other, Transform)
            and self._dx == other._dx
            and np.array_equal(self._offset, other._offset)
        )

    def to_struct(self):
        xform = TransformStruct()
        xform.dx = float(self._dx)
        xform.offset = wp.vec2(float(self._offset[0]), float(self._offset[1]))
        return xform

    def __eq__(self, other):
        return self.is_matched(other)

    def __hash__(self):
        return hash((float(self._dx), float(self._offset[0]), float(self._offset[1])))

    def __repr__(self):
        return f"Transform(dx={self.dx}, offset=({self._offset[0]}, {self._offset[1]}))"
