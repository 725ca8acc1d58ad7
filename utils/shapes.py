"""
Closed-boundary descriptions handed to LevelSet.initialize.
"""
import numpy as np


class Boundary:
    """
    A set of closed polygonal loops.

    Inside/outside is decided by even-odd crossing parity, so a loop nested
    inside another loop carves a hole out of it. Vertex orientation is kept
    only for callers that care about winding; the rasterizer ignores it.
    """

    def __init__(self, loops=None):
        self.loops = []
        for loop in loops or []:
            self.add_loop(loop)

    def add_loop(self, loop):
        loop = np.asarray(loop, dtype=np.float32)
        if loop.ndim != 2 or loop.shape[1] != 2 or loop.shape[0] < 3:
            raise ValueError(f"a loop needs shape (m >= 3, 2), got {loop.shape}")
        self.loops.append(loop)
        return self

    def insert(self, other):
        for loop in other.loops:
            self.add_loop(loop)
        return self

    def reversed(self):
        return Boundary([loop[::-1] for loop in self.loops])

    def segments(self):
        """Start and end points of every edge, each shaped (k, 2)."""
        if not self.loops:
            empty = np.zeros((0, 2), dtype=np.float32)
            return empty, empty.copy()
        starts = np.concatenate(self.loops, axis=0)
        ends = np.concatenate([np.roll(loop, -1, axis=0) for loop in self.loops], axis=0)
        return starts, ends

    def __len__(self):
        return len(self.loops)


def square_loop(center, scale=1.0):
    """Axis-aligned square (or rectangle) spanning center +/- scale, counter-clockwise."""
    center = np.asarray(center, dtype=np.float32)
    scale = np.broadcast_to(np.asarray(scale, dtype=np.float32), (2,))
    offsets = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]], dtype=np.float32)
    return center + offsets * scale


def circle_loop(center, radius, segments=64, amplitude=0.0, frequency=0):
    """
    Regular polygon approximating a circle, counter-clockwise.

    A non-zero `amplitude` perturbs the radius as r * (1 + amplitude * cos(frequency * theta)).
    """
    center = np.asarray(center, dtype=np.float32)
    theta = np.linspace(0.0, 2.0 * np.pi, segments, endpoint=False)
    r = radius * (1.0 + amplitude * np.cos(frequency * theta))
    return (center + np.stack([r * np.cos(theta), r * np.sin(theta)], axis=1)).astype(np.float32)


def loop_from_dict(shape):
    """Build a loop from a scene-file shape entry."""
    kind = shape.get("type", "box")
    if kind == "box":
        return square_loop(shape["center"], shape.get("scale", 1.0))
    elif kind == "circle":
        return circle_loop(
            shape["center"],
            shape["radius"],
            shape.get("segments", 64),
            shape.get("amplitude", 0.0),
            shape.get("frequency", 0),
        )
    elif kind == "polygon":
        return np.asarray(shape["vertices"], dtype=np.float32)
    else:
        raise ValueError(f"Unknown shape type: {kind}. Must be one of: 'box', 'circle', 'polygon'")


def boundary_from_dict(entry):
    """A scene boundary entry is {"loops": [shape, ...], "invert": bool}."""
    return Boundary([loop_from_dict(shape) for shape in entry["loops"]])
