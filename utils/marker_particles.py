"""
Lagrangian marker particles carried by the grid velocity.
"""
import numpy as np
import warp as wp

from utils.sample_jittered_grid import sample_jittered_grid
from kernels.advect import advect_particles
from kernels.p2g import p2g, normalize_splat
from kernels.g2p import g2p


class MarkerParticles:
    def __init__(
        self,
        radius,
        particles_per_cell=4,
        outside_band=2.0,
        track_velocity=True,
        device="cpu",
        seed=None,
    ):
        """
        Args:
            radius: particle radius in world units (dx / 2 in a typical setup)
            particles_per_cell: target seeding density
            outside_band: particles farther than outside_band * radius outside the
                surface are deleted on reseed
            track_velocity: store a velocity per particle (needed for FLIP transfers)
            device: Warp device
            seed: seed for the jitter random generator
        """
        if radius <= 0.0:
            raise ValueError(f"radius must be positive, got {radius}")
        if particles_per_cell < 1:
            raise ValueError(f"particles_per_cell must be at least 1, got {particles_per_cell}")
        self.radius = float(radius)
        self.particles_per_cell = int(particles_per_cell)
        self.outside_band = float(outside_band)
        self.track_velocity = bool(track_velocity)
        self.device = device
        self.rng = np.random.default_rng(seed)

        self.particle_x = wp.zeros(shape=0, dtype=wp.vec2, device=device)
        self.particle_v = wp.zeros(shape=0, dtype=wp.vec2, device=device)

    @property
    def n_particles(self):
        return self.particle_x.shape[0]

    def count(self):
        return self.n_particles

    def positions(self):
        return self.particle_x.numpy().reshape(-1, 2)

    def velocities(self):
        return self.particle_v.numpy().reshape(-1, 2)

    def load_from_array(self, x_array, v_array=None):
        """Replace all particles. Velocities default to zero."""
        x_array = np.asarray(x_array, dtype=np.float32).reshape(-1, 2)
        if v_array is None or not self.track_velocity:
            v_array = np.zeros_like(x_array)
        else:
            v_array = np.asarray(v_array, dtype=np.float32).reshape(-1, 2)
            if v_array.shape[0] != x_array.shape[0]:
                raise ValueError(
                    f"x_array and v_array must have the same number of particles: {x_array.shape[0]} vs {v_array.shape[0]}"
                )
        self.particle_x = wp.array(x_array, dtype=wp.vec2, device=self.device)
        self.particle_v = wp.array(v_array, dtype=wp.vec2, device=self.device)

    def _seed_cells(self, cells, per_cell, level_set):
        points = sample_jittered_grid(cells, per_cell, level_set.xform, rng=self.rng)
        return self._contain(points, level_set.xform, level_set.size)

    def _contain(self, points, xform, size):
        margin = 1.0e-3 * xform.dx
        lower = xform.to_world((0.0, 0.0)) + margin
        upper = xform.to_world(size) - margin
        return np.clip(points, lower, upper).astype(np.float32)

    def _liquid_cells(self, level_set, collision):
        inside = level_set.numpy() <= 0.0
        if collision is not None:
            inside &= collision.numpy() > 0.0
        return inside

    def _keep_inside(self, points, level_set, collision):
        if points.shape[0] == 0:
            return points
        keep = level_set.interp_points(points) <= 0.0
        if collision is not None:
            keep &= collision.interp_points(points) > 0.0
        return points[keep]

    def init(self, level_set, collision=None, velocity=None):
        """Seed particles_per_cell jittered particles in every liquid cell."""
        cells = np.argwhere(self._liquid_cells(level_set, collision))
        points = self._seed_cells(cells, self.particles_per_cell, level_set)
        points = self._keep_inside(points, level_set, collision)
        v_array = velocity.interp_points(points) if velocity is not None and points.shape[0] > 0 else None
        self.load_from_array(points, v_array)
        print("Marker particles seeded: ", self.n_particles)

    def add_particles(self, positions, velocities=None):
        positions = np.asarray(positions, dtype=np.float32)
        if positions.ndim != 2 or positions.shape[1] != 2:
            raise ValueError(f"positions must be shape (m, 2), got {positions.shape}")
        if velocities is None:
            velocities = np.zeros_like(positions)
        velocities = np.asarray(velocities, dtype=np.float32).reshape(-1, 2)
        if velocities.shape[0] != positions.shape[0]:
            raise ValueError(f"velocities must have shape {positions.shape}, got {velocities.shape}")
        self.load_from_array(
            np.concatenate([self.positions(), positions], axis=0),
            np.concatenate([self.velocities(), velocities], axis=0),
        )

    def advect(self, velocity, dt, order=1, collision=None):
        advect_particles(self.particle_x, velocity, dt, order, collision)

    def grid_to_particles(self, velocity, velocity_old, alpha):
        """PIC/FLIP update of particle velocities from the grid."""
        if not self.track_velocity or self.n_particles == 0:
            return
        if not velocity.is_matched(velocity_old):
            raise ValueError("Current and previous grid velocities must be matched")
        wp.launch(
            kernel=g2p,
            dim=self.n_particles,
            inputs=[
                self.particle_x,
                self.particle_v,
                velocity.u,
                velocity.v,
                velocity_old.u,
                velocity_old.v,
                velocity.xform.to_struct(),
                float(alpha),
            ],
            device=self.device,
        )

    def particles_to_grid(self, velocity):
        """
        Splat particle velocities onto the faces of `velocity`.

        Faces that received weight are overwritten; the others keep their value.

        Returns:
            (u_valid, v_valid): wp.array(dtype=int) masks of the overwritten faces
        """
        nx, ny = velocity.size
        u_valid = wp.zeros(shape=(nx + 1, ny), dtype=int, device=self.device)
        v_valid = wp.zeros(shape=(nx, ny + 1), dtype=int, device=self.device)
        if not self.track_velocity or self.n_particles == 0:
            return u_valid, v_valid

        u_sum = wp.zeros(shape=(nx + 1, ny), dtype=float, device=self.device)
        u_weight = wp.zeros(shape=(nx + 1, ny), dtype=float, device=self.device)
        v_sum = wp.zeros(shape=(nx, ny + 1), dtype=float, device=self.device)
        v_weight = wp.zeros(shape=(nx, ny + 1), dtype=float, device=self.device)
        wp.launch(
            kernel=p2g,
            dim=self.n_particles,
            inputs=[self.particle_x, self.particle_v, velocity.xform.to_struct(), u_sum, u_weight, v_sum, v_weight],
            device=self.device,
        )
        wp.launch(
            kernel=normalize_splat,
            dim=(nx + 1, ny),
            inputs=[u_sum, u_weight, velocity.u, u_valid],
            device=self.device,
        )
        wp.launch(
            kernel=normalize_splat,
            dim=(nx, ny + 1),
            inputs=[v_sum, v_weight, velocity.v, v_valid],
            device=self.device,
        )
        return u_valid, v_valid

    def reseed(self, level_set, velocity=None, collision=None):
        """
        Keep the particle density near particles_per_cell inside the liquid.

        Deletes particles more than outside_band radii outside the surface and the
        surplus above 2 * particles_per_cell in any cell, then tops up liquid cells
        holding fewer than particles_per_cell. Cells never receive more than their
        deficit. New particles take the grid velocity when `velocity` is given.
        """
        xform = level_set.xform
        nx, ny = level_set.size
        x = self.positions()
        vel = self.velocities()

        if x.shape[0] > 0:
            keep = level_set.interp_points(x) <= self.outside_band * self.radius
            x, vel = x[keep], vel[keep]

        index, _ = xform.to_index(x)
        index = np.clip(index, 0, [nx - 1, ny - 1])
        flat = index[:, 0] * ny + index[:, 1]

        # drop the surplus above twice the target density, in random order
        max_per_cell = 2 * self.particles_per_cell
        order = self.rng.permutation(x.shape[0])
        flat_shuffled = flat[order]
        rank = np.zeros(x.shape[0], dtype=np.int64)
        if x.shape[0] > 0:
            sort = np.argsort(flat_shuffled, kind="stable")
            sorted_cells = flat_shuffled[sort]
            first = np.searchsorted(sorted_cells, sorted_cells, side="left")
            rank[sort] = np.arange(x.shape[0]) - first
        keep = np.zeros(x.shape[0], dtype=bool)
        keep[order] = rank < max_per_cell
        x, vel, flat = x[keep], vel[keep], flat[keep]
        removed = self.n_particles - x.shape[0]

        counts = np.bincount(flat, minlength=nx * ny).reshape(nx, ny)
        deficit = np.where(self._liquid_cells(level_set, collision), self.particles_per_cell - counts, 0)

        new_points = []
        for d in range(1, self.particles_per_cell + 1):
            cells = np.argwhere(deficit == d)
            if cells.shape[0] > 0:
                new_points.append(self._seed_cells(cells, d, level_set))
        if new_points:
            new_points = self._keep_inside(np.concatenate(new_points, axis=0), level_set, collision)
        else:
            new_points = np.zeros((0, 2), dtype=np.float32)

        if velocity is not None and new_points.shape[0] > 0:
            new_vel = velocity.interp_points(new_points)
        else:
            new_vel = np.zeros_like(new_points)

        self.load_from_array(
            np.concatenate([x, new_points], axis=0),
            np.concatenate([vel, new_vel], axis=0),
        )
        return new_points.shape[0], removed
