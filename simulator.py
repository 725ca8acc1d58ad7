import sys
import os
from dataclasses import dataclass, replace
import numpy as np
import warp as wp
import torch

sys.path.append(os.path.dirname(os.path.realpath(__file__)))
from utils import *
from utils.given_kernels import set_value_to_float_array
from utils.marker_particles import MarkerParticles

from kernels import *


@dataclass(frozen=True)
class FeatureFlags:
    """Which optional stages of run_simulation are active. Replaced, never mutated."""
    moving_solids: bool = False
    viscosity: bool = False
    bubbles: bool = False
    volume_correction: bool = False
    air_tracking: bool = False


class FlipSimulator_WARP:
    def __init__(
        self,
        xform,
        size,
        narrow_band=5,
        use_particles=True,
        particles_per_cell=4,
        device="cpu",
        seed=None,
    ):
        """
        Two-dimensional FLIP / level-set liquid simulator on a staggered grid.

        Args:
            xform: Transform shared by every field
            size: (nx, ny) number of cells
            narrow_band: level set narrow band half-width, in cells
            use_particles: carry velocity on FLIP marker particles
            particles_per_cell: marker particle seeding density
            device: Warp device
            seed: seed for particle jitter
        """
        self.xform = xform
        self.device = device
        self.narrow_band = int(narrow_band)
        self.initialize(size, use_particles, particles_per_cell, seed)

        self.integrator_order = Integrator.RK3  # Order of every semi-Lagrangian trace in run_simulation
        self.use_gauss_seidel = True  # Flag to switch between Jacobi and Gauss-Seidel solvers
        self.num_jacobi_iterations = 1000  # Number of Jacobi pressure solver iterations
        self.num_gauss_seidel_iterations = 200  # Number of Gauss-Seidel pressure solver iterations
        self.gauss_seidel_omega = 1.7  # SOR relaxation parameter for Gauss-Seidel
        self.jacobi_alpha = 1.0  # Relaxation parameter for Jacobi
        self.pic_flip_alpha = 0.1  # PIC-FLIP blending parameter for g2p
        self.num_viscosity_iterations = 100  # Number of Gauss-Seidel viscosity iterations
        self.reinit_interval = 1  # Level sets are redistanced every reinit_interval steps

    def initialize(self, size, use_particles=True, particles_per_cell=4, seed=None):
        xform, device = self.xform, self.device

        self.velocity = VectorGrid(xform, size, device=device)
        self.size = self.velocity.size
        self.collision_velocity = VectorGrid(xform, self.size, device=device)
        self.static_solid_velocity = VectorGrid(xform, self.size, device=device)
        self.velocity_at_transfer = VectorGrid(xform, self.size, device=device)

        self.surface = LevelSet(xform, self.size, self.narrow_band, device=device)
        self.collision = LevelSet(xform, self.size, self.narrow_band, device=device)
        self.air_surface = None
        self.viscosity = ScalarGrid(xform, self.size, device=device)

        self.particles = None
        self.air_particles = None
        if use_particles:
            self.particles = MarkerParticles(
                xform.dx / 2.0,
                particles_per_cell,
                outside_band=2.0,
                track_velocity=True,
                device=device,
                seed=seed,
            )
            # markers for the air phase; positions only
            self.air_particles = MarkerParticles(
                xform.dx / 2.0,
                particles_per_cell,
                outside_band=2.0,
                track_velocity=False,
                device=device,
                seed=seed,
            )

        self.flags = FeatureFlags()
        self.surface_tension_scale = 0.0
        self.target_volume = 0.0
        self.accumulated_error = 0.0
        self.target_divergence = 0.0
        self.has_surface = False

        nx, ny = self.size
        self.pressure = wp.zeros(shape=self.size, dtype=float, device=device)
        self.pressure_old = wp.zeros(shape=self.size, dtype=float, device=device)
        self.rhs = wp.zeros(shape=self.size, dtype=float, device=device)
        self.curvature = wp.zeros(shape=self.size, dtype=float, device=device)
        self.u_weight = wp.zeros(shape=(nx + 1, ny), dtype=float, device=device)
        self.v_weight = wp.zeros(shape=(nx, ny + 1), dtype=float, device=device)
        self.u_valid = wp.zeros(shape=(nx + 1, ny), dtype=int, device=device)
        self.v_valid = wp.zeros(shape=(nx, ny + 1), dtype=int, device=device)
        self.bubble_id = wp.full(shape=self.size, value=-1, dtype=int, device=device)
        self.bubble_pressure = wp.zeros(shape=1, dtype=float, device=device)
        self.bubble_numerator = wp.zeros(shape=1, dtype=float, device=device)
        self.bubble_denominator = wp.zeros(shape=1, dtype=float, device=device)
        self.n_bubbles = 0

        self.step_count = 0
        self.time = 0.0
        self.update_face_weights()

    def _check_matched(self, grid, name):
        if not self.velocity.is_matched(grid):
            raise ValueError(f"{name} must match the simulation transform and size {self.size}")

    def _require_surface(self, operation):
        if not self.has_surface:
            raise RuntimeError(f"{operation} requires a liquid surface; call set_surface_volume first")

    # Setup

    def set_collision_volume(self, collision):
        self._check_matched(collision, "collision level set")
        wp.copy(self.collision.data, collision.data)
        self.update_face_weights()

    def set_collision_velocity(self, collision_velocity):
        self._check_matched(collision_velocity, "collision velocity")
        self.collision_velocity.copy_from(collision_velocity)
        self.flags = replace(self.flags, moving_solids=True)

    def disable_moving_solids(self):
        self.flags = replace(self.flags, moving_solids=False)

    def set_surface_volume(self, surface):
        self._check_matched(surface, "surface level set")
        wp.copy(self.surface.data, surface.data)
        self.has_surface = True
        if self.particles is not None:
            self.particles.init(self.surface, self.collision, self.velocity)
            self.velocity_at_transfer.copy_from(self.velocity)
        if self.flags.air_tracking:
            self._rebuild_air_surface()
        if self.flags.volume_correction:
            self._reset_volume_target()

    def add_surface_volume(self, surface):
        """Union a new liquid region into the current surface."""
        self._check_matched(surface, "surface level set")
        self.surface.union_with(surface)
        self.has_surface = True
        if self.particles is not None:
            added, removed = self.particles.reseed(self.surface, self.velocity, self.collision)
            print("Surface volume added. Particles seeded: ", added)
        if self.flags.air_tracking:
            self._rebuild_air_surface()
        if self.flags.volume_correction:
            self._reset_volume_target()

    def set_surface_velocity(self, velocity):
        self._check_matched(velocity, "surface velocity")
        self.velocity.copy_from(velocity)
        self.velocity_at_transfer.copy_from(velocity)
        if self.particles is not None and self.particles.n_particles > 0:
            # a fresh velocity field replaces the particle velocities outright (pure PIC)
            self.particles.grid_to_particles(self.velocity, self.velocity_at_transfer, 1.0)

    def set_surface_tension(self, scale):
        if scale < 0.0:
            raise ValueError(f"surface tension scale must be non-negative, got {scale}")
        self.surface_tension_scale = float(scale)

    def set_enforce_bubbles(self):
        self.flags = replace(self.flags, bubbles=True)

    def set_volume_correction(self):
        self._require_surface("set_volume_correction")
        self.flags = replace(self.flags, volume_correction=True)
        self._reset_volume_target()

    def _reset_volume_target(self):
        self.target_volume = self.compute_volume(True)
        self.accumulated_error = 0.0
        self.target_divergence = 0.0

    def set_viscosity(self, coefficient=1.0):
        """Enable the viscosity solve with a uniform coefficient or a matched ScalarGrid."""
        if isinstance(coefficient, ScalarGrid):
            self._check_matched(coefficient, "viscosity grid")
            if coefficient.numpy().min() < 0.0:
                raise ValueError("viscosity coefficients must be non-negative")
            wp.copy(self.viscosity.data, coefficient.data)
        else:
            if coefficient < 0.0:
                raise ValueError(f"viscosity coefficient must be non-negative, got {coefficient}")
            self.viscosity.fill(coefficient)
        self.flags = replace(self.flags, viscosity=True)

    def set_air_volume(self):
        self._require_surface("set_air_volume")
        self._rebuild_air_surface()
        self.flags = replace(self.flags, air_tracking=True)

    def _rebuild_air_surface(self):
        # air = outside the liquid and outside the solids
        self.air_surface = self.surface.negated()
        self.air_surface.intersect_with(self.collision.negated())
        if self.air_particles is not None:
            self.air_particles.init(self.air_surface, self.collision)

    # Forces and advection

    def add_force(self, force, dt):
        """
        Add dt * force to the grid velocity.

        Args:
            force: a constant 2-vector, a matched VectorGrid of accelerations, or a callable
                mapping an (N, 2) array of world positions to an (N, 2) array of accelerations
            dt: time step size
        """
        nx, ny = self.size
        if isinstance(force, VectorGrid):
            self._check_matched(force, "force grid")
            wp.launch(kernel=apply_field_force, dim=(nx + 1, ny), inputs=[self.velocity.u, force.u, float(dt)], device=self.device)
            wp.launch(kernel=apply_field_force, dim=(nx, ny + 1), inputs=[self.velocity.v, force.v, float(dt)], device=self.device)
        elif callable(force):
            u_points = self.velocity.face_positions(0).reshape(-1, 2)
            v_points = self.velocity.face_positions(1).reshape(-1, 2)
            u_force = np.asarray(force(u_points), dtype=np.float32).reshape(-1, 2)
            v_force = np.asarray(force(v_points), dtype=np.float32).reshape(-1, 2)
            if u_force.shape[0] != u_points.shape[0] or v_force.shape[0] != v_points.shape[0]:
                raise ValueError("force callable must return one 2-vector per input point")
            field = VectorGrid(self.xform, self.size, device=self.device)
            field.assign(u_force[:, 0].reshape(nx + 1, ny), v_force[:, 1].reshape(nx, ny + 1))
            self.add_force(field, dt)
        else:
            force = np.asarray(force, dtype=np.float32)
            if force.shape != (2,):
                raise ValueError(f"force must be a 2-vector, a VectorGrid or a callable, got shape {force.shape}")
            wp.launch(kernel=apply_constant_force, dim=(nx + 1, ny), inputs=[self.velocity.u, float(force[0]), float(dt)], device=self.device)
            wp.launch(kernel=apply_constant_force, dim=(nx, ny + 1), inputs=[self.velocity.v, float(force[1]), float(dt)], device=self.device)

    def advect_surface(self, dt, order=Integrator.RK3):
        advect_level_set(self.surface, self.velocity, dt, order)
        if self.flags.air_tracking:
            advect_level_set(self.air_surface, self.velocity, dt, order)
            # keep the air out of the solids
            self.air_surface.intersect_with(self.collision.negated())
            if self.air_particles is not None:
                self.air_particles.advect(self.velocity, dt, order, self.collision)
                self.air_particles.reseed(self.air_surface, None, self.collision)

    def advect_viscosity(self, dt, order=Integrator.RK3):
        advect_scalar(self.viscosity, self.velocity, dt, order)
        extrapolate_scalar(self.viscosity, self.surface, self.narrow_band)

    def advect_velocity(self, dt, order=Integrator.RK3):
        """
        Self-advect the grid velocity. With FLIP particles, the particles pick up the
        grid change since the last transfer, move, are reseeded against the surface and
        splat their velocity back onto the faces they cover.
        """
        if self.particles is None:
            advect_velocity(self.velocity, dt, order)
            return

        self.particles.grid_to_particles(self.velocity, self.velocity_at_transfer, self.pic_flip_alpha)
        velocity_start = self.velocity.copy()
        advect_velocity(self.velocity, dt, order)
        self.particles.advect(velocity_start, dt, order, self.collision)
        self.particles.reseed(self.surface, self.velocity, self.collision)
        self.particles.particles_to_grid(self.velocity)
        self.velocity_at_transfer.copy_from(self.velocity)

    # Per-step stages

    def update_face_weights(self):
        nx, ny = self.size
        xform = self.xform.to_struct()
        wp.launch(kernel=compute_u_face_weights, dim=(nx + 1, ny), inputs=[self.collision.data, xform, self.u_weight], device=self.device)
        wp.launch(kernel=compute_v_face_weights, dim=(nx, ny + 1), inputs=[self.collision.data, xform, self.v_weight], device=self.device)

    def reinitialize_level_sets(self):
        self.surface.reinitialize()
        if self.flags.air_tracking:
            self.air_surface.reinitialize()

    def compute_surface_curvature(self):
        if self.surface_tension_scale > 0.0:
            wp.launch(
                kernel=compute_curvature,
                dim=self.size,
                inputs=[self.surface.data, self.xform.dx, self.curvature],
                device=self.device,
            )
        else:
            wp.launch(kernel=set_value_to_float_array, dim=self.size, inputs=[self.curvature, 0.0], device=self.device)

    def update_bubbles(self):
        if self.flags.bubbles:
            bubble_id, self.n_bubbles = label_bubbles(self.surface.numpy(), self.u_weight.numpy(), self.v_weight.numpy())
        else:
            bubble_id, self.n_bubbles = np.full(self.size, -1, dtype=np.int32), 0
        self.bubble_id = wp.array(bubble_id, dtype=int, device=self.device)
        self.bubble_pressure = wp.zeros(shape=max(self.n_bubbles, 1), dtype=float, device=self.device)
        self.bubble_numerator = wp.zeros(shape=max(self.n_bubbles, 1), dtype=float, device=self.device)
        self.bubble_denominator = wp.zeros(shape=max(self.n_bubbles, 1), dtype=float, device=self.device)

    def _solid_velocity(self):
        if self.flags.moving_solids:
            return self.collision_velocity
        return self.static_solid_velocity

    def _solve_bubble_pressure(self, dt):
        if self.n_bubbles == 0:
            return
        wp.launch(
            kernel=zero_bubble_terms,
            dim=self.n_bubbles,
            inputs=[self.bubble_numerator, self.bubble_denominator],
            device=self.device,
        )
        wp.launch(
            kernel=accumulate_bubble_terms,
            dim=self.size,
            inputs=[
                self.velocity.u,
                self.velocity.v,
                self.u_weight,
                self.v_weight,
                self.surface.data,
                self.pressure,
                self.curvature,
                self.bubble_id,
                self.bubble_pressure,
                self.surface_tension_scale,
                self.xform.dx / dt,
                self.bubble_numerator,
                self.bubble_denominator,
            ],
            device=self.device,
        )
        wp.launch(
            kernel=update_bubble_pressure,
            dim=self.n_bubbles,
            inputs=[self.bubble_numerator, self.bubble_denominator, self.bubble_pressure],
            device=self.device,
        )

    def project(self, dt):
        """Pressure projection with cut-cell solids, ghost-fluid free surface and bubbles."""
        grid_size = self.size
        nx, ny = grid_size
        solid = self._solid_velocity()
        self.update_bubbles()

        # Step 1: Compute the right-hand side from the divergence of the intermediate velocity
        wp.launch(
            kernel=compute_rhs_divergence,
            dim=grid_size,
            inputs=[
                self.velocity.u,
                self.velocity.v,
                solid.u,
                solid.v,
                self.u_weight,
                self.v_weight,
                self.surface.data,
                self.xform.dx,
                float(dt),
                float(self.target_divergence),
                self.rhs,
            ],
            device=self.device,
        )

        pressure_inputs = [
            self.surface.data,
            self.u_weight,
            self.v_weight,
            self.curvature,
            self.bubble_id,
            self.bubble_pressure,
            self.surface_tension_scale,
        ]

        # Step 2: Solve for pressure, warm-started from the previous step
        if self.use_gauss_seidel:
            for iter in range(self.num_gauss_seidel_iterations):
                # Update red cells (color = 0)
                wp.launch(
                    kernel=gauss_seidel_sor_pressure_iteration,
                    dim=grid_size,
                    inputs=[self.pressure, self.rhs] + pressure_inputs + [self.gauss_seidel_omega, 0],
                    device=self.device,
                )
                # Update black cells (color = 1)
                wp.launch(
                    kernel=gauss_seidel_sor_pressure_iteration,
                    dim=grid_size,
                    inputs=[self.pressure, self.rhs] + pressure_inputs + [self.gauss_seidel_omega, 1],
                    device=self.device,
                )
                self._solve_bubble_pressure(dt)
        else:
            beta = 1.0 - self.jacobi_alpha  # Damping parameter (0 = standard Jacobi)
            for iter in range(self.num_jacobi_iterations):
                # Copy current pressure to pressure_old for ping-pong buffer
                wp.launch(
                    kernel=copy_pressure_to_old,
                    dim=grid_size,
                    inputs=[self.pressure, self.pressure_old],
                    device=self.device,
                )
                wp.launch(
                    kernel=jacobi_pressure_iteration,
                    dim=grid_size,
                    inputs=[self.pressure, self.pressure_old, self.rhs] + pressure_inputs + [self.jacobi_alpha, beta],
                    device=self.device,
                )
                self._solve_bubble_pressure(dt)

        # Step 3: Project velocity using the pressure gradient
        scale = float(dt) / self.xform.dx
        wp.launch(
            kernel=pressure_projection_u,
            dim=(nx + 1, ny),
            inputs=[self.velocity.u, solid.u, self.u_weight, self.surface.data, self.pressure, self.curvature,
                    self.bubble_id, self.bubble_pressure, self.surface_tension_scale, scale, self.u_valid],
            device=self.device,
        )
        wp.launch(
            kernel=pressure_projection_v,
            dim=(nx, ny + 1),
            inputs=[self.velocity.v, solid.v, self.v_weight, self.surface.data, self.pressure, self.curvature,
                    self.bubble_id, self.bubble_pressure, self.surface_tension_scale, scale, self.v_valid],
            device=self.device,
        )

    def solve_viscosity(self, dt):
        nx, ny = self.size
        solid = self._solid_velocity()
        xform = self.xform.to_struct()
        u_class = wp.zeros(shape=(nx + 1, ny), dtype=int, device=self.device)
        v_class = wp.zeros(shape=(nx, ny + 1), dtype=int, device=self.device)
        wp.launch(kernel=classify_u_faces, dim=(nx + 1, ny), inputs=[self.surface.data, self.u_weight, u_class], device=self.device)
        wp.launch(kernel=classify_v_faces, dim=(nx, ny + 1), inputs=[self.surface.data, self.v_weight, v_class], device=self.device)

        u_old = wp.clone(self.velocity.u)
        v_old = wp.clone(self.velocity.v)
        for iter in range(self.num_viscosity_iterations):
            for color in range(2):
                wp.launch(
                    kernel=viscosity_u_iteration,
                    dim=(nx + 1, ny),
                    inputs=[self.velocity.u, u_old, solid.u, u_class, self.viscosity.data, xform, float(dt), color],
                    device=self.device,
                )
                wp.launch(
                    kernel=viscosity_v_iteration,
                    dim=(nx, ny + 1),
                    inputs=[self.velocity.v, v_old, solid.v, v_class, self.viscosity.data, xform, float(dt), color],
                    device=self.device,
                )

    def extrapolate_velocity(self):
        """
        Extend projected liquid velocities narrow_band rings out, zero the faces beyond
        the band, then restore solid faces.
        """
        nx, ny = self.size
        solid = self._solid_velocity()
        u_reached, v_reached = extrapolate_velocity(self.velocity, self.u_valid, self.v_valid, self.narrow_band)
        wp.launch(kernel=zero_invalid, dim=(nx + 1, ny), inputs=[self.velocity.u, u_reached], device=self.device)
        wp.launch(kernel=zero_invalid, dim=(nx, ny + 1), inputs=[self.velocity.v, v_reached], device=self.device)
        wp.launch(kernel=set_solid_faces, dim=(nx + 1, ny), inputs=[self.velocity.u, solid.u, self.u_weight], device=self.device)
        wp.launch(kernel=set_solid_faces, dim=(nx, ny + 1), inputs=[self.velocity.v, solid.v, self.v_weight], device=self.device)

    def update_volume_correction(self, dt):
        """
        PI controller on the relative volume error; the result biases the divergence
        targeted by the next projection.
        """
        if self.target_volume <= 0.0:
            self.target_divergence = 0.0
            return
        volume = self.compute_volume(True)
        x = (volume - self.target_volume) / self.target_volume
        self.accumulated_error += x * dt
        k_p = 2.3 / (25.0 * dt)
        k_i = (k_p / 4.6) ** 2
        self.target_divergence = -(k_p * x + k_i * self.accumulated_error) / (x + 1.0)

    def run_simulation(self, dt, drawing_context=None):
        """
        Advance the simulation by dt. The caller owns sub-stepping and CFL control.

        Args:
            dt: time step size
            drawing_context: optional object with add_points / add_segments; receives the
                particle positions after the step
        """
        if dt <= 0.0:
            raise ValueError(f"dt must be positive, got {dt}")
        order = self.integrator_order

        self.advect_surface(dt, order)
        if self.flags.viscosity:
            self.advect_viscosity(dt, order)
        self.advect_velocity(dt, order)

        self.step_count += 1
        if self.step_count % self.reinit_interval == 0:
            self.reinitialize_level_sets()

        self.compute_surface_curvature()
        self.project(dt)
        if self.flags.viscosity:
            self.solve_viscosity(dt)
        self.extrapolate_velocity()

        if self.flags.volume_correction:
            self.update_volume_correction(dt)

        self.time = self.time + dt

        if drawing_context is not None:
            self.draw_particles(drawing_context)

    # Queries

    def compute_volume(self, liquid=True, samples=3):
        """Super-sampled area of the liquid (or of the air) outside the solids."""
        if liquid:
            return self.surface.estimate_volume(samples, exclude=self.collision)
        if self.flags.air_tracking:
            return self.air_surface.estimate_volume(samples, exclude=self.collision)
        return self.surface.negated().estimate_volume(samples, exclude=self.collision)

    def max_vel_mag(self):
        return self.velocity.max_magnitude()

    def compute_divergence(self):
        """Cut-cell divergence of the current velocity in liquid cells (0 elsewhere), as numpy."""
        divergence = wp.zeros(shape=self.size, dtype=float, device=self.device)
        solid = self._solid_velocity()
        wp.launch(
            kernel=compute_divergence,
            dim=self.size,
            inputs=[self.velocity.u, self.velocity.v, solid.u, solid.v, self.u_weight, self.v_weight,
                    self.surface.data, self.xform.dx, divergence],
            device=self.device,
        )
        return divergence.numpy()

    # Drawing

    def draw_grid(self, drawing_context):
        """Cell boundaries as line segments."""
        nx, ny = self.size
        xs = np.arange(nx + 1, dtype=np.float32)
        ys = np.arange(ny + 1, dtype=np.float32)
        starts = np.concatenate([
            np.stack([xs, np.zeros_like(xs)], axis=-1),
            np.stack([np.zeros_like(ys), ys], axis=-1),
        ])
        ends = np.concatenate([
            np.stack([xs, np.full_like(xs, ny)], axis=-1),
            np.stack([np.full_like(ys, nx), ys], axis=-1),
        ])
        drawing_context.add_segments("grid", self.xform.to_world(starts), self.xform.to_world(ends))

    def draw_surface(self, drawing_context):
        starts, ends = self.surface.zero_crossings()
        drawing_context.add_segments("surface", starts, ends)

    def draw_air(self, drawing_context):
        if self.air_surface is None:
            return
        starts, ends = self.air_surface.zero_crossings()
        drawing_context.add_segments("air", starts, ends)

    def draw_collision(self, drawing_context):
        starts, ends = self.collision.zero_crossings()
        drawing_context.add_segments("collision", starts, ends)

    def draw_collision_vel(self, drawing_context, length=1.0):
        """Collision velocity in the cells inside the solids, as segments of length `length` * |v|."""
        inside = self.collision.numpy() <= 0.0
        points = self.collision.sample_positions()[inside]
        vel = self.collision_velocity.cell_centered()[inside]
        drawing_context.add_segments("collision velocity", points, points + length * vel)

    def draw_velocity(self, drawing_context, length=1.0, from_particles=False):
        """
        Velocity as line segments of length `length` * |v|, either at the cell centres
        or at the FLIP particles.
        """
        if from_particles:
            if self.particles is None:
                return
            points = self.particles.positions()
            vel = self.particles.velocities()
        else:
            points = self.surface.sample_positions().reshape(-1, 2)
            vel = self.velocity.cell_centered().reshape(-1, 2)
        drawing_context.add_segments("velocity", points, points + length * vel)

    def draw_particles(self, drawing_context):
        if self.particles is None:
            return
        drawing_context.add_points("particles", self.particles.positions())
        if self.flags.air_tracking:
            drawing_context.add_points("air particles", self.air_particles.positions())

    # Torch interop

    def export_particle_x_to_torch(self):
        return wp.to_torch(self.particles.particle_x)

    def export_particle_v_to_torch(self):
        return wp.to_torch(self.particles.particle_v)

    # clone = True makes a copy, not necessarily needed
    def import_particle_v_from_torch(self, tensor_v, clone=True):
        if tensor_v is not None:
            if not isinstance(tensor_v, torch.Tensor):
                tensor_v = torch.as_tensor(np.asarray(tensor_v, dtype=np.float32))
            if clone:
                tensor_v = tensor_v.clone().detach()
            if tensor_v.shape[0] != self.particles.n_particles:
                raise ValueError(
                    f"expected {self.particles.n_particles} particle velocities, got {tensor_v.shape[0]}"
                )
            self.particles.particle_v = torch2warp_vec2(tensor_v)

    def export_surface_to_torch(self):
        """Liquid signed distances as an (nx, ny) torch tensor."""
        return wp.to_torch(self.surface.data)
