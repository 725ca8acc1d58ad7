import warp as wp
import numpy as np
from simulator import FlipSimulator_WARP
from utils.scene import Scene
from utils.shapes import boundary_from_dict
from utils import *
wp.init()
wp.config.verify_cuda = True


def default_scene():
    """Square of liquid with a square hole, inside a square container, with bubbles and surface tension."""
    scene = Scene(dt=1.0 / 120.0, dx=0.025, size=[200, 200], narrow_band=10,
                  gravity=[0.0, -1.0], surface_tension=10.0,
                  enforce_bubbles=True, air_volume=True)
    center = scene.center()
    scene.add_liquid_boundary([
        {"type": "box", "center": center, "scale": 1.0},
        {"type": "box", "center": center, "scale": 0.5},
    ])
    scene.add_solid_boundary([{"type": "box", "center": center, "scale": 2.0}], invert=True)
    return scene


class Sim_Wrapper:
    def __init__(self, scene=None, scene_file=None, device="cpu"):
        """
        Initialize simulation wrapper.

        Args:
            scene: Scene object to use (if provided)
            scene_file: Path to JSON scene file (if provided, scene is ignored)
            device: Device to use for simulation (default: "cpu")
        """
        self.device = device
        if scene_file:
            self.scene = Scene.from_json(scene_file)
        elif scene:
            self.scene = scene
        else:
            self.scene = default_scene()

        self.xform = Transform(self.scene.dx, self.scene.offset)
        self.solver = FlipSimulator_WARP(
            self.xform,
            self.scene.size,
            narrow_band=self.scene.narrow_band,
            use_particles=True,
            particles_per_cell=self.scene.particles_per_cell,
            device=device,
        )

        # Set solver parameters from scene
        self.solver.integrator_order = Integrator(self.scene.integrator_order)
        self.solver.use_gauss_seidel = self.scene.use_gauss_seidel
        if self.scene.use_gauss_seidel:
            self.solver.num_gauss_seidel_iterations = self.scene.num_iterations
        else:
            self.solver.num_jacobi_iterations = self.scene.num_iterations
        self.solver.gauss_seidel_omega = self.scene.omega
        self.solver.jacobi_alpha = self.scene.jacobi_alpha
        self.solver.pic_flip_alpha = self.scene.pic_flip_alpha
        self.solver.reinit_interval = self.scene.reinit_interval

        # Solids go first so particles are not seeded inside them
        if self.scene.solid_boundaries:
            self.solver.set_collision_volume(self.build_level_set(self.scene.solid_boundaries))
        if self.scene.liquid_boundaries:
            self.solver.set_surface_volume(self.build_level_set(self.scene.liquid_boundaries))

        if self.scene.surface_tension > 0.0:
            self.solver.set_surface_tension(self.scene.surface_tension)
        if self.scene.enforce_bubbles:
            self.solver.set_enforce_bubbles()
        if self.scene.air_volume and self.solver.has_surface:
            self.solver.set_air_volume()
        if self.scene.volume_correction and self.solver.has_surface:
            self.solver.set_volume_correction()
        if self.scene.viscosity is not None:
            self.solver.set_viscosity(self.scene.viscosity)

        # Track current frame
        self.current_frame = 0

        # Process frame 0 liquid events immediately (before first step)
        for event in self.scene.get_surface_events_at_frame(0):
            self.add_surface_volume(event.loops)

    def build_level_set(self, entries):
        """Union of the level sets of a list of scene boundary entries."""
        level_set = None
        for entry in entries:
            part = LevelSet(self.xform, self.scene.size, self.scene.narrow_band, device=self.device)
            part.initialize(boundary_from_dict(entry), invert=entry.get("invert", False))
            if level_set is None:
                level_set = part
            else:
                level_set.union_with(part)
        return level_set

    def add_surface_volume(self, loops):
        level_set = self.build_level_set([{"loops": loops}])
        if self.solver.has_surface:
            self.solver.add_surface_volume(level_set)
        else:
            self.solver.set_surface_volume(level_set)

    def advance_frame(self):
        """Run CFL-limited sub-steps until one frame of scene.dt has elapsed."""
        frame_dt = self.scene.dt
        dx = self.scene.dx
        frame_time = 0.0
        first_step = True
        while frame_time < frame_dt:
            if first_step:
                velmag = 1.0
                first_step = False
            else:
                velmag = self.solver.max_vel_mag()

            if velmag > 0.0:
                dt = self.scene.cfl_cells * dx / velmag
            else:
                dt = frame_dt

            if frame_time + dt >= frame_dt:
                dt = frame_dt - frame_time
                print("Throttling frame with substep: ", dt)

            if dt <= 0.0:
                break

            self.solver.add_force(self.scene.gravity, dt)
            self.solver.run_simulation(dt)
            frame_time += dt

    def step(self):
        # Check for liquid events at current frame (skip frame 0, already processed in __init__)
        if self.current_frame > 0:
            for event in self.scene.get_surface_events_at_frame(self.current_frame):
                self.add_surface_volume(event.loops)

        for i in range(self.scene.frames_per_output):
            self.advance_frame()

            # Increment frame counter
            self.current_frame += 1

    def draw(self, drawing_context):
        self.solver.draw_collision(drawing_context)
        self.solver.draw_surface(drawing_context)
        self.solver.draw_air(drawing_context)
        self.solver.draw_particles(drawing_context)

    def get_positions(self):
        if self.solver.particles is None:
            return np.zeros((0, 2), dtype=np.float32)
        return self.solver.export_particle_x_to_torch().cpu().numpy()

    def get_surface_segments(self):
        return self.solver.surface.zero_crossings()

    def get_collision_segments(self):
        return self.solver.collision.zero_crossings()
