"""
Scene data structure for managing simulation parameters, liquid addition events, and solid boundaries.
"""
import json
from typing import List, Dict, Optional


class SurfaceVolumeEvent:
    """Represents a liquid region added to the surface at a specific frame."""
    def __init__(self, frame: int, loops: List[Dict]):
        self.frame = frame
        self.loops = loops


class Scene:
    """Scene data structure containing simulation parameters and events."""

    def __init__(self, dt: float = 1.0 / 120.0, dx: float = 0.025,
                 size: Optional[List[int]] = None,
                 offset: Optional[List[float]] = None,
                 narrow_band: int = 10,
                 gravity: Optional[List[float]] = None,
                 integrator_order: int = 3,
                 cfl_cells: float = 3.0,
                 surface_tension: float = 0.0,
                 enforce_bubbles: bool = False,
                 air_volume: bool = False,
                 volume_correction: bool = False,
                 viscosity: Optional[float] = None,
                 use_gauss_seidel: bool = True,
                 num_iterations: int = 200,
                 omega: float = 1.7,
                 jacobi_alpha: float = 1.0,
                 pic_flip_alpha: float = 0.1,
                 reinit_interval: int = 1,
                 particles_per_cell: int = 4,
                 frames_per_output: int = 1):
        """
        Initialize a scene.

        Args:
            dt: Frame time; the driver splits it into CFL-bounded sub-steps
            dx: Grid cell size
            size: Number of cells [nx, ny]
            offset: World position of the grid corner [x, y]
            narrow_band: Level set narrow band half-width in cells
            gravity: Gravity vector [x, y]
            integrator_order: 1 = forward Euler, 2 = midpoint, 3 = Ralston RK3
            cfl_cells: Number of cells the fastest velocity may cross per sub-step
            surface_tension: Surface tension scale (0 disables it)
            enforce_bubbles: Treat enclosed air pockets as incompressible bubbles
            air_volume: Track the air phase with its own level set
            volume_correction: Counteract liquid volume drift
            viscosity: Uniform viscosity coefficient, None disables the viscosity solve
            use_gauss_seidel: Use Gauss-Seidel SOR solver (True) or Jacobi solver (False)
            num_iterations: Number of pressure solver iterations
            omega: SOR relaxation parameter for Gauss-Seidel (1.0 = standard GS, >1.0 = over-relaxation)
            jacobi_alpha: Relaxation parameter for Jacobi iteration (1.0 = standard Jacobi)
            pic_flip_alpha: PIC-FLIP blending parameter for g2p (0.0 = pure FLIP, 1.0 = pure PIC)
            reinit_interval: Redistance the level sets every reinit_interval sub-steps
            particles_per_cell: Marker particle seeding density
            frames_per_output: Number of frames to run per driver step
        """
        self.dt = dt
        self.dx = dx
        self.size = size if size is not None else [200, 200]
        self.offset = offset if offset is not None else [0.0, 0.0]
        self.narrow_band = narrow_band
        self.gravity = gravity if gravity is not None else [0.0, -1.0]
        self.integrator_order = integrator_order
        self.cfl_cells = cfl_cells

        # Physics features
        self.surface_tension = surface_tension
        self.enforce_bubbles = enforce_bubbles
        self.air_volume = air_volume
        self.volume_correction = volume_correction
        self.viscosity = viscosity

        # Pressure solver parameters
        self.use_gauss_seidel = use_gauss_seidel
        self.num_iterations = num_iterations
        self.omega = omega
        self.jacobi_alpha = jacobi_alpha
        self.pic_flip_alpha = pic_flip_alpha
        self.reinit_interval = reinit_interval
        self.particles_per_cell = particles_per_cell
        self.frames_per_output = frames_per_output

        # Boundaries: list of {"loops": [shape, ...], "invert": bool}
        self.liquid_boundaries: List[Dict] = []
        self.solid_boundaries: List[Dict] = []

        # Liquid addition events
        self.surface_events: List[SurfaceVolumeEvent] = []

    def center(self):
        """World position of the middle of the grid."""
        return [self.offset[k] + self.dx * self.size[k] / 2.0 for k in range(2)]

    def add_liquid_boundary(self, loops: List[Dict], invert: bool = False):
        self.liquid_boundaries.append({"loops": loops, "invert": invert})

    def add_solid_boundary(self, loops: List[Dict], invert: bool = False):
        self.solid_boundaries.append({"loops": loops, "invert": invert})

    def add_surface_volume_event(self, frame: int, loops: List[Dict]):
        """Add a liquid region at a specific frame."""
        self.surface_events.append(SurfaceVolumeEvent(frame, loops))
        # Sort by frame
        self.surface_events.sort(key=lambda e: e.frame)

    def get_surface_events_at_frame(self, frame: int) -> List[SurfaceVolumeEvent]:
        """Get all liquid additions scheduled for a specific frame."""
        return [event for event in self.surface_events if event.frame == frame]

    def to_dict(self) -> Dict:
        """Convert scene to dictionary for JSON serialization."""
        return {
            "dt": self.dt,
            "dx": self.dx,
            "size": self.size,
            "offset": self.offset,
            "narrow_band": self.narrow_band,
            "gravity": self.gravity,
            "integrator_order": self.integrator_order,
            "cfl_cells": self.cfl_cells,
            "surface_tension": self.surface_tension,
            "enforce_bubbles": self.enforce_bubbles,
            "air_volume": self.air_volume,
            "volume_correction": self.volume_correction,
            "viscosity": self.viscosity,
            "use_gauss_seidel": self.use_gauss_seidel,
            "num_iterations": self.num_iterations,
            "omega": self.omega,
            "jacobi_alpha": self.jacobi_alpha,
            "pic_flip_alpha": self.pic_flip_alpha,
            "reinit_interval": self.reinit_interval,
            "particles_per_cell": self.particles_per_cell,
            "frames_per_output": self.frames_per_output,
            "liquid_boundaries": self.liquid_boundaries,
            "solid_boundaries": self.solid_boundaries,
            "surface_events": [
                {"frame": e.frame, "loops": e.loops}
                for e in self.surface_events
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Scene':
        """Create scene from dictionary."""
        scene = cls(
            dt=data.get("dt", 1.0 / 120.0),
            dx=data.get("dx", 0.025),
            size=data.get("size", [200, 200]),
            offset=data.get("offset", [0.0, 0.0]),
            narrow_band=data.get("narrow_band", 10),
            gravity=data.get("gravity", [0.0, -1.0]),
            integrator_order=data.get("integrator_order", 3),
            cfl_cells=data.get("cfl_cells", 3.0),
            surface_tension=data.get("surface_tension", 0.0),
            enforce_bubbles=data.get("enforce_bubbles", False),
            air_volume=data.get("air_volume", False),
            volume_correction=data.get("volume_correction", False),
            viscosity=data.get("viscosity", None),
            use_gauss_seidel=data.get("use_gauss_seidel", True),
            num_iterations=data.get("num_iterations", 200),
            omega=data.get("omega", 1.7),
            jacobi_alpha=data.get("jacobi_alpha", 1.0),
            pic_flip_alpha=data.get("pic_flip_alpha", 0.1),
            reinit_interval=data.get("reinit_interval", 1),
            particles_per_cell=data.get("particles_per_cell", 4),
            frames_per_output=data.get("frames_per_output", 1)
        )

        for entry in data.get("liquid_boundaries", []):
            scene.add_liquid_boundary(entry["loops"], entry.get("invert", False))
        for entry in data.get("solid_boundaries", []):
            scene.add_solid_boundary(entry["loops"], entry.get("invert", False))

        # Add liquid events
        for event_data in data.get("surface_events", []):
            scene.add_surface_volume_event(event_data["frame"], event_data["loops"])

        return scene

    @classmethod
    def from_json(cls, filepath: str) -> 'Scene':
        """Load scene from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_json(self, filepath: str):
        """Save scene to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
