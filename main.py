# Interactive viewer and headless runner for the liquid simulator
import numpy as np
import warp as wp
import torch
import argparse
from sim_wrapper import *

wp.init() #initialize warp

sim = None

#Global variables for UI
simulating = False
scene_file_path = None
show_particles = True

# Point cloud point sizes
POINT_SIZE_PARTICLES = 0.002


def pad_to_3d(points):
    points = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    return np.concatenate([points, np.zeros((points.shape[0], 1), dtype=np.float32)], axis=1)


class PolyscopeDrawingContext:
    """Receives simulator geometry and registers it with polyscope in the z = 0 plane."""

    def __init__(self, ps):
        self.ps = ps

    def add_points(self, name, points):
        if isinstance(points, torch.Tensor):
            points = points.detach().cpu().numpy()
        cloud = self.ps.register_point_cloud(name, pad_to_3d(points))
        cloud.set_radius(POINT_SIZE_PARTICLES, relative=False)
        cloud.set_enabled(show_particles)

    def add_segments(self, name, starts, ends):
        starts = pad_to_3d(starts)
        ends = pad_to_3d(ends)
        if starts.shape[0] == 0:
            if self.ps.has_curve_network(name):
                self.ps.remove_curve_network(name)
            return
        # every segment gets its own pair of nodes
        nodes = np.empty((2 * starts.shape[0], 3), dtype=np.float32)
        nodes[0::2] = starts
        nodes[1::2] = ends
        edges = np.arange(nodes.shape[0], dtype=np.int32).reshape(-1, 2)
        self.ps.register_curve_network(name, nodes, edges)


#callback to run one simulation step
def simulation_step():
    sim.step()


def draw_state():
    sim.draw(drawing_context)


def simulation_init(scene_file=None, device="cpu"):
    global sim
    print("Initialized Sim")
    if scene_file:
        print(f"Loading scene from: {scene_file}")
        sim = Sim_Wrapper(scene_file=scene_file, device=device)
    else:
        sim = Sim_Wrapper(device=device)


def ui_callback():
    global simulating, show_particles
    changed_sim, simulating = psim.Checkbox("Start Simulation", simulating)
    changed_particles, show_particles = psim.Checkbox("Show Particles", show_particles)
    if changed_particles:
        draw_state()

    #button to run one step of the simulation
    if psim.Button("Step"):
        simulation_step()
        draw_state()

    #reset button
    if psim.Button("Reset Simulation"):
        print("Resetting Simulation")
        device = sim.device if sim else "cpu"
        simulation_init(scene_file=scene_file_path, device=device)
        draw_state()

    psim.TextUnformatted(f"Frame: {sim.current_frame}  Volume: {sim.solver.compute_volume():.4f}")

    if simulating:
        simulation_step()
        draw_state()


if __name__ == "__main__":
    #check arguments, load approriate model and test configuration
    parser = argparse.ArgumentParser(description="Two-dimensional FLIP liquid simulator")
    parser.add_argument("--scene", help="Path to the scene file")
    parser.add_argument("--num_steps", help="Number of frames to simulate without opening the viewer", type=int)
    parser.add_argument("--device", help="Device to use", type=str, default="cpu")
    args = parser.parse_args()

    # Store scene file globally for reset functionality
    scene_file_path = args.scene
    # Convert device format: "cuda" -> "cuda:0", "cpu" -> "cpu"
    device_str = args.device if args.device != "cuda" else "cuda:0"
    wp.set_device(device_str)

    simulation_init(scene_file=args.scene, device=device_str)

    if args.num_steps:
        print("Running headless")
        for k in range(args.num_steps):
            simulation_step()
            print("Frame " + str(sim.current_frame) + " volume: " + str(sim.solver.compute_volume()))
        exit()

    import polyscope as ps
    import polyscope.imgui as psim

    # initialize polyscope
    ps.init()
    ps.set_navigation_style("planar")
    ps.set_up_dir("y_up")
    #turn off polyscope ground plane
    ps.set_ground_plane_mode("none")

    drawing_context = PolyscopeDrawingContext(ps)
    draw_state()

    ps.set_user_callback(ui_callback)
    ps.show()
