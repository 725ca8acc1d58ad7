import numpy as np
import pytest

from utils.scene import Scene
from utils.shapes import boundary_from_dict, loop_from_dict


def small_scene():
    scene = Scene(dt=1.0 / 60.0, dx=1.0 / 32.0, size=[32, 32], narrow_band=5,
                  num_iterations=100, particles_per_cell=4)
    scene.add_liquid_boundary([{"type": "box", "center": [0.5, 0.3], "scale": [0.3, 0.2]}])
    scene.add_solid_boundary([{"type": "box", "center": [0.5, 0.5], "scale": 0.45}], invert=True)
    return scene


def test_defaults():
    scene = Scene()
    assert scene.size == [200, 200]
    assert scene.gravity == [0.0, -1.0]
    assert scene.center() == pytest.approx([2.5, 2.5])
    assert scene.viscosity is None
    assert scene.liquid_boundaries == [] and scene.surface_events == []


def test_json_round_trip(tmp_path):
    scene = small_scene()
    scene.surface_tension = 2.0
    scene.viscosity = 0.5
    scene.add_surface_volume_event(30, [{"type": "circle", "center": [0.5, 0.8], "radius": 0.05}])
    scene.add_surface_volume_event(10, [{"type": "box", "center": [0.2, 0.8], "scale": 0.05}])

    path = tmp_path / "scene.json"
    scene.to_json(str(path))
    loaded = Scene.from_json(str(path))

    assert loaded.to_dict() == scene.to_dict()
    assert [e.frame for e in loaded.surface_events] == [10, 30]
    assert len(loaded.get_surface_events_at_frame(30)) == 1
    assert loaded.get_surface_events_at_frame(5) == []
    assert loaded.solid_boundaries[0]["invert"] is True


def test_from_dict_fills_missing_keys():
    scene = Scene.from_dict({"dx": 0.1, "size": [10, 20]})
    assert scene.dx == 0.1
    assert scene.size == [10, 20]
    assert scene.dt == pytest.approx(1.0 / 120.0)
    assert scene.use_gauss_seidel is True


def test_shapes_from_dict():
    box = loop_from_dict({"type": "box", "center": [1.0, 1.0], "scale": [2.0, 0.5]})
    np.testing.assert_allclose(box.min(axis=0), [-1.0, 0.5])
    np.testing.assert_allclose(box.max(axis=0), [3.0, 1.5])
    circle = loop_from_dict({"type": "circle", "center": [0.0, 0.0], "radius": 1.0, "segments": 16})
    assert circle.shape == (16, 2)
    np.testing.assert_allclose(np.linalg.norm(circle, axis=1), 1.0, atol=1e-6)
    polygon = loop_from_dict({"type": "polygon", "vertices": [[0, 0], [1, 0], [0, 1]]})
    assert polygon.shape == (3, 2)
    assert len(boundary_from_dict({"loops": [{"type": "box", "center": [0, 0]}] * 2})) == 2
    with pytest.raises(ValueError):
        loop_from_dict({"type": "star", "center": [0, 0]})


def test_wrapper_builds_and_steps_a_scene():
    from sim_wrapper import Sim_Wrapper

    scene = small_scene()
    scene.add_surface_volume_event(1, [{"type": "circle", "center": [0.5, 0.75], "radius": 0.08}])
    sim = Sim_Wrapper(scene=scene)

    volume = sim.solver.compute_volume()
    assert volume == pytest.approx(0.6 * 0.4, rel=0.03)
    assert sim.get_positions().shape == (sim.solver.particles.count(), 2)

    sim.step()
    assert sim.current_frame == 1
    assert sim.solver.time == pytest.approx(scene.dt)
    positions = sim.get_positions()
    assert np.all(positions >= 0.0) and np.all(positions <= 1.0)

    # the event scheduled for frame 1 adds liquid before the next frame runs
    sim.step()
    assert sim.current_frame == 2
    assert sim.solver.compute_volume() > volume + 0.5 * np.pi * 0.08 ** 2

    starts, ends = sim.get_surface_segments()
    assert starts.shape == ends.shape and starts.shape[0] > 0
    assert sim.get_collision_segments()[0].shape[0] > 0


def test_wrapper_applies_scene_features():
    from sim_wrapper import Sim_Wrapper

    scene = small_scene()
    scene.surface_tension = 1.0
    scene.enforce_bubbles = True
    scene.air_volume = True
    scene.volume_correction = True
    scene.viscosity = 0.2
    scene.use_gauss_seidel = False
    scene.num_iterations = 300
    scene.integrator_order = 2
    sim = Sim_Wrapper(scene=scene)

    flags = sim.solver.flags
    assert flags.bubbles and flags.air_tracking and flags.volume_correction and flags.viscosity
    assert sim.solver.surface_tension_scale == 1.0
    assert sim.solver.num_jacobi_iterations == 300
    assert int(sim.solver.integrator_order) == 2
    assert sim.solver.target_volume > 0.0
