import numpy as np
import pytest

from utils import Transform, VectorGrid, LevelSet, Boundary, square_loop, sample_jittered_grid
from utils.marker_particles import MarkerParticles


def cell_counts(positions, xform, size):
    index, _ = xform.to_index(positions)
    index = np.clip(index, 0, np.asarray(size) - 1)
    return np.bincount(index[:, 0] * size[1] + index[:, 1], minlength=size[0] * size[1]).reshape(size)


def test_jittered_samples_stay_in_their_cells(xform, rng):
    cells = np.array([[0, 0], [3, 5], [31, 31]])
    points = sample_jittered_grid(cells, 4, xform, rng=rng)
    assert points.shape == (12, 2)
    index, _ = xform.to_index(points)
    np.testing.assert_array_equal(index, np.repeat(cells, 4, axis=0))


def test_unjittered_samples_are_stratum_centres(rng):
    points = sample_jittered_grid([[0, 0]], 4, Transform(1.0), k=0, rng=rng)
    np.testing.assert_allclose(sorted(map(tuple, points)), [(0.25, 0.25), (0.25, 0.75), (0.75, 0.25), (0.75, 0.75)])


def test_empty_requests():
    assert sample_jittered_grid(np.zeros((0, 2)), 4, Transform(1.0)).shape == (0, 2)
    assert sample_jittered_grid([[1, 1]], 0, Transform(1.0)).shape == (0, 2)


def test_init_seeds_every_liquid_cell(xform, pool):
    particles = MarkerParticles(xform.dx / 2.0, particles_per_cell=4, seed=1)
    particles.init(pool)
    # 32 x 16 liquid cells
    assert particles.count() == 32 * 16 * 4
    counts = cell_counts(particles.positions(), xform, (32, 32))
    assert np.all(counts[:, :16] == 4) and np.all(counts[:, 16:] == 0)
    np.testing.assert_array_equal(particles.velocities(), 0.0)


def test_seeded_particles_are_inside_the_surface(xform, square_level_set):
    particles = MarkerParticles(xform.dx / 2.0, particles_per_cell=4, seed=1)
    particles.init(square_level_set)
    # particles in the corner cells that fall outside the rounded surface are dropped
    assert 0.97 * 16 * 16 * 4 <= particles.count() <= 16 * 16 * 4
    assert np.all(square_level_set.interp_points(particles.positions()) <= 0.0)


def test_init_samples_the_grid_velocity(xform, pool):
    velocity = VectorGrid(xform, (32, 32), value=(0.5, -1.0))
    particles = MarkerParticles(xform.dx / 2.0, seed=1)
    particles.init(pool, velocity=velocity)
    np.testing.assert_allclose(particles.velocities(), [[0.5, -1.0]] * particles.count(), atol=1e-6)


def test_init_skips_solid_cells(xform, pool):
    solid = LevelSet(xform, (32, 32))
    solid.initialize(Boundary([square_loop((1.0, 0.5), (0.5, 1.0))]))
    particles = MarkerParticles(xform.dx / 2.0, seed=1)
    particles.init(pool, collision=solid)
    assert particles.count() == 16 * 16 * 4
    assert np.all(particles.positions()[:, 0] < 0.5)


def test_reseed_bounds_density(xform, pool, rng):
    particles = MarkerParticles(xform.dx / 2.0, particles_per_cell=4, seed=3)
    # crowd one liquid cell and leave the rest empty, plus strays far above the surface
    crowded = xform.to_world((12.5, 5.5)) + rng.uniform(-0.4, 0.4, size=(30, 2)) * xform.dx
    strays = rng.uniform(0.8, 1.0, size=(10, 2))
    particles.load_from_array(np.concatenate([crowded, strays]))

    added, removed = particles.reseed(pool)

    counts = cell_counts(particles.positions(), xform, (32, 32))
    assert counts.max() <= 8
    assert counts[12, 5] == 8
    assert np.all(counts[:, :16] >= 4)
    assert np.all(counts[:, 16:] == 0)
    assert removed == 30 - 8 + 10
    assert added == 4 * (32 * 16 - 1)


def test_reseed_is_stable_for_a_seeded_surface(xform, pool):
    particles = MarkerParticles(xform.dx / 2.0, seed=5)
    particles.init(pool)
    count = particles.count()
    added, removed = particles.reseed(pool)
    assert (added, removed) == (0, 0)
    assert particles.count() == count


def test_advect_and_reseed_keep_particles_in_the_domain(xform, square_level_set):
    velocity = VectorGrid(xform, (32, 32), value=(3.0, 2.0))
    particles = MarkerParticles(xform.dx / 2.0, seed=9)
    particles.init(square_level_set)
    for step in range(10):
        particles.advect(velocity, 0.05, order=3)
        particles.reseed(square_level_set, velocity)
        positions = particles.positions()
        assert np.all(positions >= 0.0) and np.all(positions <= 1.0)


def test_transfers_reproduce_a_uniform_field(xform, square_level_set):
    velocity = VectorGrid(xform, (32, 32), value=(1.0, 2.0))
    previous = VectorGrid(xform, (32, 32))
    particles = MarkerParticles(xform.dx / 2.0, seed=2)
    particles.init(square_level_set)

    # pure FLIP adds the grid change to the (zero) particle velocities
    particles.grid_to_particles(velocity, previous, 0.0)
    np.testing.assert_allclose(particles.velocities(), [[1.0, 2.0]] * particles.count(), atol=1e-5)

    target = VectorGrid(xform, (32, 32), value=(-9.0, -9.0))
    u_valid, v_valid = particles.particles_to_grid(target)
    u, v = target.numpy()
    u_valid, v_valid = u_valid.numpy().astype(bool), v_valid.numpy().astype(bool)
    assert u_valid.any() and v_valid.any()
    np.testing.assert_allclose(u[u_valid], 1.0, atol=1e-5)
    np.testing.assert_allclose(v[v_valid], 2.0, atol=1e-5)
    # faces no particle touched keep their value
    assert np.all(u[~u_valid] == -9.0)


def test_validation(xform):
    with pytest.raises(ValueError):
        MarkerParticles(0.0)
    with pytest.raises(ValueError):
        MarkerParticles(0.1, particles_per_cell=0)
    particles = MarkerParticles(0.1)
    with pytest.raises(ValueError):
        particles.load_from_array(np.zeros((3, 2)), np.zeros((2, 2)))
    with pytest.raises(ValueError):
        particles.add_particles(np.zeros((3, 3)))
    particles.add_particles(np.full((3, 2), 0.5))
    assert particles.count() == 3


def test_rejected_load_keeps_previous_particles():
    particles = MarkerParticles(0.1)
    particles.load_from_array(np.full((2, 2), 0.5), np.ones((2, 2)))
    with pytest.raises(ValueError):
        particles.load_from_array(np.zeros((3, 2)), np.zeros((2, 2)))
    assert particles.positions().shape == (2, 2)
    assert particles.velocities().shape == (2, 2)
    np.testing.assert_allclose(particles.velocities(), 1.0)

    # the set stays usable
    particles.add_particles(np.full((1, 2), 0.25))
    assert particles.positions().shape == (3, 2)
    assert particles.velocities().shape == (3, 2)


def test_position_only_particles_ignore_velocities():
    particles = MarkerParticles(0.1, track_velocity=False)
    particles.load_from_array(np.full((4, 2), 0.5), np.ones((4, 2)))
    assert particles.velocities().shape == (4, 2)
    np.testing.assert_allclose(particles.velocities(), 0.0)
