import numpy as np
import pytest
import warp as wp

from utils import ScalarGrid, VectorGrid, Integrator
from kernels import advect_scalar, advect_velocity, advect_particles


def rotation(xform, size):
    """Rigid rotation about the domain centre; linear, so staggered interpolation is exact."""
    grid = VectorGrid(xform, size)
    centre = 0.5 * xform.dx * np.asarray(size, dtype=np.float32)
    u_pos = grid.face_positions(0)
    v_pos = grid.face_positions(1)
    grid.assign(-(u_pos[..., 1] - centre[1]), v_pos[..., 0] - centre[0])
    return grid


@pytest.mark.parametrize("order", [1, 2, 3])
@pytest.mark.parametrize("dt", [0.01, 0.5, 10.0])
def test_zero_velocity_is_identity(xform, rng, order, dt):
    field = ScalarGrid(xform, (16, 16))
    values = rng.normal(size=(16, 16)).astype(np.float32)
    field.assign(values)
    velocity = VectorGrid(xform, (16, 16))
    velocity_values = (rng.normal(size=(17, 16)), rng.normal(size=(16, 17)))
    moving = VectorGrid(xform, (16, 16))
    moving.assign(*velocity_values)

    advect_scalar(field, velocity, dt, order)
    advect_velocity(moving, dt, order, advecting_velocity=velocity)

    np.testing.assert_allclose(field.numpy(), values, atol=1e-6)
    np.testing.assert_allclose(moving.u.numpy(), velocity_values[0], atol=1e-6)
    np.testing.assert_allclose(moving.v.numpy(), velocity_values[1], atol=1e-6)


def test_uniform_translation(xform):
    field = ScalarGrid(xform, (32, 32))
    positions = field.sample_positions()
    field.assign(positions[..., 0])
    velocity = VectorGrid(xform, (32, 32), value=(1.0, 0.0))
    dt = 0.5 * xform.dx

    advect_scalar(field, velocity, dt, Integrator.RK3)

    # away from the inflow wall the field is shifted by dt
    interior = field.numpy()[2:, :]
    np.testing.assert_allclose(interior, positions[2:, :, 0] - dt, atol=1e-5)


def test_self_advection_of_uniform_flow(xform):
    velocity = VectorGrid(xform, (16, 16), value=(0.3, -0.2))
    advect_velocity(velocity, 0.1)
    u, v = velocity.numpy()
    np.testing.assert_allclose(u, 0.3, atol=1e-6)
    np.testing.assert_allclose(v, -0.2, atol=1e-6)


def test_higher_orders_follow_rotation_more_closely(xform):
    velocity = rotation(xform, (32, 32))
    start = np.array([[0.75, 0.5]], dtype=np.float32)
    errors = {}
    for order in (1, 2, 3):
        x = wp.array(start, dtype=wp.vec2)
        advect_particles(x, velocity, 0.2, order)
        radius = np.linalg.norm(x.numpy().reshape(-1, 2) - 0.5, axis=1)[0]
        errors[order] = abs(radius - 0.25)
    assert errors[3] < errors[2] < errors[1]
    assert errors[3] < 0.1 * errors[1]


def test_particles_stay_inside_the_domain(xform, rng):
    velocity = VectorGrid(xform, (32, 32), value=(50.0, -50.0))
    x = wp.array(rng.uniform(0.0, 1.0, size=(200, 2)).astype(np.float32), dtype=wp.vec2)
    for step in range(5):
        advect_particles(x, velocity, 0.1, Integrator.RK3)
    positions = x.numpy().reshape(-1, 2)
    assert np.all(positions >= 0.0) and np.all(positions <= 1.0)


def test_particles_are_pushed_out_of_solids(xform, square_level_set):
    velocity = VectorGrid(xform, (32, 32), value=(1.0, 0.0))
    x = wp.array(np.array([[0.2, 0.5]], dtype=np.float32), dtype=wp.vec2)
    advect_particles(x, velocity, 0.1, 1, collision=square_level_set)
    assert square_level_set.interp(x.numpy().reshape(-1, 2)[0]) >= -1e-3


def test_invalid_order_and_mismatch(xform):
    field = ScalarGrid(xform, (8, 8))
    with pytest.raises(ValueError):
        advect_scalar(field, VectorGrid(xform, (8, 8)), 0.1, order=4)
    with pytest.raises(ValueError):
        advect_velocity(VectorGrid(xform, (8, 8)), 0.1, advecting_velocity=VectorGrid(xform, (9, 8)))
