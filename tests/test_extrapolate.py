import numpy as np
import pytest
import warp as wp

from utils import VectorGrid, ScalarGrid
from kernels import extrapolate, extrapolate_scalar, extrapolate_velocity, liquid_faces, zero_invalid


def test_extrapolation_extends_band_width_rings():
    values = np.full((10, 6), -7.0, dtype=np.float32)
    values[0, :] = np.arange(6)
    valid = np.zeros((10, 6), dtype=np.int32)
    valid[0, :] = 1
    values_wp = wp.array(values, dtype=float)

    out_valid = extrapolate(values_wp, wp.array(valid, dtype=int), 3).numpy()
    result = values_wp.numpy()

    for i in range(1, 4):
        np.testing.assert_allclose(result[i], np.arange(6))
    assert np.all(result[4:] == -7.0)
    assert np.all(out_valid[:4] == 1) and np.all(out_valid[4:] == 0)


def test_extrapolated_values_stay_within_source_bounds(rng):
    values = rng.uniform(-1.0, 1.0, size=(12, 12)).astype(np.float32)
    valid = np.zeros((12, 12), dtype=np.int32)
    valid[4:8, 4:8] = 1
    source = values[4:8, 4:8]
    values_wp = wp.array(values, dtype=float)
    reached = extrapolate(values_wp, wp.array(valid, dtype=int), 4).numpy() == 1
    result = values_wp.numpy()
    # four rings of 4-neighbours do not reach the corners
    assert not reached.all()
    assert result[reached].min() >= source.min() - 1e-6
    assert result[reached].max() <= source.max() + 1e-6
    np.testing.assert_array_equal(result[~reached], values[~reached])


def test_no_valid_samples_leaves_field_untouched(rng):
    values = rng.normal(size=(6, 6)).astype(np.float32)
    values_wp = wp.array(values, dtype=float)
    extrapolate(values_wp, wp.zeros((6, 6), dtype=int), 5)
    np.testing.assert_array_equal(values_wp.numpy(), values)


def test_mask_shape_must_match():
    with pytest.raises(ValueError):
        extrapolate(wp.zeros((4, 4), dtype=float), wp.zeros((4, 5), dtype=int), 1)


def test_velocity_extrapolation_from_liquid_faces(xform, square_level_set):
    velocity = VectorGrid(xform, (32, 32))
    u_valid, v_valid = liquid_faces(square_level_set)
    u = np.where(u_valid.numpy() == 1, 2.0, 0.0)
    v = np.where(v_valid.numpy() == 1, -1.0, 0.0)
    velocity.assign(u, v)

    extrapolate_velocity(velocity, u_valid, v_valid, 2)

    # one ring outside the liquid takes the liquid value
    assert velocity.interp((0.5, 0.75 + 1.5 * xform.dx))[1] == pytest.approx(-1.0)
    assert velocity.interp((0.75 + 1.5 * xform.dx, 0.5))[0] == pytest.approx(2.0)
    # far away nothing changed
    assert velocity.interp((0.05, 0.05))[0] == pytest.approx(0.0)


def test_scalar_extrapolation_from_liquid_cells(xform, square_level_set):
    grid = ScalarGrid(xform, (32, 32))
    grid.assign(np.where(square_level_set.numpy() <= 0.0, 3.0, 0.0))
    extrapolate_scalar(grid, square_level_set, 2)
    assert grid.interp((0.75 + 1.5 * xform.dx, 0.5)) == pytest.approx(3.0)
    assert grid.interp((0.05, 0.05)) == pytest.approx(0.0)


def test_velocity_extrapolation_returns_reached_faces(xform, square_level_set):
    velocity = VectorGrid(xform, (32, 32), value=(5.0, 5.0))
    u_valid, v_valid = liquid_faces(square_level_set)
    u_reached, v_reached = extrapolate_velocity(velocity, u_valid, v_valid, 2)
    u_reached, v_reached = u_reached.numpy(), v_reached.numpy()
    assert u_reached.sum() > u_valid.numpy().sum()
    assert v_reached.sum() > v_valid.numpy().sum()
    assert u_reached[0, 0] == 0 and v_reached[0, 0] == 0


def test_zero_invalid_clears_unreached_samples():
    values = wp.array(np.full((4, 4), 3.0, dtype=np.float32), dtype=float)
    valid = np.zeros((4, 4), dtype=np.int32)
    valid[1:3, 1:3] = 1
    wp.launch(kernel=zero_invalid, dim=(4, 4), inputs=[values, wp.array(valid, dtype=int)])
    result = values.numpy()
    assert np.all(result[valid == 1] == 3.0)
    assert np.all(result[valid == 0] == 0.0)
