import numpy as np
import pytest

from utils import Transform, LevelSet, Boundary, square_loop, circle_loop


def test_square_distances(square_level_set, xform):
    phi = square_level_set
    assert phi.interp((0.5 + 0.5 * xform.dx, 0.5 + 0.5 * xform.dx)) == pytest.approx(-0.25 + 0.5 * xform.dx, abs=1e-4)
    assert phi.is_inside((0.6, 0.4))
    assert not phi.is_inside((0.9, 0.9))
    # exactly one cell centre outside the right edge
    assert phi.interp((0.75 + 0.5 * xform.dx, 0.5)) == pytest.approx(0.5 * xform.dx, abs=1e-4)


def test_reinitialize_round_trip(square_level_set, xform):
    before = square_level_set.numpy().copy()
    starts_before, _ = square_level_set.zero_crossings()
    square_level_set.reinitialize()
    after = square_level_set.numpy()

    assert np.array_equal(before <= 0.0, after <= 0.0)
    # near the interface the distances are recomputed from the zero crossing
    near = np.abs(before) < 2.0 * xform.dx
    assert np.max(np.abs(before[near] - after[near])) < xform.dx

    starts_after, _ = square_level_set.zero_crossings()
    assert starts_after.shape == starts_before.shape
    np.testing.assert_allclose(starts_after, starts_before, atol=xform.dx)


def test_reinitialize_clamps_to_the_band(square_level_set):
    square_level_set.reinitialize()
    band = square_level_set.band_distance
    assert np.max(np.abs(square_level_set.numpy())) <= band + 1e-5


def test_volume_and_perimeter_of_a_square(square_level_set):
    assert square_level_set.estimate_volume(samples=3) == pytest.approx(0.25, rel=0.02)
    assert square_level_set.perimeter() == pytest.approx(2.0, rel=0.05)


def test_volume_excludes_solids(square_level_set, xform):
    solid = LevelSet(xform, (32, 32), narrow_band=5)
    # right half of the square is solid
    solid.initialize(Boundary([square_loop((1.0, 0.5), (0.5, 1.0))]))
    assert square_level_set.estimate_volume(3, exclude=solid) == pytest.approx(0.125, rel=0.05)


def test_nested_loops_carve_a_hole(xform):
    phi = LevelSet(xform, (32, 32))
    phi.initialize(Boundary([square_loop((0.5, 0.5), 0.375), square_loop((0.5, 0.5), 0.125)]))
    assert not phi.is_inside((0.5, 0.5))
    assert phi.is_inside((0.5, 0.5 + 0.25))
    assert phi.estimate_volume() == pytest.approx(0.75 ** 2 - 0.25 ** 2, rel=0.03)


def test_inverted_initialization(xform):
    container = LevelSet(xform, (32, 32))
    container.initialize(Boundary([square_loop((0.5, 0.5), 0.4)]), invert=True)
    assert not container.is_inside((0.5, 0.5))
    assert container.is_inside((0.02, 0.02))


def test_union_and_intersection(xform):
    a = LevelSet(xform, (32, 32))
    a.initialize(Boundary([circle_loop((0.35, 0.5), 0.2)]))
    b = LevelSet(xform, (32, 32))
    b.initialize(Boundary([circle_loop((0.65, 0.5), 0.2)]))

    union = a.copy()
    union.union_with(b)
    both = a.copy()
    both.intersect_with(b)

    assert union.is_inside((0.2, 0.5)) and union.is_inside((0.8, 0.5))
    assert both.is_inside((0.5, 0.5))
    assert not both.is_inside((0.2, 0.5))
    va, vb = a.estimate_volume(), b.estimate_volume()
    assert union.estimate_volume() + both.estimate_volume() == pytest.approx(va + vb, rel=0.02)


def test_negated(square_level_set):
    outside = square_level_set.negated()
    np.testing.assert_allclose(outside.numpy(), -square_level_set.numpy())
    assert outside.estimate_volume() == pytest.approx(1.0 - 0.25, rel=0.02)


def test_mismatched_operations_fail(square_level_set):
    other = LevelSet(Transform(0.05), (32, 32))
    with pytest.raises(ValueError):
        square_level_set.union_with(other)
    with pytest.raises(ValueError):
        square_level_set.estimate_volume(exclude=other)
    with pytest.raises(ValueError):
        square_level_set.estimate_volume(samples=0)


def test_invalid_construction(xform):
    with pytest.raises(ValueError):
        LevelSet(xform, (8, 8), narrow_band=0)
    with pytest.raises(ValueError):
        LevelSet(xform, (8, 8)).initialize(Boundary())
    with pytest.raises(ValueError):
        Boundary([np.zeros((2, 2))])


def test_empty_level_set_has_no_crossings(xform):
    phi = LevelSet(xform, (8, 8), narrow_band=3)
    starts, ends = phi.zero_crossings()
    assert starts.shape == (0, 2) and ends.shape == (0, 2)
    assert phi.estimate_volume() == 0.0
    phi.reinitialize()
    assert np.all(phi.numpy() > 0.0)
