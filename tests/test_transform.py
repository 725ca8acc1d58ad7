import numpy as np
import pytest

from utils import Transform


def test_to_world_and_back():
    xform = Transform(0.5, (1.0, -2.0))
    world = xform.to_world((3.25, 4.5))
    np.testing.assert_allclose(world, [2.625, 0.25])
    index, fraction = xform.to_index(world)
    np.testing.assert_array_equal(index, [3, 4])
    np.testing.assert_allclose(fraction, [0.25, 0.5], atol=1e-6)


def test_to_index_batches_points():
    xform = Transform(0.1)
    index, fraction = xform.to_index(np.array([[0.05, 0.15], [0.95, 0.0]]))
    assert index.shape == (2, 2)
    np.testing.assert_array_equal(index, [[0, 1], [9, 0]])
    assert np.all((fraction >= 0.0) & (fraction < 1.0))


def test_negative_positions_floor():
    index, fraction = Transform(1.0).to_index((-0.25, 0.0))
    np.testing.assert_array_equal(index, [-1, 0])
    np.testing.assert_allclose(fraction, [0.75, 0.0])


def test_matching_is_exact():
    a = Transform(0.025, (0.0, 0.0))
    assert a.is_matched(Transform(0.025))
    assert a == Transform(0.025)
    assert hash(a) == hash(Transform(0.025))
    assert not a.is_matched(Transform(0.025, (0.0, 1e-3)))
    assert not a.is_matched(Transform(0.0251))
    assert not a.is_matched("not a transform")


def test_offset_is_copied():
    xform = Transform(1.0, (2.0, 3.0))
    offset = xform.offset
    offset[0] = 100.0
    np.testing.assert_allclose(xform.offset, [2.0, 3.0])


@pytest.mark.parametrize("dx", [0.0, -1.0])
def test_rejects_non_positive_spacing(dx):
    with pytest.raises(ValueError):
        Transform(dx)


def test_rejects_bad_offset():
    with pytest.raises(ValueError):
        Transform(1.0, (0.0, 0.0, 0.0))


def test_to_struct():
    xform = Transform(0.25, (1.0, 2.0)).to_struct()
    assert xform.dx == pytest.approx(0.25)
    assert xform.offset[0] == pytest.approx(1.0)
    assert xform.offset[1] == pytest.approx(2.0)
