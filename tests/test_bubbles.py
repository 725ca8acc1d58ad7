import numpy as np

from kernels import label_bubbles


def open_faces(nx, ny):
    u_weight = np.ones((nx + 1, ny), dtype=np.float32)
    v_weight = np.ones((nx, ny + 1), dtype=np.float32)
    u_weight[0, :] = u_weight[-1, :] = 0.0
    v_weight[:, 0] = v_weight[:, -1] = 0.0
    return u_weight, v_weight


def test_enclosed_air_is_a_bubble():
    phi = np.ones((12, 12), dtype=np.float32)
    # liquid ring with a 2 x 2 air pocket inside
    phi[3:9, 3:9] = -1.0
    phi[5:7, 5:7] = 1.0
    bubble_id, n_bubbles = label_bubbles(phi, *open_faces(12, 12))
    assert n_bubbles == 1
    assert np.all(bubble_id[5:7, 5:7] == 0)
    assert (bubble_id >= 0).sum() == 4
    # the atmosphere and the liquid carry no id
    assert bubble_id[0, 0] == -1 and bubble_id[4, 4] == -1


def test_bubbles_are_numbered_consecutively():
    phi = -np.ones((16, 8), dtype=np.float32)
    phi[:, 6:] = 1.0  # atmosphere on top
    phi[2, 2] = 1.0
    phi[8:10, 2:4] = 1.0
    phi[13, 4] = 1.0
    bubble_id, n_bubbles = label_bubbles(phi, *open_faces(16, 8))
    assert n_bubbles == 3
    assert sorted(set(bubble_id[bubble_id >= 0].tolist())) == [0, 1, 2]
    assert np.all(bubble_id[:, 6:] == -1)


def test_single_air_region_has_no_bubbles():
    phi = -np.ones((8, 8), dtype=np.float32)
    phi[:, 5:] = 1.0
    bubble_id, n_bubbles = label_bubbles(phi, *open_faces(8, 8))
    assert n_bubbles == 0
    assert np.all(bubble_id == -1)


def test_closed_faces_separate_air_regions():
    phi = np.ones((8, 8), dtype=np.float32)
    u_weight, v_weight = open_faces(8, 8)
    # a solid wall between columns 3 and 4 splits the air in two
    u_weight[4, :] = 0.0
    bubble_id, n_bubbles = label_bubbles(phi, u_weight, v_weight)
    assert n_bubbles == 1
    assert (bubble_id == 0).sum() == 32
