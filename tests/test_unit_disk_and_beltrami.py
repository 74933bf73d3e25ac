import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from geometry.beltrami import complex_to_real, real_to_complex
from geometry.unit_disk import clip_to_unit_disk, lift_to_3d


def test_clip_projects_outside_boundary_points_radially():
    w = np.array([2.0 + 0.0j, 0.3 + 0.4j, 3.0 + 4.0j, 1.5j])
    out = clip_to_unit_disk([0, 1, 2], w)

    assert out is w
    assert w[0] == pytest.approx(1.0)
    assert w[1] == 0.3 + 0.4j
    assert w[2] == pytest.approx(0.6 + 0.8j)
    # Interior vertices are never clipped.
    assert w[3] == 1.5j


def test_clipped_magnitudes_never_exceed_one():
    rng = np.random.default_rng(7)
    w = rng.normal(scale=3.0, size=500) + 1j * rng.normal(scale=3.0, size=500)
    ids = np.arange(500)
    clip_to_unit_disk(ids, w)
    assert np.all(np.abs(w) <= 1.0)


def test_clip_with_no_boundary_is_a_no_op():
    w = np.array([5.0 + 0.0j])
    clip_to_unit_disk([], w)
    assert w[0] == 5.0


def test_lift_to_3d():
    lifted = lift_to_3d(np.array([1.0 + 2.0j, -0.5j]))
    np.testing.assert_array_equal(lifted, [[1.0, 2.0, 0.0], [0.0, -0.5, 0.0]])


def test_real_to_complex_splits_halves():
    mu = real_to_complex(np.array([0.1, 0.2, 0.3, -0.4]))
    np.testing.assert_array_equal(mu, [0.1 + 0.3j, 0.2 - 0.4j])
    np.testing.assert_array_equal(complex_to_real(mu), [0.1, 0.2, 0.3, -0.4])


def test_real_to_complex_rejects_odd_length():
    with pytest.raises(ValueError):
        real_to_complex(np.zeros(3))
