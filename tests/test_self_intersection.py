import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from geometry.self_intersection import find_self_intersections, self_intersects
from geometry.unit_disk import lift_to_3d
from sample_meshes import disk_mesh


def test_disk_layout_does_not_self_intersect():
    w, faces, _ = disk_mesh(n_rings=3, n_sectors=12)
    report = find_self_intersections(lift_to_3d(w), faces)
    assert not report.intersects
    assert report.face_pairs.shape == (0, 2)
    assert report.coplanar.shape == (0,)


def test_folded_fan_is_detected_as_coplanar_overlap():
    w, faces, _ = disk_mesh()
    w[0] = 0.8  # centre pushed past ring 1
    report = find_self_intersections(lift_to_3d(w), faces)
    assert report.intersects
    assert np.all(report.coplanar)
    assert np.all(report.face_pairs[:, 0] < report.face_pairs[:, 1])


def test_neighbouring_triangles_fold_over_shared_edge():
    vertices = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.2, 0.2]])
    faces = np.array([[0, 1, 2], [1, 2, 3]])
    report = find_self_intersections(vertices, faces)
    assert report.intersects
    np.testing.assert_array_equal(report.face_pairs, [[0, 1]])
    assert report.coplanar.tolist() == [True]

    vertices[3] = [1.0, 1.0]
    assert not self_intersects(vertices, faces)


def test_triangles_touching_at_a_vertex_do_not_intersect():
    vertices = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0],
         [-1.0, 0.0, 0.0], [0.0, -1.0, 0.0]]
    )
    faces = np.array([[0, 1, 2], [0, 3, 4]])
    assert not self_intersects(vertices, faces)


def test_vertex_resting_on_a_non_neighbouring_edge_is_a_pinch():
    vertices = np.array(
        [[0.0, 0.0], [2.0, 0.0], [1.0, 1.0], [1.0, 0.0], [2.0, -1.0], [0.0, -1.0]]
    )
    faces = np.array([[0, 1, 2], [3, 4, 5]])
    report = find_self_intersections(vertices, faces)
    assert report.intersects
    np.testing.assert_array_equal(report.face_pairs, [[0, 1]])
    assert report.coplanar.tolist() == [True]

    vertices[3:, 1] -= 0.01
    assert not self_intersects(vertices, faces)


def test_piercing_triangles_in_3d_intersect():
    vertices = np.array(
        [
            [0.0, 0.0, 0.0],
            [2.0, 0.0, 0.0],
            [0.0, 2.0, 0.0],
            [0.5, 0.5, -1.0],
            [0.5, 0.5, 1.0],
            [-1.0, -1.0, 0.0],
        ]
    )
    faces = np.array([[0, 1, 2], [3, 4, 5]])
    report = find_self_intersections(vertices, faces)
    assert report.intersects
    assert report.coplanar.tolist() == [False]


def test_hinged_triangles_sharing_an_edge_do_not_intersect():
    vertices = np.array(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    )
    faces = np.array([[0, 1, 2], [0, 1, 3]])
    assert not self_intersects(vertices, faces)


def test_parallel_offset_triangles_do_not_intersect():
    vertices = np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 0.1],
            [1.0, 0.0, 0.1],
            [0.0, 1.0, 0.1],
        ]
    )
    faces = np.array([[0, 1, 2], [3, 4, 5]])
    assert not self_intersects(vertices, faces)


def test_degenerate_faces_are_ignored():
    vertices = np.array(
        [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.1, 0.1], [0.2, 0.2]]
    )
    # Face 1 is a sliver with collinear corners lying inside face 0.
    faces = np.array([[0, 1, 2], [0, 3, 4]])
    assert not self_intersects(vertices, faces)


def test_duplicate_face_overlaps_itself():
    vertices = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    faces = np.array([[0, 1, 2], [2, 1, 0]])
    assert self_intersects(vertices, faces)


def test_empty_and_single_face_meshes():
    vertices = np.zeros((3, 3))
    assert not self_intersects(vertices, np.zeros((0, 3), dtype=int))
    assert not self_intersects(
        np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]), np.array([[0, 1, 2]])
    )


def test_rejects_non_triangular_faces():
    with pytest.raises(ValueError):
        find_self_intersections(np.zeros((4, 3)), np.array([[0, 1, 2, 3]]))
