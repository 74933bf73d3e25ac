# geometry/averaging.py

import logging

import numpy as np
from scipy import sparse

from geometry.triangle_ops import (
    as_3d_positions,
    triangle_corner_angles,
    triangle_normals_and_areas,
)

logger = logging.getLogger("qcmap")

WEIGHT_TYPES = ("uniform", "area", "angle")


def _validate_mesh(faces, vertices):
    vertices = np.asarray(vertices, dtype=float)
    if vertices.ndim != 2 or not np.all(np.isfinite(vertices)):
        raise ValueError("Vertex coordinates must be a finite 2D array.")
    faces = np.asarray(faces)
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError(f"Expected an (F, 3) face array, got {faces.shape}")
    if faces.size and not np.issubdtype(faces.dtype, np.integer):
        if not np.all(faces == np.round(faces)):
            raise ValueError("Face indices must be integers.")
    faces = faces.astype(int)
    if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
        raise ValueError(
            f"Face indices must lie in [0, {len(vertices) - 1}]."
        )
    return faces, vertices


def mesh_averaging_operators(faces, vertices, weight_type="angle"):
    """Build sparse operators moving quantities between vertices and faces.

    Parameters
    ----------
    faces : array_like
        ``(F, 3)`` zero-based face connectivity.
    vertices : array_like
        ``(V, D)`` vertex coordinates (``D`` is 2 or 3).
    weight_type : str, optional
        Weighting of face values when averaging onto vertices:
        ``"uniform"``, ``"area"`` or ``"angle"`` (default).

    Returns
    -------
    tuple[scipy.sparse.csr_matrix, scipy.sparse.csr_matrix]
        ``vertex_to_face`` (``F x V``) averages the three corner values of
        each face; ``face_to_vertex`` (``V x F``) averages incident face
        values onto each vertex with weights that sum to one.
    """
    faces, vertices = _validate_mesh(faces, vertices)
    weight_type = str(weight_type).lower()
    if weight_type not in WEIGHT_TYPES:
        raise ValueError(
            f"Invalid weighting type {weight_type!r}; expected one of {WEIGHT_TYPES}"
        )

    n_faces = len(faces)
    n_verts = len(vertices)
    face_rows = np.repeat(np.arange(n_faces), 3)
    corner_verts = faces.ravel()

    vertex_to_face = sparse.csr_matrix(
        (np.full(3 * n_faces, 1.0 / 3.0), (face_rows, corner_verts)),
        shape=(n_faces, n_verts),
    )

    if weight_type == "uniform":
        corner_weights = np.ones(3 * n_faces)
    elif weight_type == "area":
        pos = as_3d_positions(vertices)
        _, areas = triangle_normals_and_areas(pos, faces)
        corner_weights = np.repeat(areas, 3)
    else:
        pos = as_3d_positions(vertices)
        corner_weights = triangle_corner_angles(pos, faces).ravel()

    totals = np.bincount(corner_verts, weights=corner_weights, minlength=n_verts)
    with np.errstate(divide="ignore", invalid="ignore"):
        normalized = corner_weights / totals[corner_verts]
    bad = ~np.isfinite(normalized)
    if np.any(bad):
        logger.warning(
            "%d face corners have zero total %s weight; using uniform weights there.",
            int(bad.sum()),
            weight_type,
        )
        counts = np.bincount(corner_verts, minlength=n_verts)
        normalized[bad] = 1.0 / counts[corner_verts[bad]]

    face_to_vertex = sparse.csr_matrix(
        (normalized, (corner_verts, face_rows)), shape=(n_verts, n_faces)
    )
    return vertex_to_face, face_to_vertex
