"""Self-intersection test for triangle meshes.

Faces that share a vertex or an edge intersect only when their interiors
overlap; touching along the shared part is how a connected mesh is built. A
fold-over in a planar layout shows up as two such neighbours overlapping on
the same side of their shared edge. Faces with no vertex in common intersect
as soon as they touch, so a vertex resting on a non-neighbouring edge is
reported as a pinch.

The broad phase pairs faces whose bounding spheres overlap (via
``scipy.spatial.cKDTree``); the narrow phase is a separating-axis test run on
all candidate pairs at once.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from scipy.spatial import cKDTree

from geometry.triangle_ops import (
    _fast_cross,
    as_3d_positions,
    triangle_bounding_spheres,
    triangle_normals_and_areas,
)

logger = logging.getLogger("qcmap")

_PAIR_CHUNK = 65536


class SelfIntersectionReport(NamedTuple):
    intersects: bool
    face_pairs: np.ndarray
    coplanar: np.ndarray


def _empty_report() -> SelfIntersectionReport:
    return SelfIntersectionReport(
        False, np.zeros((0, 2), dtype=int), np.zeros(0, dtype=bool)
    )


def _overlapping_pairs(
    P: np.ndarray, Q: np.ndarray, eps: float, adjacent: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Separating-axis test for ``K`` triangle pairs.

    ``P`` and ``Q`` are ``(K, 3, 3)`` corner arrays. Returns boolean arrays
    ``(overlap, coplanar)`` of length ``K``. For ``adjacent`` pairs,
    projections that only touch (within ``eps``) count as separated; other
    pairs need a gap wider than ``eps``.
    """
    eP = np.roll(P, -1, axis=1) - P
    eQ = np.roll(Q, -1, axis=1) - Q
    nP = _fast_cross(eP[:, 0], -eP[:, 2])
    nQ = _fast_cross(eQ[:, 0], -eQ[:, 2])
    uP = nP / np.linalg.norm(nP, axis=1)[:, None]
    uQ = nQ / np.linalg.norm(nQ, axis=1)[:, None]

    parallel = np.linalg.norm(_fast_cross(uP, uQ), axis=1) <= 1e-12
    offset = np.abs(np.einsum("ij,ij->i", uP, Q[:, 0] - P[:, 0]))
    coplanar = parallel & (offset <= eps)

    # 3D candidate axes: both face normals and the nine edge-edge crosses.
    edge_cross = _fast_cross(eP[:, :, None, :], eQ[:, None, :, :]).reshape(-1, 9, 3)
    edge_len = (
        np.linalg.norm(eP, axis=2)[:, :, None] * np.linalg.norm(eQ, axis=2)[:, None, :]
    ).reshape(-1, 9)
    axes_3d = np.concatenate([uP[:, None], uQ[:, None], edge_cross], axis=1)
    scale_3d = np.concatenate([np.ones((len(P), 2)), edge_len], axis=1)

    # In-plane axes for coplanar pairs: edge normals lying in the shared plane.
    axes_2d = np.concatenate(
        [_fast_cross(uP[:, None], eP), _fast_cross(uP[:, None], eQ)], axis=1
    )
    scale_2d = np.concatenate(
        [np.linalg.norm(eP, axis=2), np.linalg.norm(eQ, axis=2)], axis=1
    )

    axes = np.concatenate([axes_3d, axes_2d], axis=1)
    norms = np.linalg.norm(axes, axis=2)
    scales = np.concatenate([scale_3d, scale_2d], axis=1)
    active = norms > 1e-12 * scales
    active[:, :11] &= ~coplanar[:, None]
    active[:, 11:] &= coplanar[:, None]
    axes = axes / np.where(active, norms, 1.0)[:, :, None]

    margin = np.where(adjacent, eps, -eps)[:, None]
    proj_p = np.einsum("kai,kvi->kav", axes, P)
    proj_q = np.einsum("kai,kvi->kav", axes, Q)
    separated = (proj_p.max(axis=2) <= proj_q.min(axis=2) + margin) | (
        proj_q.max(axis=2) <= proj_p.min(axis=2) + margin
    )
    separated &= active
    return ~np.any(separated, axis=1), coplanar


def find_self_intersections(
    vertices: np.ndarray, faces: np.ndarray, *, tol: float = 1e-12
) -> SelfIntersectionReport:
    """Report every pair of faces that overlap, or touch without sharing a vertex.

    Parameters
    ----------
    vertices : np.ndarray
        ``(V, 3)`` (or ``(V, 2)``) vertex positions.
    faces : np.ndarray
        ``(F, 3)`` vertex indices of each triangle.
    tol : float, optional
        Relative tolerance, scaled by the mesh extent, below which
        projections are considered touching and areas degenerate.

    Returns
    -------
    SelfIntersectionReport
        ``intersects`` flag, the ``(K, 2)`` intersecting face pairs (``i < j``)
        and a ``(K,)`` flag marking which of them are coplanar.
    """
    pos = as_3d_positions(vertices)
    faces = np.asarray(faces, dtype=int)
    if faces.size == 0:
        return _empty_report()
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError(f"Expected an (F, 3) face array, got {faces.shape}")

    extent = float(np.ptp(pos, axis=0).max()) if len(pos) else 0.0
    scale = max(extent, 1.0)
    eps = tol * scale

    _, areas = triangle_normals_and_areas(pos, faces)
    valid = np.flatnonzero(areas > tol * scale * scale)
    if valid.size < 2:
        return _empty_report()

    centres, radii = triangle_bounding_spheres(pos, faces[valid])
    tree = cKDTree(centres)
    candidates = tree.query_pairs(
        r=2.0 * float(radii.max()) + eps, output_type="ndarray"
    )
    if len(candidates) == 0:
        return _empty_report()

    gap = np.linalg.norm(centres[candidates[:, 0]] - centres[candidates[:, 1]], axis=1)
    candidates = candidates[gap <= radii[candidates[:, 0]] + radii[candidates[:, 1]] + eps]

    hits = []
    hit_coplanar = []
    for start in range(0, len(candidates), _PAIR_CHUNK):
        chunk = valid[candidates[start:start + _PAIR_CHUNK]]
        fa = faces[chunk[:, 0]]
        fb = faces[chunk[:, 1]]
        adjacent = np.any(fa[:, :, None] == fb[:, None, :], axis=(1, 2))
        overlap, coplanar = _overlapping_pairs(pos[fa], pos[fb], eps, adjacent)
        hits.append(chunk[overlap])
        hit_coplanar.append(coplanar[overlap])

    face_pairs = np.sort(np.concatenate(hits), axis=1) if hits else np.zeros((0, 2), int)
    coplanar = np.concatenate(hit_coplanar) if hit_coplanar else np.zeros(0, bool)
    order = np.lexsort((face_pairs[:, 1], face_pairs[:, 0]))
    face_pairs = face_pairs[order]
    coplanar = coplanar[order]

    if len(face_pairs):
        logger.debug(
            "Self-intersection test: %d of %d candidate face pairs overlap.",
            len(face_pairs),
            len(candidates),
        )
    return SelfIntersectionReport(bool(len(face_pairs)), face_pairs, coplanar)


def self_intersects(vertices: np.ndarray, faces: np.ndarray) -> bool:
    """Return ``True`` if any two faces of the mesh overlap."""
    return find_self_intersections(vertices, faces).intersects
