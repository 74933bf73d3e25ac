"""Vectorized triangle geometry helpers shared by the mesh utilities."""

from __future__ import annotations

import numpy as np


def _fast_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Compute cross products for arrays of 3D vectors."""
    x = a[..., 1] * b[..., 2] - a[..., 2] * b[..., 1]
    y = a[..., 2] * b[..., 0] - a[..., 0] * b[..., 2]
    z = a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0]
    out = np.empty(x.shape + (3,), dtype=np.result_type(x, y, z))
    out[..., 0] = x
    out[..., 1] = y
    out[..., 2] = z
    return out


def as_3d_positions(vertices: np.ndarray) -> np.ndarray:
    """Return ``vertices`` as a float ``(N, 3)`` array, padding 2D input with z=0."""
    pos = np.asarray(vertices, dtype=float)
    if pos.ndim != 2 or pos.shape[1] not in (2, 3):
        raise ValueError(f"Expected an (N, 2) or (N, 3) vertex array, got {pos.shape}")
    if pos.shape[1] == 2:
        pos = np.column_stack([pos, np.zeros(len(pos))])
    return pos


def triangle_normals_and_areas(
    positions: np.ndarray, tri_rows: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Return unnormalized triangle normals and triangle areas."""
    v0 = positions[tri_rows[:, 0]]
    v1 = positions[tri_rows[:, 1]]
    v2 = positions[tri_rows[:, 2]]
    normals = _fast_cross(v1 - v0, v2 - v0)
    areas = 0.5 * np.linalg.norm(normals, axis=1)
    return normals, areas


def triangle_corner_angles(positions: np.ndarray, tri_rows: np.ndarray) -> np.ndarray:
    """Return the interior angle at each corner as an ``(F, 3)`` array.

    Column ``i`` holds the angle at vertex ``tri_rows[:, i]``.
    """
    p = positions[tri_rows]
    angles = np.empty(tri_rows.shape, dtype=float)
    for i in range(3):
        a = p[:, (i + 1) % 3] - p[:, i]
        b = p[:, (i + 2) % 3] - p[:, i]
        # atan2 of |a x b| and a.b stays accurate for needle triangles.
        sin_part = np.linalg.norm(_fast_cross(a, b), axis=1)
        cos_part = np.einsum("ij,ij->i", a, b)
        angles[:, i] = np.arctan2(sin_part, cos_part)
    return angles


def triangle_bounding_spheres(
    positions: np.ndarray, tri_rows: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Return centroid-centred bounding spheres (centres, radii) of triangles."""
    p = positions[tri_rows]
    centres = p.mean(axis=1)
    radii = np.linalg.norm(p - centres[:, None, :], axis=2).max(axis=1)
    return centres, radii
