"""Helpers for planar mappings that live in the closed unit disk."""

from __future__ import annotations

import numpy as np

_ONE_MINUS_EPS = 1.0 - np.finfo(float).eps


def clip_to_unit_disk(boundary_ids, w: np.ndarray) -> np.ndarray:
    """Project boundary entries of ``w`` lying outside the unit disk onto its rim.

    ``w`` is modified in place and returned. Entries already inside the
    closed disk are left untouched.
    """
    boundary_ids = np.asarray(boundary_ids, dtype=int)
    if boundary_ids.size == 0:
        return w

    wb = w[boundary_ids]
    radius = np.abs(wb)
    outside = radius > 1.0
    if not np.any(outside):
        return w

    projected = wb[outside] / radius[outside]
    # Rounding in the division can leave |w| a hair above one.
    overshoot = np.abs(projected) > 1.0
    while np.any(overshoot):
        projected[overshoot] *= _ONE_MINUS_EPS
        overshoot = np.abs(projected) > 1.0
    wb[outside] = projected
    w[boundary_ids] = wb
    return w


def lift_to_3d(w: np.ndarray) -> np.ndarray:
    """Embed a complex planar mapping in 3D as ``[Re w, Im w, 0]``."""
    w = np.asarray(w)
    return np.column_stack([w.real, w.imag, np.zeros(w.shape[0])])
