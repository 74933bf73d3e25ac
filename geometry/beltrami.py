"""Packing of the complex Beltrami coefficient into a real parameter vector.

The optimizer works on ``x = [Re(mu); Im(mu)]`` so that gradients and search
directions are ordinary real vectors of length ``2 * n_vertices``.
"""

from __future__ import annotations

import numpy as np


def real_to_complex(x: np.ndarray) -> np.ndarray:
    """Unpack a real parameter vector into the per-vertex coefficient field."""
    x = np.asarray(x, dtype=float)
    if x.ndim != 1 or x.size % 2:
        raise ValueError(
            f"Parameter vector must be 1D with even length, got shape {x.shape}"
        )
    n = x.size // 2
    return x[:n] + 1j * x[n:]


def complex_to_real(mu: np.ndarray) -> np.ndarray:
    """Pack a per-vertex coefficient field into a real parameter vector."""
    mu = np.asarray(mu, dtype=complex)
    return np.concatenate([mu.real, mu.imag])
