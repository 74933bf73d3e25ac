"""Constrained backtracking line search for quasiconformal surface maps.

The implementation lives in the top-level packages `core/`, `geometry/` and
`runtime/`. This package re-exports the public entry points.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from core.exceptions import (
    InvalidParameterError,
    InvalidTerminationError,
    LineSearchError,
    LineSearchExhaustedError,
    LineSearchPreconditionError,
    MaxLineSearchIterationsError,
    NegativeStepError,
    NonDescentDirectionError,
    QCMapError,
    StepOverflowError,
    StepUnderflowError,
)
from core.parameters.line_search_parameters import (
    LineSearchParameters,
    load_parameters,
)
from geometry.averaging import mesh_averaging_operators
from geometry.beltrami import complex_to_real, real_to_complex
from geometry.self_intersection import find_self_intersections, self_intersects
from geometry.unit_disk import clip_to_unit_disk, lift_to_3d
from runtime.line_search import (
    EnergyEvaluation,
    LineSearchBacktracking,
    LineSearchProblem,
    LineSearchResult,
    LineSearchTermination,
    line_search_backtracking,
)
from runtime.logging_config import setup_logging

try:
    __version__ = version("qcmap")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "EnergyEvaluation",
    "InvalidParameterError",
    "InvalidTerminationError",
    "LineSearchBacktracking",
    "LineSearchError",
    "LineSearchExhaustedError",
    "LineSearchParameters",
    "LineSearchPreconditionError",
    "LineSearchProblem",
    "LineSearchResult",
    "LineSearchTermination",
    "MaxLineSearchIterationsError",
    "NegativeStepError",
    "NonDescentDirectionError",
    "QCMapError",
    "StepOverflowError",
    "StepUnderflowError",
    "clip_to_unit_disk",
    "complex_to_real",
    "find_self_intersections",
    "line_search_backtracking",
    "lift_to_3d",
    "load_parameters",
    "mesh_averaging_operators",
    "real_to_complex",
    "self_intersects",
    "setup_logging",
]
