# line_search_parameters.py

import enum
import json
import logging
import math

import numpy as np
import yaml

from core.exceptions import InvalidParameterError

logger = logging.getLogger("qcmap")


class LineSearchTermination(enum.Enum):
    NONE = 0
    DECREASE = 1
    ARMIJO = 2

    @classmethod
    def coerce(cls, value) -> "LineSearchTermination | None":
        """Map a member, a case-insensitive name or an integer code to a member.

        Unknown values map to ``None``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            try:
                return cls(int(value))
            except ValueError:
                return None
        return None

# Spellings used by older configuration files.
_ALIASES = {
    "maxLineSearch": "max_line_search",
    "minStep": "min_step",
    "maxStep": "max_step",
    "checkSelfIntersections": "check_self_intersections",
    "lineSearchTermination": "line_search_termination",
}


class LineSearchParameters:
    def __init__(self, initial_params=None):
        """
        all parameters are defined with underscore, _, instead of spaces
        """
        self._params = {
            # Fraction of the predicted linear decrease the Armijo test demands.
            "ftol": 1e-4,
            # Trials beyond the first one before the search gives up.
            "max_line_search": 20,
            "min_step": 1e-20,
            "max_step": 1e20,
            # Reject trials whose planar layout folds over itself. This is the
            # most expensive feasibility test.
            "check_self_intersections": True,
            #   "none"     – accept the first admissible trial.
            #   "decrease" – accept any trial that does not raise the energy.
            #   "armijo"   – require sufficient decrease.
            "line_search_termination": "armijo",
            "step_decrease_factor": 0.5,
            # Only used by callers that warm-start the next outer iteration;
            # the backtracking search itself never grows the step.
            "step_increase_factor": 2.1,
        }
        if initial_params:
            self.update(initial_params)

    def __getattr__(self, name):
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            return params[name]
        raise AttributeError(
            f"{type(self).__name__!s} object has no attribute {name!r}"
        )

    def __setattr__(self, name, value):
        if name == "_params":
            object.__setattr__(self, name, value)
            return
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            params[name] = value
            return
        object.__setattr__(self, name, value)

    def get(self, key, default=None):
        """Retrieve a parameter value, or return a default if not found."""
        return self._params.get(_ALIASES.get(key, key), default)

    def set(self, key, value):
        """Set or update a parameter."""
        self._params[_ALIASES.get(key, key)] = value

    def update(self, params):
        """Update multiple parameters at once."""
        for key, value in dict(params).items():
            self.set(key, value)

    def check(self):
        """Raise ``InvalidParameterError`` if any value is out of range."""
        ftol = self._params["ftol"]
        if not (0.0 < ftol < 0.5):
            raise InvalidParameterError(
                "ftol", ftol, f"'ftol' must satisfy 0 < ftol < 0.5 (got {ftol!r})."
            )
        max_ls = self._params["max_line_search"]
        if isinstance(max_ls, bool) or int(max_ls) != max_ls or max_ls < 0:
            raise InvalidParameterError(
                "max_line_search",
                max_ls,
                f"'max_line_search' must be a non-negative integer (got {max_ls!r}).",
            )
        min_step = self._params["min_step"]
        if not (min_step >= 0.0):
            raise InvalidParameterError(
                "min_step", min_step, f"'min_step' must be non-negative (got {min_step!r})."
            )
        max_step = self._params["max_step"]
        if not (max_step > min_step):
            raise InvalidParameterError(
                "max_step",
                max_step,
                f"'max_step' must be greater than 'min_step' (got {max_step!r}).",
            )
        dec = self._params["step_decrease_factor"]
        if not (0.0 < dec < 1.0):
            raise InvalidParameterError("step_decrease_factor", dec)
        inc = self._params["step_increase_factor"]
        if not (math.isfinite(inc) and inc > 1.0):
            raise InvalidParameterError("step_increase_factor", inc)
        policy = self._params["line_search_termination"]
        if LineSearchTermination.coerce(policy) is None:
            raise InvalidParameterError(
                "line_search_termination",
                policy,
                "'line_search_termination' must be one of 'none', 'decrease' "
                f"or 'armijo' (got {policy!r}).",
            )
        return self

    def __contains__(self, key):
        """Check if a parameter exists."""
        return _ALIASES.get(key, key) in self._params

    def __repr__(self):
        return f"LineSearchParameters({self._params})"

    def to_dict(self):
        """Convert the parameters to a dictionary for serialization."""
        return self._params


def load_parameters(filename):
    """Load line-search parameters from a YAML or JSON file.

    The options may sit at the top level of the document or under a
    ``line_search`` key:

        line_search:
          ftol: 1.0e-4
          max_line_search: 30
          line_search_termination: armijo
    """
    filename_str = str(filename)
    with open(filename_str, "r") as f:
        if filename_str.endswith((".yaml", ".yml")):
            data = yaml.safe_load(f)
        elif filename_str.endswith(".json"):
            data = json.load(f)
        else:
            logger.error(f"Unsupported file format for: {filename_str}")
            raise ValueError(f"Unsupported file format for: {filename_str}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping of parameters in {filename_str}, got {type(data).__name__}"
        )
    data = data.get("line_search", data)

    params = LineSearchParameters(data)
    logger.debug("Loaded line search parameters from %s: %s", filename_str, params)
    return params.check()
