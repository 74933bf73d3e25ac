import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import (
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


@pytest.mark.parametrize(
    "exc_type", [NegativeStepError, NonDescentDirectionError, InvalidTerminationError]
)
def test_preconditions_are_value_errors(exc_type):
    assert issubclass(exc_type, LineSearchPreconditionError)
    assert issubclass(exc_type, ValueError)
    assert issubclass(exc_type, LineSearchError)


@pytest.mark.parametrize(
    "exc_type", [MaxLineSearchIterationsError, StepUnderflowError, StepOverflowError]
)
def test_exhaustion_errors_are_runtime_errors(exc_type):
    assert issubclass(exc_type, LineSearchExhaustedError)
    assert issubclass(exc_type, RuntimeError)
    assert issubclass(exc_type, QCMapError)


def test_errors_carry_step_and_iteration():
    err = StepUnderflowError("too small", step=1e-21, iteration=70)
    assert err.step == 1e-21
    assert err.iteration == 70
    assert str(err) == "too small"


def test_non_descent_message_mentions_slope():
    err = NonDescentDirectionError(0.25)
    assert err.slope == 0.25
    assert "increases the objective" in str(err)
    assert err.iteration is None
