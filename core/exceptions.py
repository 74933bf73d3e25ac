"""Custom exception types for the quasiconformal mapping toolkit."""

from __future__ import annotations


class QCMapError(Exception):
    """Base class for domain-specific errors."""


class InvalidParameterError(QCMapError, ValueError):
    """Raised when a configuration value is outside its admissible range."""

    def __init__(self, name: str, value, message: str | None = None) -> None:
        if message is None:
            message = f"Invalid value {value!r} for parameter '{name}'."
        super().__init__(message)
        self.name = name
        self.value = value


class LineSearchError(QCMapError):
    """Base class for fatal line-search failures.

    ``step`` is the step length in force when the failure was raised and
    ``iteration`` the zero-based trial counter (``None`` when the failure
    happened before the first trial).
    """

    def __init__(
        self,
        message: str,
        *,
        step: float | None = None,
        iteration: int | None = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.iteration = iteration


class LineSearchPreconditionError(LineSearchError, ValueError):
    """Raised when the inputs of a line search can never succeed."""


class NegativeStepError(LineSearchPreconditionError):
    """Raised when the initial step length is negative."""

    def __init__(self, step: float) -> None:
        super().__init__(
            f"'step' must be non-negative (got {step:g}).", step=step
        )


class NonDescentDirectionError(LineSearchPreconditionError):
    """Raised when the search direction does not decrease the energy."""

    def __init__(self, slope: float, *, step: float | None = None) -> None:
        super().__init__(
            "The update direction increases the objective function value "
            f"(grad . direction = {slope:g}).",
            step=step,
        )
        self.slope = slope


class InvalidTerminationError(LineSearchPreconditionError):
    """Raised when the termination policy is not recognized."""

    def __init__(self, policy, *, step: float | None = None,
                 iteration: int | None = None) -> None:
        super().__init__(
            f"Invalid line search termination procedure: {policy!r}.",
            step=step,
            iteration=iteration,
        )
        self.policy = policy


class LineSearchExhaustedError(LineSearchError, RuntimeError):
    """Raised when the retry budget of a line search runs out."""


class MaxLineSearchIterationsError(LineSearchExhaustedError):
    """Raised when the iteration cap is reached."""


class StepUnderflowError(LineSearchExhaustedError):
    """Raised when the step length drops below the minimum."""


class StepOverflowError(LineSearchExhaustedError):
    """Raised when the step length exceeds the maximum."""


__all__ = [
    "QCMapError",
    "InvalidParameterError",
    "LineSearchError",
    "LineSearchPreconditionError",
    "NegativeStepError",
    "NonDescentDirectionError",
    "InvalidTerminationError",
    "LineSearchExhaustedError",
    "MaxLineSearchIterationsError",
    "StepUnderflowError",
    "StepOverflowError",
]
