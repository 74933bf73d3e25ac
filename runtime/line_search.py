"""Backtracking line search for the Beltrami coefficient / mapping pair.

Each trial is rebuilt from a snapshot of the state at entry,
``trial = original + step * direction``, so rejected trials never
accumulate. A trial must pass the feasibility filter before its energy is
evaluated; an admissible trial is then accepted or rejected by the
configured termination policy. Rejections halve the step until the
iteration cap or the step bounds are hit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple, Sequence

import numpy as np

from core.exceptions import (
    InvalidTerminationError,
    LineSearchError,
    MaxLineSearchIterationsError,
    NegativeStepError,
    NonDescentDirectionError,
    StepOverflowError,
    StepUnderflowError,
)
from core.parameters.line_search_parameters import (
    LineSearchParameters,
    LineSearchTermination,
)
from geometry.beltrami import real_to_complex
from geometry.self_intersection import self_intersects
from geometry.unit_disk import clip_to_unit_disk, lift_to_3d

logger = logging.getLogger("qcmap")


class EnergyEvaluation(NamedTuple):
    energy: float
    map_3d: np.ndarray
    gamma: np.ndarray


class TrialState(NamedTuple):
    x: np.ndarray
    mu: np.ndarray
    w: np.ndarray


@dataclass
class LineSearchProblem:
    """Fixed context of a line search on one surface.

    ``energy`` is called as
    ``energy(mu, w, interpolant, calc_growth_energy, calc_mu_energy)`` and
    must return an ``EnergyEvaluation`` (or an equivalent 3-tuple).
    """

    faces: np.ndarray
    boundary_ids: np.ndarray
    energy: Callable[..., Any]
    interpolant: Any = None
    unpack: Callable[[np.ndarray], np.ndarray] = real_to_complex
    self_intersects: Callable[[np.ndarray, np.ndarray], bool] = self_intersects

    def __post_init__(self) -> None:
        self.faces = np.asarray(self.faces, dtype=int)
        self.boundary_ids = np.asarray(self.boundary_ids, dtype=int)


@dataclass
class LineSearchResult:
    energy: float
    step: float
    iterations: int
    trial_steps: list[float] = field(default_factory=list)
    evaluation: EnergyEvaluation | None = None


# ---------------------------------------------------------------------------
# Trial construction
# ---------------------------------------------------------------------------


def build_trial(
    x0: np.ndarray,
    w0: np.ndarray,
    drt: np.ndarray,
    dw: np.ndarray,
    step: float,
    problem: LineSearchProblem,
    fixed_ids: Sequence[int] = (),
    out: TrialState | None = None,
) -> TrialState:
    """Return the candidate ``(x, mu, w)`` at ``step`` along the direction.

    Boundary vertices are clipped to the unit disk first and fixed points
    are pinned back to ``w0`` afterwards, so the clip can never move them.
    When ``out`` is given its ``x`` and ``w`` buffers are written in place.
    """
    if out is None:
        x = x0 + step * drt
        w = w0 + step * dw
    else:
        x, w = out.x, out.w
        np.multiply(drt, step, out=x)
        x += x0
        np.multiply(dw, step, out=w)
        w += w0

    mu = np.asarray(problem.unpack(x))
    clip_to_unit_disk(problem.boundary_ids, w)

    fixed_ids = np.asarray(fixed_ids, dtype=int)
    if fixed_ids.size:
        w[fixed_ids] = w0[fixed_ids]

    return TrialState(x, mu, w)


# ---------------------------------------------------------------------------
# Feasibility filter
# ---------------------------------------------------------------------------


def coefficients_in_unit_disk(trial: TrialState) -> bool:
    """Beltrami coefficients must stay strictly inside the unit disk."""
    return bool(np.all(np.abs(trial.mu) < 1.0))


def mapping_in_unit_disk(trial: TrialState) -> bool:
    return bool(np.all(np.abs(trial.w) <= 1.0))


def mapping_is_embedded(trial: TrialState, problem: LineSearchProblem) -> bool:
    """The planar layout, lifted to z=0, must not overlap itself."""
    return not problem.self_intersects(lift_to_3d(trial.w), problem.faces)


def rejection_reason(
    trial: TrialState,
    problem: LineSearchProblem,
    check_self_intersections: bool,
) -> str | None:
    """Return why ``trial`` is inadmissible, or ``None`` if it passes.

    The checks run cheapest first and stop at the first failure.
    """
    if not coefficients_in_unit_disk(trial):
        return "Beltrami coefficient magnitude >= 1"
    if not mapping_in_unit_disk(trial):
        return "mapping leaves the unit disk"
    if check_self_intersections and not mapping_is_embedded(trial, problem):
        return "mapping self-intersects"
    return None


def is_admissible(
    trial: TrialState,
    problem: LineSearchProblem,
    check_self_intersections: bool = True,
) -> bool:
    return rejection_reason(trial, problem, check_self_intersections) is None


# ---------------------------------------------------------------------------
# Termination policy
# ---------------------------------------------------------------------------


def _energy_increased(fx, fx_init, step, test_decr) -> bool:
    return fx > fx_init


def _insufficient_decrease(fx, fx_init, step, test_decr) -> bool:
    return fx > fx_init + step * test_decr


# Each stage first applies its rejection test, then accepts if the policy is
# the one that stops there. Stricter policies pass through the looser stages.
_TERMINATION_STAGES = (
    (None, LineSearchTermination.NONE),
    (_energy_increased, LineSearchTermination.DECREASE),
    (_insufficient_decrease, LineSearchTermination.ARMIJO),
)


def evaluate_termination(
    policy,
    fx: float,
    fx_init: float,
    step: float,
    test_decr: float,
    *,
    iteration: int | None = None,
) -> bool:
    """Return ``True`` to accept the trial energy ``fx`` under ``policy``.

    ``test_decr`` is ``ftol * grad.direction`` (negative for a descent
    direction). Non-finite energies are always rejected. An unrecognized
    policy raises ``InvalidTerminationError`` only for a trial that passes
    every rejection test; otherwise the trial is simply rejected.
    """
    if not math.isfinite(fx):
        return False
    resolved = LineSearchTermination.coerce(policy)
    for rejects, stops_here in _TERMINATION_STAGES:
        if rejects is not None and rejects(fx, fx_init, step, test_decr):
            return False
        if resolved is stops_here:
            return True
    raise InvalidTerminationError(policy, step=step, iteration=iteration)


def check_retry_budget(
    iteration: int, step: float, params: LineSearchParameters
) -> None:
    """Raise if a rejected trial may not be retried with a smaller step."""
    if iteration >= params.max_line_search:
        raise MaxLineSearchIterationsError(
            "The line search routine reached the maximum number of iterations",
            step=step,
            iteration=iteration,
        )
    if step < params.min_step:
        raise StepUnderflowError(
            "The line search step became smaller than the minimum allowed value",
            step=step,
            iteration=iteration,
        )
    if step > params.max_step:
        raise StepOverflowError(
            "The line search step became larger than the maximum allowed value",
            step=step,
            iteration=iteration,
        )


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def line_search_backtracking(
    problem: LineSearchProblem,
    params: LineSearchParameters,
    x: np.ndarray,
    w: np.ndarray,
    fixed_ids: Sequence[int],
    drt: np.ndarray,
    dw: np.ndarray,
    grad: np.ndarray,
    fx: float,
    step: float,
    calc_growth_energy: bool = True,
    calc_mu_energy: bool = True,
) -> LineSearchResult:
    """Backtrack along ``(drt, dw)`` until an admissible, acceptable step is found.

    Parameters
    ----------
    problem : LineSearchProblem
        Faces, boundary vertices and the energy collaborator.
    params : LineSearchParameters
        ``ftol``, ``max_line_search``, ``min_step``, ``max_step``,
        ``check_self_intersections`` and ``line_search_termination``.
    x : np.ndarray
        Real parameter vector; overwritten with the accepted candidate.
    w : np.ndarray
        Complex mapping; overwritten with the accepted candidate.
    fixed_ids : Sequence[int]
        Vertices whose mapping values stay pinned to their entry values.
    drt, dw : np.ndarray
        Search direction in parameter and mapping space.
    grad : np.ndarray
        Energy gradient with respect to ``x`` at entry.
    fx : float
        Energy at entry.
    step : float
        Initial step length.
    calc_growth_energy, calc_mu_energy : bool
        Passed through to the energy collaborator.

    Returns
    -------
    LineSearchResult
        Accepted energy and step, the number of trials used, every trial
        step in order, and the energy collaborator's last output.

    Raises
    ------
    NegativeStepError, NonDescentDirectionError
        Before any trial; ``x`` and ``w`` are untouched.
    InvalidTerminationError
        When a trial passes every termination test under an unknown policy.
    MaxLineSearchIterationsError, StepUnderflowError, StepOverflowError
        When a retry is needed but not allowed.

    Once trials have started, ``x`` and ``w`` are restored to their entry
    values before any exception propagates.
    """
    if step < 0.0:
        raise NegativeStepError(step)

    fx_init = float(fx)
    dg_init = float(np.dot(grad, drt))
    if not dg_init < 0.0:
        raise NonDescentDirectionError(dg_init, step=step)

    dec = params.step_decrease_factor
    test_decr = params.ftol * dg_init
    policy = params.line_search_termination
    check_si = bool(params.check_self_intersections)

    # Snapshot of the state at entry; every trial starts from here.
    x0 = x.copy()
    w0 = w.copy()
    trial_buffers = TrialState(x, None, w)

    trial_steps: list[float] = []
    iteration = 0
    try:
        while True:
            trial_steps.append(step)
            trial = build_trial(
                x0, w0, drt, dw, step, problem, fixed_ids, out=trial_buffers
            )

            reason = rejection_reason(trial, problem, check_si)
            if reason is None:
                evaluation = EnergyEvaluation(
                    *problem.energy(
                        trial.mu,
                        trial.w,
                        problem.interpolant,
                        calc_growth_energy,
                        calc_mu_energy,
                    )
                )
                fx = float(evaluation.energy)
                if evaluate_termination(
                    policy, fx, fx_init, step, test_decr, iteration=iteration
                ):
                    logger.debug(
                        "Line search accepted step %.3e after %d trial(s): "
                        "E0=%.6e, E=%.6e",
                        step,
                        iteration + 1,
                        fx_init,
                        fx,
                    )
                    return LineSearchResult(
                        energy=fx,
                        step=step,
                        iterations=iteration + 1,
                        trial_steps=trial_steps,
                        evaluation=evaluation,
                    )
                reason = (
                    "non-finite energy"
                    if not math.isfinite(fx)
                    else f"energy {fx:.6e} fails the {policy!s} test"
                )

            logger.debug(
                "Line search trial %d rejected at step %.3e: %s",
                iteration,
                step,
                reason,
            )
            check_retry_budget(iteration, step, params)
            step *= dec
            iteration += 1
    except Exception as exc:
        if isinstance(exc, LineSearchError):
            logger.warning("%s (step=%.3e, trials=%d)", exc, step, len(trial_steps))
        x[...] = x0
        w[...] = w0
        raise


class LineSearchBacktracking:
    """Backtracking line search bound to one problem and parameter set."""

    def __init__(
        self,
        problem: LineSearchProblem,
        params: LineSearchParameters | None = None,
    ) -> None:
        self.problem = problem
        self.params = (params or LineSearchParameters()).check()

    def search(
        self,
        x: np.ndarray,
        w: np.ndarray,
        fixed_ids: Sequence[int],
        drt: np.ndarray,
        dw: np.ndarray,
        grad: np.ndarray,
        fx: float,
        step: float,
        calc_growth_energy: bool = True,
        calc_mu_energy: bool = True,
    ) -> LineSearchResult:
        """Run :func:`line_search_backtracking` with the bound problem."""
        return line_search_backtracking(
            self.problem,
            self.params,
            x,
            w,
            fixed_ids,
            drt,
            dw,
            grad,
            fx,
            step,
            calc_growth_energy=calc_growth_energy,
            calc_mu_energy=calc_mu_energy,
        )

    def __repr__(self) -> str:  # pragma: no cover - simple utility
        return f"{self.__class__.__name__}(params={self.params!r})"
