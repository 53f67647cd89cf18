"""Backtracking line search with the Armijo sufficient-decrease test."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cgdescent.optimize.errors import LineSearchFailed
from cgdescent.trace import Observer, make_record
from cgdescent.utils import get_logger
from cgdescent.vector import VectorSpace, resolve_space

logger = get_logger("optimize.line_search")

Objective = Callable[[Any], float]
Gradient = Callable[[Any], Any]


@dataclass(frozen=True)
class BacktrackingState:
    """One trial step length, evaluated at ``base_point + x * direction``."""

    x: float
    fx: float
    grad: Any
    point: Any
    direction: Any
    base_point: Any
    base_f: float
    base_grad: Any
    attempt: int = 0


def evaluate_trial(
    f: Objective,
    f_prime: Gradient,
    step: float,
    direction: Any,
    base_point: Any,
    base_f: float,
    base_grad: Any,
    space: Optional[VectorSpace] = None,
    attempt: int = 0,
) -> BacktrackingState:
    """Evaluate the objective and gradient once at the trial step."""
    space = resolve_space(space)
    point = space.add(base_point, space.scale(step, direction))
    return BacktrackingState(
        x=step,
        fx=float(f(point)),
        grad=f_prime(point),
        point=point,
        direction=direction,
        base_point=base_point,
        base_f=base_f,
        base_grad=base_grad,
        attempt=attempt,
    )


def armijo_satisfied(state: BacktrackingState, c1: float, space: Optional[VectorSpace] = None) -> bool:
    """``f(x0 + a*d) <= f(x0) + c1 * a * <f'(x0), d>``; NaN never satisfies it."""
    space = resolve_space(space)
    slope = space.inner(state.base_grad, state.direction)
    return state.fx <= state.base_f + c1 * state.x * slope


def backtracking(
    f: Objective,
    f_prime: Gradient,
    initial: BacktrackingState,
    *,
    c1: float = 1e-4,
    contraction: float = 0.5,
    max_attempts: int = 60,
    space: Optional[VectorSpace] = None,
    observer: Optional[Observer] = None,
    iteration: int = 0,
) -> BacktrackingState:
    """
    Shrink the trial step until the Armijo condition holds.

    The evaluation already stored in ``initial`` is reused, so each shrink
    costs exactly one objective and one gradient evaluation.

    Raises:
        LineSearchFailed: after ``max_attempts`` shrinks, carrying the trial
            with the lowest objective seen.
    """
    space = resolve_space(space)
    state = initial
    best = initial
    if observer is not None:
        observer.on_record(make_record(state, iteration))
    while not armijo_satisfied(state, c1, space):
        if state.attempt >= max_attempts:
            logger.warning(
                "Line search gave up at iteration %d after %d shrinks (step=%.3e)",
                iteration,
                state.attempt,
                state.x,
            )
            raise LineSearchFailed(best, state.attempt)
        state = evaluate_trial(
            f,
            f_prime,
            state.x * contraction,
            state.direction,
            state.base_point,
            state.base_f,
            state.base_grad,
            space=space,
            attempt=state.attempt + 1,
        )
        if observer is not None:
            observer.on_record(make_record(state, iteration))
        if state.fx < best.fx or math.isnan(best.fx):
            best = state
    return state
