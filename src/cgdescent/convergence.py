"""Caller-side termination policy for the lazy optimizer sequence."""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from cgdescent.config import ConvergenceConfig, OptimizerConfig
from cgdescent.optimize import ConjugateGradientDescent, OptimizerState
from cgdescent.trace import Observer
from cgdescent.utils import get_logger
from cgdescent.vector import VectorSpace, resolve_space

logger = get_logger("convergence")


@dataclass
class ConvergenceStatus:
    """Current state of convergence tracking."""

    iteration: int = 0
    prev_fx: float = math.inf
    delta: float = math.inf
    grad_norm: float = math.inf
    streak: int = 0
    converged: bool = False
    should_stop: bool = False
    stop_reason: str = ""


@dataclass
class OptimizationResult:
    state: Optional[OptimizerState]
    iterations: int
    converged: bool
    stop_reason: str
    history: List[OptimizerState] = field(default_factory=list)


class ConvergenceTracker:
    """
    Decides when to stop pulling iterates.

    Stops on a small gradient norm, or once the objective change stays below
    tolerance for ``patience`` consecutive iterations. ``max_iterations`` is a
    safety cap and is reported as not converged.
    """

    def __init__(self, config: Optional[ConvergenceConfig] = None, space: Optional[VectorSpace] = None) -> None:
        self.config = config if config is not None else ConvergenceConfig()
        self.space = resolve_space(space)
        self.status = ConvergenceStatus()

    def update(self, state: OptimizerState) -> ConvergenceStatus:
        status = self.status
        status.iteration = state.iteration
        status.grad_norm = math.sqrt(max(self.space.inner(state.grad1, state.grad1), 0.0))

        if status.grad_norm <= self.config.grad_tol:
            status.converged = True
            status.should_stop = True
            status.stop_reason = "gradient_tolerance"
            logger.info(f"Iteration {state.iteration}: gradient norm {status.grad_norm:.2e} below tolerance")
        elif math.isfinite(status.prev_fx):
            status.delta = abs(status.prev_fx - state.fx1)
            rel_delta = status.delta / (abs(status.prev_fx) + 1e-300)
            if status.delta <= self.config.tol_abs or rel_delta <= self.config.tol_rel:
                status.streak += 1
                logger.debug(
                    f"Iteration {state.iteration}: delta={status.delta:.2e}, "
                    f"streak={status.streak}/{self.config.patience}"
                )
            else:
                status.streak = 0
            if status.streak >= self.config.patience:
                status.converged = True
                status.should_stop = True
                status.stop_reason = "objective_tolerance"
                logger.info(f"Objective converged at iteration {state.iteration}")

        status.prev_fx = state.fx1

        if not status.should_stop and state.iteration >= self.config.max_iterations:
            status.should_stop = True
            status.stop_reason = "max_iterations_reached"
            logger.info(f"Max iterations ({self.config.max_iterations}) reached, stopping")

        return status


def run_until_converged(
    iterates: Iterable[OptimizerState],
    config: Optional[ConvergenceConfig] = None,
    *,
    space: Optional[VectorSpace] = None,
    keep_history: bool = False,
    callback: Optional[Callable[[OptimizerState, ConvergenceStatus], None]] = None,
) -> OptimizationResult:
    """Consume ``iterates`` until the tracker says stop, then close the sequence."""
    tracker = ConvergenceTracker(config, space)
    history: List[OptimizerState] = []
    last: Optional[OptimizerState] = None
    iterator = iter(iterates)
    try:
        for state in iterator:
            last = state
            if keep_history:
                history.append(state)
            status = tracker.update(state)
            if callback is not None:
                callback(state, status)
            if status.should_stop:
                break
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
    status = tracker.status
    return OptimizationResult(
        state=last,
        iterations=last.iteration if last is not None else 0,
        converged=status.converged,
        stop_reason=status.stop_reason or "exhausted",
        history=history,
    )


def minimize(
    f: Callable[[Any], float],
    f_prime: Callable[[Any], Any],
    x0: Any,
    config: Optional[OptimizerConfig] = None,
    *,
    space: Optional[VectorSpace] = None,
    observers: Optional[Iterable[Observer]] = None,
    keep_history: bool = False,
) -> OptimizationResult:
    """Run conjugate gradient descent from ``x0`` until convergence."""
    config = config if config is not None else OptimizerConfig()
    optimizer = ConjugateGradientDescent.from_config(f, f_prime, x0, config, space=space, observers=observers)
    return run_until_converged(optimizer, config.convergence, space=space, keep_history=keep_history)
