"""
Nonlinear conjugate gradient descent over an abstract inner-product space.

The optimizer is a lazy, potentially infinite sequence of iterates: iterate
over a :class:`ConjugateGradientDescent` and stop pulling whenever the
caller's termination policy is satisfied.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

from cgdescent.config import (
    ConjugateMethod,
    FixedStep,
    LineSearch,
    LineSearchConfig,
    OptimizerConfig,
    StepMethod,
)
from cgdescent.optimize.conjugate import DEFAULT_DIRECTION_BLEND, DEFAULT_GAMMA, update_direction
from cgdescent.optimize.errors import OptimizationDiverged
from cgdescent.optimize.line_search import backtracking, evaluate_trial
from cgdescent.trace import Observer, combine_observers, make_record
from cgdescent.utils import get_logger
from cgdescent.vector import VectorSpace, resolve_space

logger = get_logger("optimize.gradient_descent")

Objective = Callable[[Any], float]
Gradient = Callable[[Any], Any]

DEFAULT_INITIAL_STEP = 1e-5


@dataclass(frozen=True)
class OptimizerState:
    """State threaded between iterations; replaced wholesale on every step."""

    x1: Any
    fx1: float
    grad1: Any
    step_size: float
    grad_prev: Any
    dir_prev: Any
    iteration: int = 0


class ConjugateGradientDescent:
    """
    Conjugate gradient descent with a configurable step policy and beta formula.

    Iterating yields one :class:`OptimizerState` per completed iteration.
    Observers receive every emitted state, every line-search trial, and a
    single completion signal when the iteration ends (the consumer stops
    pulling, or an error terminates the run).
    """

    def __init__(
        self,
        f: Objective,
        f_prime: Gradient,
        x0: Any,
        step_method: Optional[StepMethod] = None,
        conjugate_method: ConjugateMethod = ConjugateMethod.POLAK_RIBIERE,
        *,
        space: Optional[VectorSpace] = None,
        line_search: Optional[LineSearchConfig] = None,
        gamma: float = DEFAULT_GAMMA,
        direction_blend: float = DEFAULT_DIRECTION_BLEND,
        initial_step: float = DEFAULT_INITIAL_STEP,
        observers: Optional[Iterable[Observer]] = None,
    ) -> None:
        self.f = f
        self.f_prime = f_prime
        self.x0 = x0
        self.step_method = step_method if step_method is not None else LineSearch()
        if not isinstance(self.step_method, (FixedStep, LineSearch)):
            raise ValueError(f"Unsupported step method {self.step_method!r}")
        self.conjugate_method = ConjugateMethod.parse(conjugate_method)
        self.space = resolve_space(space)
        self.line_search = line_search if line_search is not None else LineSearchConfig()
        self.gamma = gamma
        self.direction_blend = direction_blend
        if initial_step <= 0:
            raise ValueError("initial_step must be positive")
        self.initial_step = initial_step
        self.observer = combine_observers(observers)
        attach = getattr(self.observer, "attach", None)
        if attach is not None:
            attach(self.space)

    @classmethod
    def from_config(
        cls,
        f: Objective,
        f_prime: Gradient,
        x0: Any,
        config: OptimizerConfig,
        *,
        space: Optional[VectorSpace] = None,
        observers: Optional[Iterable[Observer]] = None,
    ) -> "ConjugateGradientDescent":
        return cls(
            f,
            f_prime,
            x0,
            config.step_method,
            config.conjugate_method,
            space=space,
            line_search=config.line_search,
            gamma=config.gamma,
            direction_blend=config.direction_blend,
            initial_step=config.initial_step,
            observers=observers,
        )

    def initial_state(self) -> OptimizerState:
        """Seed state: gradient evaluated eagerly, objective left at +inf."""
        grad0 = self.f_prime(self.x0)
        state = OptimizerState(
            x1=self.x0,
            fx1=math.inf,
            grad1=grad0,
            step_size=self.initial_step,
            grad_prev=self.space.scale(2.0, grad0),
            dir_prev=grad0,
            iteration=0,
        )
        if not self.space.is_finite(grad0):
            raise OptimizationDiverged(state, "initial gradient is not finite")
        return state

    def step(self, state: OptimizerState) -> OptimizerState:
        """Perform a single iteration and return the next state."""
        space = self.space
        update = update_direction(
            self.conjugate_method,
            state.grad1,
            state.grad_prev,
            state.dir_prev,
            gamma=self.gamma,
            blend=self.direction_blend,
            space=space,
        )
        direction = update.direction
        iteration = state.iteration + 1

        if isinstance(self.step_method, FixedStep):
            alpha = self.step_method.value
            x = space.add(state.x1, space.scale(alpha, direction))
            fx = float(self.f(x))
            grad = self.f_prime(x)
        else:
            trial = evaluate_trial(
                self.f,
                self.f_prime,
                self.line_search.growth * state.step_size,
                direction,
                state.x1,
                state.fx1,
                state.grad1,
                space=space,
            )
            accepted = backtracking(
                self.f,
                self.f_prime,
                trial,
                c1=self.line_search.c1,
                contraction=self.line_search.contraction,
                max_attempts=self.line_search.max_attempts,
                space=space,
                observer=self.observer,
                iteration=iteration,
            )
            alpha, x, fx, grad = accepted.x, accepted.point, accepted.fx, accepted.grad

        new_state = OptimizerState(
            x1=x,
            fx1=fx,
            grad1=grad,
            step_size=alpha,
            grad_prev=state.grad1,
            dir_prev=direction,
            iteration=iteration,
        )
        logger.debug(
            "iter=%d fx=%.6e step=%.3e beta=%.4f lost=%s",
            iteration,
            fx,
            alpha,
            update.beta,
            update.conjugacy_lost,
        )
        if not math.isfinite(fx):
            raise OptimizationDiverged(new_state, f"objective is {fx} at iteration {iteration}")
        if not space.is_finite(x):
            raise OptimizationDiverged(new_state, f"iterate is not finite at iteration {iteration}")
        if not space.is_finite(grad):
            raise OptimizationDiverged(new_state, f"gradient is not finite at iteration {iteration}")
        return new_state

    def __iter__(self) -> Iterator[OptimizerState]:
        reason = "stopped"
        try:
            state = self.initial_state()
            while True:
                state = self.step(state)
                self.observer.on_record(make_record(state, state.iteration))
                yield state
        except Exception as exc:
            reason = f"error:{type(exc).__name__}"
            logger.warning("Optimization terminated: %s", exc)
            raise
        finally:
            self.observer.on_complete(reason)


def conjugate_gradient_descent_(
    step_method: StepMethod,
    conjugate_method: ConjugateMethod,
    f: Objective,
    f_prime: Gradient,
    x0: Any,
    *,
    space: Optional[VectorSpace] = None,
    line_search: Optional[LineSearchConfig] = None,
    gamma: float = DEFAULT_GAMMA,
    direction_blend: float = DEFAULT_DIRECTION_BLEND,
    initial_step: float = DEFAULT_INITIAL_STEP,
    observers: Optional[Iterable[Observer]] = None,
) -> ConjugateGradientDescent:
    """Conjugate gradient descent with every optimization parameter explicit."""
    return ConjugateGradientDescent(
        f,
        f_prime,
        x0,
        step_method,
        conjugate_method,
        space=space,
        line_search=line_search,
        gamma=gamma,
        direction_blend=direction_blend,
        initial_step=initial_step,
        observers=observers,
    )


def conjugate_gradient_descent(f: Objective, f_prime: Gradient, x0: Any, **kwargs: Any) -> ConjugateGradientDescent:
    """Conjugate gradient descent with recommended defaults (line search, Polak-Ribiere)."""
    return conjugate_gradient_descent_(LineSearch(), ConjugateMethod.POLAK_RIBIERE, f, f_prime, x0, **kwargs)


def steepest_descent(f: Objective, f_prime: Gradient, x0: Any, **kwargs: Any) -> ConjugateGradientDescent:
    """Plain gradient descent with line search; provided for comparison only."""
    return conjugate_gradient_descent_(LineSearch(), ConjugateMethod.NONE, f, f_prime, x0, **kwargs)
