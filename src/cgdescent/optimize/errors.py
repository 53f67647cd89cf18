"""Failure conditions reported by the optimizer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cgdescent.optimize.line_search import BacktrackingState


class OptimizationError(Exception):
    """Base class for terminal failures of an optimization run."""


class DegenerateDirection(OptimizationError):
    """A beta formula hit a zero or non-finite denominator."""

    def __init__(self, method: str, denominator: float) -> None:
        super().__init__(f"Degenerate {method} denominator: {denominator!r}")
        self.method = method
        self.denominator = denominator


class LineSearchFailed(OptimizationError):
    """Backtracking exhausted its attempts without satisfying the Armijo condition."""

    def __init__(self, best: "BacktrackingState", attempts: int) -> None:
        super().__init__(
            f"Line search failed after {attempts} shrinks "
            f"(best step={best.x!r}, f={best.fx!r}, base f={best.base_f!r})"
        )
        self.best = best
        self.attempts = attempts


class OptimizationDiverged(OptimizationError):
    """An iterate produced a NaN or infinite objective, point or gradient."""

    def __init__(self, state: Any, reason: str) -> None:
        super().__init__(f"Optimization diverged: {reason}")
        self.state = state
        self.reason = reason
