from cgdescent.optimize.conjugate import (
    DirectionUpdate,
    conjugacy_lost,
    effective_beta,
    next_direction,
    raw_beta,
    update_direction,
)
from cgdescent.optimize.errors import (
    DegenerateDirection,
    LineSearchFailed,
    OptimizationDiverged,
    OptimizationError,
)
from cgdescent.optimize.gradient_descent import (
    ConjugateGradientDescent,
    OptimizerState,
    conjugate_gradient_descent,
    conjugate_gradient_descent_,
    steepest_descent,
)
from cgdescent.optimize.line_search import BacktrackingState, armijo_satisfied, backtracking, evaluate_trial

__all__ = [
    "BacktrackingState",
    "ConjugateGradientDescent",
    "DegenerateDirection",
    "DirectionUpdate",
    "LineSearchFailed",
    "OptimizationDiverged",
    "OptimizationError",
    "OptimizerState",
    "armijo_satisfied",
    "backtracking",
    "conjugacy_lost",
    "conjugate_gradient_descent",
    "conjugate_gradient_descent_",
    "effective_beta",
    "evaluate_trial",
    "next_direction",
    "raw_beta",
    "steepest_descent",
    "update_direction",
]
