from cgdescent.config.methods import ConjugateMethod, FixedStep, LineSearch, StepMethod, parse_step_method
from cgdescent.config.models import (
    MAX_ITERATIONS_ENV_VAR,
    ConvergenceConfig,
    LineSearchConfig,
    OptimizerConfig,
)

__all__ = [
    "MAX_ITERATIONS_ENV_VAR",
    "ConjugateMethod",
    "ConvergenceConfig",
    "FixedStep",
    "LineSearch",
    "LineSearchConfig",
    "OptimizerConfig",
    "StepMethod",
    "parse_step_method",
]
