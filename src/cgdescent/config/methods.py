"""Step-size and conjugate-direction policies.

Both are closed sets of variants and are dispatched with a single
``isinstance``/enum switch inside the optimizer step.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ConjugateMethod(str, Enum):
    """Formula for the conjugate-direction coefficient beta.

    See https://en.wikipedia.org/wiki/Nonlinear_conjugate_gradient_method
    """

    NONE = "none"
    FLETCHER_REEVES = "fletcher_reeves"
    POLAK_RIBIERE = "polak_ribiere"
    HESTENES_STIEFEL = "hestenes_stiefel"

    @classmethod
    def parse(cls, value: Union[str, "ConjugateMethod"]) -> "ConjugateMethod":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError as exc:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown conjugate method '{value}' (expected one of: {choices})") from exc


@dataclass(frozen=True)
class FixedStep:
    """Always move by ``value`` along the search direction."""

    value: float

    def __post_init__(self) -> None:
        if not self.value > 0:
            raise ValueError("Fixed step size must be positive")


@dataclass(frozen=True)
class LineSearch:
    """Pick the step size with a backtracking Armijo line search."""


StepMethod = Union[FixedStep, LineSearch]


def parse_step_method(kind: str, step_size: float | None = None) -> StepMethod:
    key = str(kind).strip().lower().replace("-", "_")
    if key in {"line_search", "linesearch"}:
        return LineSearch()
    if key in {"fixed", "step_size"}:
        if step_size is None:
            raise ValueError("Fixed step policy requires 'step_size'")
        return FixedStep(float(step_size))
    raise ValueError(f"Unknown step method '{kind}' (expected 'line_search' or 'fixed')")
