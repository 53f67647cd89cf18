import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cgdescent.config.methods import ConjugateMethod, FixedStep, LineSearch, StepMethod, parse_step_method

MAX_ITERATIONS_ENV_VAR = "CGDESCENT_MAX_ITERATIONS"
DEFAULT_MAX_ITERATIONS = 1000


def _read_mapping(path: Path) -> Dict[str, Any]:
    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML config at {path}: {exc}") from exc
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config at {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config at {path} must be a mapping, got {type(data).__name__}")
    return data


def _check_keys(section: str, data: Dict[str, Any], allowed: set) -> None:
    for key in data:
        if key not in allowed:
            raise ValueError(f"Unknown {section} key '{key}'")


@dataclass
class LineSearchConfig:
    """Backtracking parameters.

    ``c1`` is the Armijo sufficient-decrease tolerance, ``contraction`` the
    shrink factor per failed trial, ``growth`` the factor applied to the
    previous accepted step to form the next initial trial.
    """

    c1: float = 1e-4
    contraction: float = 0.5
    growth: float = 2.1
    max_attempts: int = 60

    def __post_init__(self) -> None:
        if not 0.0 < self.c1 < 1.0:
            raise ValueError("Line search c1 must satisfy 0 < c1 < 1")
        if not 0.0 < self.contraction < 1.0:
            raise ValueError("Line search contraction must satisfy 0 < contraction < 1")
        if self.growth <= 0:
            raise ValueError("Line search growth must be positive")
        if self.max_attempts <= 0:
            raise ValueError("Line search max_attempts must be positive")

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "LineSearchConfig":
        if not data:
            return cls()
        _check_keys("line_search", data, {"c1", "contraction", "growth", "max_attempts"})
        kwargs: Dict[str, Any] = {}
        for key in ("c1", "contraction", "growth"):
            if key in data:
                kwargs[key] = float(data[key])
        if "max_attempts" in data:
            kwargs["max_attempts"] = int(data["max_attempts"])
        return cls(**kwargs)


@dataclass
class ConvergenceConfig:
    """Caller-side stopping policy for the lazy iterate sequence.

    ``max_iterations`` is only a safety cap; it can be overridden through
    the CGDESCENT_MAX_ITERATIONS environment variable.
    """

    max_iterations: Optional[int] = None
    tol_abs: float = 1e-12
    tol_rel: float = 1e-10
    grad_tol: float = 1e-8
    patience: int = 3

    def __post_init__(self) -> None:
        self.max_iterations = _resolve_max_iterations(self.max_iterations)
        if self.tol_abs < 0 or self.tol_rel < 0 or self.grad_tol < 0:
            raise ValueError("Convergence tolerances must be non-negative")
        if self.patience <= 0:
            raise ValueError("Convergence patience must be positive")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConvergenceConfig":
        """Create config from dictionary, using defaults for missing fields."""
        if data is None:
            return cls()
        _check_keys("convergence", data, {"max_iterations", "tol_abs", "tol_rel", "grad_tol", "patience"})
        return cls(
            max_iterations=data.get("max_iterations"),
            tol_abs=float(data.get("tol_abs", 1e-12)),
            tol_rel=float(data.get("tol_rel", 1e-10)),
            grad_tol=float(data.get("grad_tol", 1e-8)),
            patience=int(data.get("patience", 3)),
        )


def _resolve_max_iterations(candidate: Optional[int]) -> int:
    env_value = os.getenv(MAX_ITERATIONS_ENV_VAR)
    if env_value is not None:
        try:
            parsed = int(env_value)
        except ValueError as exc:
            raise ValueError(f"Invalid {MAX_ITERATIONS_ENV_VAR}={env_value!r}") from exc
        if parsed <= 0:
            raise ValueError(f"{MAX_ITERATIONS_ENV_VAR} must be positive")
        return parsed
    if candidate is None:
        return DEFAULT_MAX_ITERATIONS
    parsed = int(candidate)
    if parsed <= 0:
        raise ValueError("max_iterations must be positive")
    return parsed


@dataclass
class OptimizerConfig:
    step_method: StepMethod = field(default_factory=LineSearch)
    conjugate_method: ConjugateMethod = ConjugateMethod.POLAK_RIBIERE
    line_search: LineSearchConfig = field(default_factory=LineSearchConfig)
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    gamma: float = 0.2
    direction_blend: float = 0.1
    initial_step: float = 1e-5

    def __post_init__(self) -> None:
        self.conjugate_method = ConjugateMethod.parse(self.conjugate_method)
        if not isinstance(self.step_method, (FixedStep, LineSearch)):
            raise ValueError(f"Unsupported step method {self.step_method!r}")
        if self.gamma <= 0:
            raise ValueError("gamma must be positive")
        if self.initial_step <= 0:
            raise ValueError("initial_step must be positive")

    def with_overrides(
        self,
        conjugate_method: Optional[Any] = None,
        step_method: Optional[StepMethod] = None,
        max_iterations: Optional[int] = None,
    ) -> "OptimizerConfig":
        """Return a copy with the given fields replaced.

        The copy is validated like a freshly built config, and the
        CGDESCENT_MAX_ITERATIONS override still wins over ``max_iterations``.
        """
        convergence = self.convergence
        if max_iterations is not None:
            convergence = replace(convergence, max_iterations=max_iterations)
        return replace(
            self,
            conjugate_method=self.conjugate_method if conjugate_method is None else conjugate_method,
            step_method=self.step_method if step_method is None else step_method,
            convergence=convergence,
        )

    @classmethod
    def from_file(cls, path: Path) -> "OptimizerConfig":
        return cls.from_dict(_read_mapping(path))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OptimizerConfig":
        if not data:
            return cls()
        _check_keys(
            "optimizer",
            data,
            {
                "step_method",
                "step_size",
                "conjugate_method",
                "line_search",
                "convergence",
                "gamma",
                "direction_blend",
                "initial_step",
            },
        )
        step_method = parse_step_method(data.get("step_method", "line_search"), data.get("step_size"))
        return cls(
            step_method=step_method,
            conjugate_method=ConjugateMethod.parse(data.get("conjugate_method", "polak_ribiere")),
            line_search=LineSearchConfig.from_mapping(data.get("line_search")),
            convergence=ConvergenceConfig.from_dict(data.get("convergence")),
            gamma=float(data.get("gamma", 0.2)),
            direction_blend=float(data.get("direction_blend", 0.1)),
            initial_step=float(data.get("initial_step", 1e-5)),
        )
