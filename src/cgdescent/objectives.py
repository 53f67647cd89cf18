"""Benchmark objectives and a registry used by the command-line runner."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict

import numpy as np


@dataclass(frozen=True)
class Problem:
    name: str
    f: Callable[[Any], float]
    f_prime: Callable[[Any], Any]
    x0: np.ndarray


def quadratic(dim: int = 2, scale: float = 1.0) -> Problem:
    """``f(x) = scale * <x, x>`` started from ``x0 = (10, ..., 10)``."""

    def f(x: Any) -> float:
        return float(scale * np.dot(x, x))

    def f_prime(x: Any) -> np.ndarray:
        return 2.0 * scale * np.asarray(x, dtype=float)

    return Problem("quadratic", f, f_prime, np.full(dim, 10.0))


def rosenbrock(a: float = 1.0, b: float = 100.0) -> Problem:
    """Evaluate the Rosenbrock function: (a-x)^2 + b*(y-x^2)^2."""

    def f(v: Any) -> float:
        x, y = float(v[0]), float(v[1])
        return (a - x) ** 2 + b * (y - x**2) ** 2

    def f_prime(v: Any) -> np.ndarray:
        x, y = float(v[0]), float(v[1])
        return np.array([-2.0 * (a - x) - 4.0 * b * x * (y - x**2), 2.0 * b * (y - x**2)])

    return Problem("rosenbrock", f, f_prime, np.array([-1.2, 1.0]))


class ProblemRegistry:
    """Pluggable registry for benchmark problem factories."""

    def __init__(self) -> None:
        self._registry: Dict[str, Callable[..., Problem]] = {}
        self.register("quadratic", quadratic)
        self.register("rosenbrock", rosenbrock)

    def register(self, name: str, factory: Callable[..., Problem]) -> None:
        if name in self._registry:
            raise ValueError(f"Problem '{name}' already registered")
        self._registry[name] = factory

    def names(self) -> list:
        return sorted(self._registry)

    def create(self, name: str, **kwargs: Any) -> Problem:
        if name not in self._registry:
            raise ValueError(f"Unknown problem '{name}'")
        return self._registry[name](**kwargs)
