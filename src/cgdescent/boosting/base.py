"""Capability protocols for boosting base models, plus a Gaussian reference model."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, Mapping, Protocol, Sequence, runtime_checkable

import numpy as np


@runtime_checkable
class HomTrainer(Protocol):
    """Builds a model from an ordered batch of datapoints."""

    def __call__(self, points: Sequence[Any]) -> Any: ...


@runtime_checkable
class HasPDF(Protocol):
    def pdf(self, point: Any) -> float: ...


@runtime_checkable
class ProbabilisticClassifier(Protocol):
    def probability_classify(self, point: Any) -> Mapping[Hashable, float]: ...


@dataclass(frozen=True)
class Normal:
    """Univariate Gaussian fitted by sample mean and unbiased variance."""

    n: int
    mean: float
    variance: float

    @classmethod
    def train(cls, points: Sequence[float]) -> "Normal":
        if len(points) == 0:
            raise ValueError("Cannot fit a Normal to an empty sample")
        values = np.asarray(points, dtype=float)
        variance = float(np.var(values, ddof=1)) if len(values) > 1 else 0.0
        return cls(n=len(values), mean=float(np.mean(values)), variance=variance)

    def pdf(self, point: float) -> float:
        if self.variance == 0.0:
            return math.inf if point == self.mean else 0.0
        z = (point - self.mean) ** 2 / (2.0 * self.variance)
        return math.exp(-z) / math.sqrt(2.0 * math.pi * self.variance)
