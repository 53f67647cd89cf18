"""
Associative boosting ensemble over sliding windows of a data stream.

Every sub-model is trained on a contiguous window of ``2k + 1`` datapoints.
Combining two ensembles only trains the windows that straddle their
boundary, so the result does not depend on how the stream was partitioned:
``(a + b) + c == a + (b + c)`` and the empty ensemble is the identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Any, Callable, Dict, Hashable, Iterable, Sequence, Tuple

from cgdescent.utils import get_logger

logger = get_logger("boosting")

Trainer = Callable[[Sequence[Any]], Any]


def _sliding_windows(points: Sequence[Any], width: int) -> Iterable[Tuple[Any, ...]]:
    for start in range(len(points) - width + 1):
        yield tuple(points[start : start + width])


@dataclass(frozen=True)
class MonoidBoost:
    k: int
    trainer: Trainer = field(compare=False, repr=False)
    data: Tuple[Any, ...] = ()
    models: Tuple[Any, ...] = ()
    weights: Tuple[Any, ...] = ()
    num_points: int = 0

    def __post_init__(self) -> None:
        if self.k < 0:
            raise ValueError("k must be non-negative")

    @property
    def window_size(self) -> int:
        return 2 * self.k + 1

    @classmethod
    def empty(cls, k: int, trainer: Trainer) -> "MonoidBoost":
        return cls(k=k, trainer=trainer)

    @classmethod
    def train1(cls, point: Any, k: int, trainer: Trainer) -> "MonoidBoost":
        """Singleton ensemble: one datapoint, no sub-model yet."""
        return cls(k=k, trainer=trainer, data=(point,), num_points=1)

    @classmethod
    def concat(cls, ensembles: Iterable["MonoidBoost"], k: int, trainer: Trainer) -> "MonoidBoost":
        return reduce(lambda acc, m: acc.combine(m), ensembles, cls.empty(k, trainer))

    @classmethod
    def train(cls, points: Iterable[Any], k: int, trainer: Trainer) -> "MonoidBoost":
        """Train by folding singleton ensembles in stream order."""
        return cls.concat((cls.train1(p, k, trainer) for p in points), k, trainer)

    def add1(self, point: Any) -> "MonoidBoost":
        """Online update with one more datapoint."""
        return self.combine(self.train1(point, self.k, self.trainer))

    def combine(self, other: "MonoidBoost") -> "MonoidBoost":
        if self.k != other.k:
            raise ValueError(f"Cannot combine ensembles with k={self.k} and k={other.k}")
        if self.trainer != other.trainer:
            raise ValueError("Cannot combine ensembles built with different trainers")
        span = 2 * self.k
        boundary = self.data[max(len(self.data) - span, 0) :] + other.data[:span]
        new_models = tuple(self.trainer(window) for window in _sliding_windows(boundary, self.window_size))
        if new_models:
            logger.debug("Trained %d boundary models (k=%d)", len(new_models), self.k)
        # Weights are not propagated through combination.
        return replace(
            self,
            data=self.data + other.data,
            models=self.models + new_models + other.models,
            weights=(),
            num_points=self.num_points + other.num_points,
        )

    __add__ = combine

    def pdf(self, point: Any) -> float:
        """Average density of the sub-models at ``point``."""
        if not self.models:
            raise ValueError("Ensemble has no trained sub-models")
        return sum(m.pdf(point) for m in self.models) / len(self.models)

    def probability_classify(self, point: Any) -> Dict[Hashable, float]:
        """Sum the sub-models' label distributions and renormalize."""
        if not self.models:
            raise ValueError("Ensemble has no trained sub-models")
        totals: Dict[Hashable, float] = {}
        for model in self.models:
            for label, prob in model.probability_classify(point).items():
                totals[label] = totals.get(label, 0.0) + float(prob)
        mass = sum(totals.values())
        if mass <= 0:
            return totals
        return {label: prob / mass for label, prob in totals.items()}

    def classify(self, point: Any) -> Hashable:
        dist = self.probability_classify(point)
        return max(dist, key=dist.get)
