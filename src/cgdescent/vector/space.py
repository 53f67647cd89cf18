"""Inner-product vector spaces the optimizer is generic over."""

from __future__ import annotations

import math
from typing import Any, Dict, Hashable, Mapping, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class VectorSpace(Protocol):
    """Operations the optimizer needs from a real inner-product space.

    Implementations must never mutate their arguments; every operation
    returns a fresh value.
    """

    def zero_like(self, v: Any) -> Any: ...

    def add(self, a: Any, b: Any) -> Any: ...

    def scale(self, c: float, v: Any) -> Any: ...

    def inner(self, a: Any, b: Any) -> float: ...

    def negate(self, v: Any) -> Any: ...

    def is_finite(self, v: Any) -> bool: ...


class ArraySpace:
    """Dense vectors backed by numpy arrays.

    Python floats and numpy scalars are accepted as one-dimensional vectors,
    so scalar objectives such as ``f(x) = x ** 2`` need no wrapping.
    """

    def zero_like(self, v: Any) -> Any:
        return np.zeros_like(np.asarray(v, dtype=float))

    def add(self, a: Any, b: Any) -> Any:
        if np.shape(a) != np.shape(b):
            raise ValueError(f"Vector shape mismatch: {np.shape(a)} vs {np.shape(b)}")
        return np.add(a, b, dtype=float)

    def scale(self, c: float, v: Any) -> Any:
        return np.multiply(float(c), v, dtype=float)

    def inner(self, a: Any, b: Any) -> float:
        if np.shape(a) != np.shape(b):
            raise ValueError(f"Vector shape mismatch: {np.shape(a)} vs {np.shape(b)}")
        return float(np.vdot(np.asarray(a, dtype=float), np.asarray(b, dtype=float)))

    def negate(self, v: Any) -> Any:
        return np.negative(v, dtype=float)

    def is_finite(self, v: Any) -> bool:
        return bool(np.all(np.isfinite(v)))


class SparseSpace:
    """Sparse vectors stored as ``{index: value}`` mappings.

    Missing keys are zero and results drop explicit zeros.
    """

    @staticmethod
    def _compact(items: Dict[Hashable, float]) -> Dict[Hashable, float]:
        return {k: v for k, v in items.items() if v != 0.0}

    def zero_like(self, v: Mapping[Hashable, float]) -> Dict[Hashable, float]:
        return {}

    def add(self, a: Mapping[Hashable, float], b: Mapping[Hashable, float]) -> Dict[Hashable, float]:
        out: Dict[Hashable, float] = {k: float(v) for k, v in a.items()}
        for k, v in b.items():
            out[k] = out.get(k, 0.0) + float(v)
        return self._compact(out)

    def scale(self, c: float, v: Mapping[Hashable, float]) -> Dict[Hashable, float]:
        return self._compact({k: float(c) * float(x) for k, x in v.items()})

    def inner(self, a: Mapping[Hashable, float], b: Mapping[Hashable, float]) -> float:
        if len(b) < len(a):
            a, b = b, a
        return float(sum(float(v) * float(b[k]) for k, v in a.items() if k in b))

    def negate(self, v: Mapping[Hashable, float]) -> Dict[Hashable, float]:
        return {k: -float(x) for k, x in v.items() if x != 0.0}

    def is_finite(self, v: Mapping[Hashable, float]) -> bool:
        return all(math.isfinite(float(x)) for x in v.values())


DEFAULT_SPACE = ArraySpace()


def resolve_space(space: VectorSpace | None) -> VectorSpace:
    return DEFAULT_SPACE if space is None else space


def subtract(space: VectorSpace, a: Any, b: Any) -> Any:
    return space.add(a, space.negate(b))


def squared_norm(space: VectorSpace, v: Any) -> float:
    return space.inner(v, v)
