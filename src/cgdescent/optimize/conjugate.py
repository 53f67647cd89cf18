"""Conjugate-direction coefficient (beta) and search-direction update."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from cgdescent.config import ConjugateMethod
from cgdescent.optimize.errors import DegenerateDirection
from cgdescent.utils import get_logger
from cgdescent.vector import VectorSpace, resolve_space, subtract

logger = get_logger("optimize.conjugate")

DEFAULT_GAMMA = 0.2
DEFAULT_DIRECTION_BLEND = 0.1
DENOMINATOR_TOLERANCE = float(np.finfo(float).tiny)


@dataclass(frozen=True)
class DirectionUpdate:
    direction: Any
    beta: float
    raw_beta: float
    conjugacy_lost: bool
    degenerate: bool = False


def conjugacy_lost(grad: Any, grad_prev: Any, gamma: float = DEFAULT_GAMMA, space: Optional[VectorSpace] = None) -> bool:
    """Restart test from eq. 1.174 of Bertsekas, "Nonlinear Programming".

    Successive gradients of a conjugate method are close to orthogonal; once
    ``|<g1, g0>|`` exceeds ``gamma * <g0, g0>`` the directions are treated as
    no longer conjugate.
    """
    space = resolve_space(space)
    return abs(space.inner(grad, grad_prev)) > gamma * space.inner(grad_prev, grad_prev)


def _ratio(method: ConjugateMethod, numerator: float, denominator: float) -> float:
    if not math.isfinite(denominator) or abs(denominator) <= DENOMINATOR_TOLERANCE:
        raise DegenerateDirection(method.value, denominator)
    ratio = numerator / denominator
    if not math.isfinite(ratio):
        raise DegenerateDirection(method.value, denominator)
    return ratio


def raw_beta(
    method: ConjugateMethod,
    grad: Any,
    grad_prev: Any,
    dir_prev: Any,
    space: Optional[VectorSpace] = None,
) -> float:
    """
    Unclamped beta for ``method``.

    Raises:
        DegenerateDirection: if the denominator is zero, subnormal or non-finite,
            or the ratio overflows.
    """
    space = resolve_space(space)
    method = ConjugateMethod.parse(method)
    if method is ConjugateMethod.NONE:
        return 0.0
    if method is ConjugateMethod.FLETCHER_REEVES:
        return _ratio(method, space.inner(grad, grad), space.inner(grad_prev, grad_prev))
    delta = subtract(space, grad, grad_prev)
    if method is ConjugateMethod.POLAK_RIBIERE:
        return _ratio(method, space.inner(grad, delta), space.inner(grad_prev, grad_prev))
    if method is ConjugateMethod.HESTENES_STIEFEL:
        return -_ratio(method, space.inner(grad, delta), space.inner(dir_prev, delta))
    raise ValueError(f"Unsupported conjugate method {method!r}")


def effective_beta(raw: float, lost: bool) -> float:
    """Zero on lost conjugacy, otherwise ``max(0, raw)`` so the direction never reverses."""
    if lost or not math.isfinite(raw):
        return 0.0
    return max(0.0, raw)


def next_direction(grad: Any, beta: float, blend: float = DEFAULT_DIRECTION_BLEND, space: Optional[VectorSpace] = None) -> Any:
    # Blends the current gradient, not the previous direction.
    space = resolve_space(space)
    return space.add(space.negate(grad), space.scale(blend * beta, grad))


def update_direction(
    method: ConjugateMethod,
    grad: Any,
    grad_prev: Any,
    dir_prev: Any,
    *,
    gamma: float = DEFAULT_GAMMA,
    blend: float = DEFAULT_DIRECTION_BLEND,
    space: Optional[VectorSpace] = None,
) -> DirectionUpdate:
    space = resolve_space(space)
    lost = conjugacy_lost(grad, grad_prev, gamma, space)
    degenerate = False
    try:
        raw = raw_beta(method, grad, grad_prev, dir_prev, space)
    except DegenerateDirection as exc:
        logger.warning("%s; restarting with beta=0", exc)
        raw = 0.0
        degenerate = True
    beta = effective_beta(raw, lost or degenerate)
    return DirectionUpdate(
        direction=next_direction(grad, beta, blend, space),
        beta=beta,
        raw_beta=raw,
        conjugacy_lost=lost,
        degenerate=degenerate,
    )
