from cgdescent.vector.space import (
    DEFAULT_SPACE,
    ArraySpace,
    SparseSpace,
    VectorSpace,
    resolve_space,
    squared_norm,
    subtract,
)

__all__ = [
    "DEFAULT_SPACE",
    "ArraySpace",
    "SparseSpace",
    "VectorSpace",
    "resolve_space",
    "squared_norm",
    "subtract",
]
