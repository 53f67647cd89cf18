"""
Conjugate gradient descent over abstract inner-product spaces, with an
associative windowed boosting ensemble.

Subpackages:
- vector: vector-space protocol with dense and sparse implementations
- optimize: line search, conjugate-direction update, optimizer iterator
- trace: observers for per-iteration snapshots
- boosting: monoid boosting ensemble
"""

__all__ = ["boosting", "config", "convergence", "optimize", "trace", "utils", "vector"]
