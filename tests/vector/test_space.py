import math

import numpy as np
import pytest

from cgdescent.vector import ArraySpace, SparseSpace, VectorSpace, squared_norm, subtract


class TestArraySpace:
    def setup_method(self) -> None:
        self.space = ArraySpace()

    def test_satisfies_protocol(self) -> None:
        assert isinstance(self.space, VectorSpace)

    def test_operations(self) -> None:
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([0.5, -1.0, 2.0])
        np.testing.assert_allclose(self.space.add(a, b), [1.5, 1.0, 5.0])
        np.testing.assert_allclose(self.space.scale(2.0, a), [2.0, 4.0, 6.0])
        np.testing.assert_allclose(self.space.negate(a), [-1.0, -2.0, -3.0])
        np.testing.assert_allclose(self.space.zero_like(a), [0.0, 0.0, 0.0])
        assert self.space.inner(a, b) == pytest.approx(0.5 - 2.0 + 6.0)
        np.testing.assert_allclose(subtract(self.space, a, b), [0.5, 3.0, 1.0])
        assert squared_norm(self.space, a) == pytest.approx(14.0)

    def test_does_not_mutate_inputs(self) -> None:
        a = np.array([1.0, 2.0])
        b = np.array([3.0, 4.0])
        self.space.add(a, b)
        self.space.scale(5.0, a)
        self.space.negate(b)
        np.testing.assert_array_equal(a, [1.0, 2.0])
        np.testing.assert_array_equal(b, [3.0, 4.0])

    def test_scalars_are_vectors(self) -> None:
        assert self.space.add(1.5, 2.0) == pytest.approx(3.5)
        assert self.space.inner(3.0, 4.0) == pytest.approx(12.0)
        assert self.space.scale(2.0, -3.0) == pytest.approx(-6.0)

    def test_shape_mismatch(self) -> None:
        with pytest.raises(ValueError, match="shape mismatch"):
            self.space.add(np.zeros(2), np.zeros(3))
        with pytest.raises(ValueError, match="shape mismatch"):
            self.space.inner(np.zeros(2), np.zeros(3))

    def test_is_finite(self) -> None:
        assert self.space.is_finite(np.array([1.0, 2.0]))
        assert not self.space.is_finite(np.array([1.0, np.nan]))
        assert not self.space.is_finite(math.inf)


class TestSparseSpace:
    def setup_method(self) -> None:
        self.space = SparseSpace()

    def test_add_drops_zeros(self) -> None:
        out = self.space.add({"a": 1.0, "b": 2.0}, {"a": -1.0, "c": 4.0})
        assert out == {"b": 2.0, "c": 4.0}

    def test_inner_ignores_missing_keys(self) -> None:
        assert self.space.inner({"a": 2.0, "b": 3.0}, {"b": 4.0, "z": 9.0}) == pytest.approx(12.0)
        assert self.space.inner({}, {"a": 1.0}) == 0.0

    def test_scale_and_negate(self) -> None:
        assert self.space.scale(0.0, {"a": 1.0}) == {}
        assert self.space.scale(-2.0, {"a": 1.5}) == {"a": -3.0}
        assert self.space.negate({"a": 1.0, "b": 0.0}) == {"a": -1.0}
        assert self.space.zero_like({"a": 1.0}) == {}

    def test_is_finite(self) -> None:
        assert self.space.is_finite({"a": 1.0})
        assert not self.space.is_finite({"a": math.inf})
