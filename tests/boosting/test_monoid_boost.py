import random

import pytest

from cgdescent.boosting import HasPDF, MonoidBoost, Normal

K = 2


def build(points, k: int = K) -> MonoidBoost:
    return MonoidBoost.train(points, k, Normal.train)


def random_chunks(seed: int):
    rng = random.Random(seed)
    values = [round(rng.uniform(-10, 10), 3) for _ in range(rng.randint(0, 30))]
    cuts = sorted(rng.randint(0, len(values)) for _ in range(2))
    return values[: cuts[0]], values[cuts[0] : cuts[1]], values[cuts[1] :]


class TestTraining:
    def test_train1(self) -> None:
        single = MonoidBoost.train1(4.5, K, Normal.train)
        assert single.num_points == 1
        assert single.models == ()
        assert single.data == (4.5,)
        assert single.weights == ()

    def test_empty(self) -> None:
        empty = MonoidBoost.empty(K, Normal.train)
        assert empty.data == () and empty.models == () and empty.num_points == 0

    def test_one_model_per_full_window(self) -> None:
        points = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]
        model = build(points)
        assert model.num_points == 7
        assert model.data == tuple(points)
        assert len(model.models) == len(points) - 2 * K
        expected = [Normal.train(points[i : i + 2 * K + 1]) for i in range(len(points) - 2 * K)]
        assert list(model.models) == expected

    def test_too_few_points_trains_nothing(self) -> None:
        assert build([1.0, 2.0, 3.0, 4.0]).models == ()

    def test_k_zero_trains_nothing(self) -> None:
        # The boundary region is empty when k is zero.
        model = build([1.0, 2.0, 3.0], k=0)
        assert model.models == ()
        assert model.num_points == 3

    def test_add1_matches_batch_training(self) -> None:
        online = MonoidBoost.empty(K, Normal.train)
        for p in [3.0, 1.0, 4.0, 1.0, 5.0, 9.0]:
            online = online.add1(p)
        assert online == build([3.0, 1.0, 4.0, 1.0, 5.0, 9.0])

    def test_combine_resets_weights(self) -> None:
        left = MonoidBoost(k=K, trainer=Normal.train, data=(1.0,), weights=(0.3,), num_points=1)
        right = build([2.0, 3.0])
        assert (left + right).weights == ()

    def test_mismatched_k_rejected(self) -> None:
        with pytest.raises(ValueError, match="k="):
            build([1.0], k=1) + build([2.0], k=2)

    def test_mismatched_trainer_rejected(self) -> None:
        other = MonoidBoost.train1(1.0, K, lambda pts: tuple(pts))
        with pytest.raises(ValueError, match="trainers"):
            build([2.0]) + other

    def test_negative_k_rejected(self) -> None:
        with pytest.raises(ValueError):
            MonoidBoost.empty(-1, Normal.train)


class TestMonoidLaws:
    @pytest.mark.parametrize("seed", range(25))
    def test_associativity(self, seed: int) -> None:
        a, b, c = (build(chunk) for chunk in random_chunks(seed))
        assert (a + b) + c == a + (b + c)

    @pytest.mark.parametrize("seed", range(10))
    def test_split_anywhere_matches_single_stream(self, seed: int) -> None:
        a, b, c = random_chunks(seed)
        assert build(a) + build(b) + build(c) == build(a + b + c)

    def test_identity(self) -> None:
        model = build([0.5, -1.0, 2.0, 8.0, 3.0, 3.5])
        empty = MonoidBoost.empty(K, Normal.train)
        assert empty + model == model
        assert model + empty == model

    def test_concat(self) -> None:
        parts = [build([1.0, 2.0]), build([3.0]), build([4.0, 5.0, 6.0])]
        assert MonoidBoost.concat(parts, K, Normal.train) == build([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])


class TestPrediction:
    def test_pdf_averages_sub_models(self) -> None:
        points = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
        model = build(points)
        assert isinstance(model.models[0], HasPDF)
        expected = sum(m.pdf(3.5) for m in model.models) / len(model.models)
        assert model.pdf(3.5) == pytest.approx(expected)

    def test_pdf_without_models(self) -> None:
        with pytest.raises(ValueError, match="no trained sub-models"):
            build([1.0]).pdf(1.0)

    def test_probability_classify_sums_and_normalizes(self) -> None:
        class Vote:
            def __init__(self, window) -> None:
                self.label = max(set(window), key=window.count)

            def __eq__(self, other) -> bool:
                return isinstance(other, Vote) and other.label == self.label

            def probability_classify(self, point):
                return {self.label: 1.0}

        model = MonoidBoost.train(["a", "a", "b", "a", "b", "b", "b"], 1, Vote)
        dist = model.probability_classify(None)
        assert sum(dist.values()) == pytest.approx(1.0)
        assert dist["b"] > dist["a"]
        assert model.classify(None) == "b"


def test_normal_fit_and_pdf() -> None:
    normal = Normal.train([1.0, 2.0, 3.0])
    assert normal.n == 3
    assert normal.mean == pytest.approx(2.0)
    assert normal.variance == pytest.approx(1.0)
    assert normal.pdf(2.0) == pytest.approx(0.3989422804014327)
    with pytest.raises(ValueError):
        Normal.train([])
