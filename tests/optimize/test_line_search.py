import math

import numpy as np
import pytest

from cgdescent.optimize import BacktrackingState, LineSearchFailed, armijo_satisfied, backtracking, evaluate_trial
from cgdescent.trace import InMemoryTrace


class CountingProblem:
    """Quadratic ``f(x) = <x, A x>`` that counts evaluations."""

    def __init__(self, diag) -> None:
        self.diag = np.asarray(diag, dtype=float)
        self.f_calls = 0
        self.grad_calls = 0

    def f(self, x) -> float:
        self.f_calls += 1
        return float(np.dot(x, self.diag * x))

    def f_prime(self, x):
        self.grad_calls += 1
        return 2.0 * self.diag * x


def start(problem: CountingProblem, x0, step: float) -> BacktrackingState:
    x0 = np.asarray(x0, dtype=float)
    grad = problem.f_prime(x0)
    return evaluate_trial(problem.f, problem.f_prime, step, -grad, x0, problem.f(x0), grad)


@pytest.mark.parametrize("step", [1e-3, 0.1, 0.4, 1.0, 7.5, 100.0])
@pytest.mark.parametrize("c1", [1e-4, 0.1, 0.5])
def test_accepted_step_satisfies_armijo(step: float, c1: float) -> None:
    problem = CountingProblem([1.0, 10.0, 0.5])
    initial = start(problem, [3.0, -2.0, 1.0], step)
    accepted = backtracking(problem.f, problem.f_prime, initial, c1=c1)
    slope = float(np.dot(accepted.base_grad, accepted.direction))
    assert accepted.x > 0
    assert accepted.fx <= accepted.base_f + c1 * accepted.x * slope
    assert armijo_satisfied(accepted, c1)


def test_initial_trial_evaluation_is_reused() -> None:
    problem = CountingProblem([1.0])
    initial = start(problem, [2.0], 0.1)
    f_calls, grad_calls = problem.f_calls, problem.grad_calls
    accepted = backtracking(problem.f, problem.f_prime, initial)
    assert accepted is initial
    assert (problem.f_calls, problem.grad_calls) == (f_calls, grad_calls)


def test_one_evaluation_per_shrink() -> None:
    problem = CountingProblem([1.0])
    initial = start(problem, [2.0], 8.0)
    f_calls, grad_calls = problem.f_calls, problem.grad_calls
    accepted = backtracking(problem.f, problem.f_prime, initial, contraction=0.5)
    assert accepted.attempt > 0
    assert problem.f_calls - f_calls == accepted.attempt
    assert problem.grad_calls - grad_calls == accepted.attempt
    assert accepted.x == pytest.approx(8.0 * 0.5**accepted.attempt)


def test_returned_values_match_candidate_point() -> None:
    problem = CountingProblem([2.0, 1.0])
    initial = start(problem, [1.0, 1.0], 3.0)
    accepted = backtracking(problem.f, problem.f_prime, initial)
    expected_point = accepted.base_point + accepted.x * accepted.direction
    np.testing.assert_allclose(accepted.point, expected_point)
    assert accepted.fx == pytest.approx(problem.f(expected_point))
    np.testing.assert_allclose(accepted.grad, problem.f_prime(expected_point))


def test_unevaluated_base_accepts_first_trial() -> None:
    problem = CountingProblem([1.0])
    x0 = np.array([1.0])
    grad = problem.f_prime(x0)
    initial = evaluate_trial(problem.f, problem.f_prime, 50.0, -grad, x0, math.inf, grad)
    assert backtracking(problem.f, problem.f_prime, initial) is initial


def test_ascent_direction_fails_after_max_attempts() -> None:
    problem = CountingProblem([1.0])
    x0 = np.array([1.0])
    grad = problem.f_prime(x0)
    initial = evaluate_trial(problem.f, problem.f_prime, 1.0, grad, x0, problem.f(x0), grad)
    with pytest.raises(LineSearchFailed) as excinfo:
        backtracking(problem.f, problem.f_prime, initial, max_attempts=5)
    assert excinfo.value.attempts == 5
    assert excinfo.value.best.x == pytest.approx(0.5**5)
    assert excinfo.value.best.fx == pytest.approx((1.0 + 2.0 * 0.5**5) ** 2)


def test_nan_objective_keeps_shrinking() -> None:
    def f(x):
        return float("nan") if abs(float(x)) > 1.0 else float(x) ** 2

    def f_prime(x):
        return 2.0 * x

    x0 = 1.0
    initial = evaluate_trial(f, f_prime, 4.0, -2.0, x0, f(x0), 2.0)
    assert math.isnan(initial.fx)
    accepted = backtracking(f, f_prime, initial)
    assert not math.isnan(accepted.fx)
    assert accepted.fx < 1.0


def test_observer_sees_every_trial() -> None:
    problem = CountingProblem([1.0])
    trace = InMemoryTrace()
    initial = start(problem, [2.0], 8.0)
    accepted = backtracking(problem.f, problem.f_prime, initial, observer=trace, iteration=7)
    records = trace.by_tag("BacktrackingState")
    assert len(records) == accepted.attempt + 1
    assert [r.payload.attempt for r in records] == list(range(accepted.attempt + 1))
    assert all(r.iteration == 7 for r in records)
