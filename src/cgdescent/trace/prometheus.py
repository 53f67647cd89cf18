"""Prometheus metrics for optimizer runs."""

from __future__ import annotations

import math
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

from cgdescent.trace.observers import TraceRecord
from cgdescent.utils import get_logger
from cgdescent.vector import VectorSpace, resolve_space

logger = get_logger("trace.prometheus")


class PrometheusObserver:
    """Exports per-iteration optimizer state as Prometheus metrics.

    Each observer owns its registry unless one is passed in, so several runs
    (or tests) can coexist in one process.
    """

    def __init__(
        self,
        run_id: str,
        registry: Optional[CollectorRegistry] = None,
        space: Optional[VectorSpace] = None,
    ) -> None:
        self.run_id = run_id
        self.registry = registry if registry is not None else CollectorRegistry()
        self.space = space
        self._server_started = False

        labels = ["run_id"]

        self.iterations = Counter(
            "cg_iterations",
            "Completed optimizer iterations",
            labels,
            registry=self.registry,
        )
        self.line_search_trials = Counter(
            "cg_line_search_trials",
            "Line search trial evaluations",
            labels,
            registry=self.registry,
        )
        self.objective = Gauge(
            "cg_objective_value",
            "Objective value at the current iterate",
            labels,
            registry=self.registry,
        )
        self.step_size = Gauge(
            "cg_step_size",
            "Step size used to reach the current iterate",
            labels,
            registry=self.registry,
        )
        self.gradient_norm = Gauge(
            "cg_gradient_norm",
            "Euclidean norm of the gradient at the current iterate",
            labels,
            registry=self.registry,
        )
        self.runs_completed = Counter(
            "cg_runs_completed",
            "Finished optimizer runs by completion reason",
            ["run_id", "reason"],
            registry=self.registry,
        )

    def start_server(self, port: int = 8000) -> None:
        """Start the Prometheus HTTP server."""
        if self._server_started:
            return
        try:
            start_http_server(port, registry=self.registry)
            self._server_started = True
        except OSError as exc:
            logger.warning("Could not start Prometheus server on port %d: %s", port, exc)

    def attach(self, space: VectorSpace) -> None:
        """Adopt the optimizer's vector space unless one was given explicitly."""
        if self.space is None:
            self.space = space

    def on_record(self, record: TraceRecord) -> None:
        labels = {"run_id": self.run_id}
        if record.tag == "BacktrackingState":
            self.line_search_trials.labels(**labels).inc()
            return
        if record.tag != "OptimizerState":
            return
        state = record.payload
        self.iterations.labels(**labels).inc()
        self.objective.labels(**labels).set(float(state.fx1))
        self.step_size.labels(**labels).set(float(state.step_size))
        space = resolve_space(self.space)
        self.gradient_norm.labels(**labels).set(math.sqrt(max(space.inner(state.grad1, state.grad1), 0.0)))

    def on_complete(self, reason: str) -> None:
        self.runs_completed.labels(run_id=self.run_id, reason=reason).inc()
