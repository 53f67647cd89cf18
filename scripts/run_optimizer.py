#!/usr/bin/env python3
"""
Minimize a benchmark objective with conjugate gradient descent.

Usage:
    python scripts/run_optimizer.py --problem quadratic --dim 5
    python scripts/run_optimizer.py --problem rosenbrock --method fletcher_reeves
    python scripts/run_optimizer.py --config config/optimizer.yaml --prometheus-port 9100
"""

import argparse
import sys
from pathlib import Path

from cgdescent.config import OptimizerConfig, parse_step_method
from cgdescent.convergence import minimize
from cgdescent.objectives import ProblemRegistry
from cgdescent.optimize import OptimizationError
from cgdescent.trace import LoggingObserver, PrometheusObserver
from cgdescent.utils import configure_logging, get_logger


def build_config(args: argparse.Namespace) -> OptimizerConfig:
    if args.config:
        config = OptimizerConfig.from_file(Path(args.config))
    else:
        config = OptimizerConfig()
    step_method = parse_step_method(args.step_method, args.step_size) if args.step_method else None
    return config.with_overrides(
        conjugate_method=args.method,
        step_method=step_method,
        max_iterations=args.max_iterations,
    )


def main() -> int:
    registry = ProblemRegistry()
    parser = argparse.ArgumentParser(description="Conjugate gradient descent on benchmark objectives")
    parser.add_argument("--problem", choices=registry.names(), default="quadratic", help="Objective to minimize")
    parser.add_argument("--dim", type=int, default=2, help="Dimension (quadratic only)")
    parser.add_argument("--config", type=str, help="JSON or YAML optimizer config")
    parser.add_argument("--method", type=str, help="Conjugate method (none, fletcher_reeves, polak_ribiere, hestenes_stiefel)")
    parser.add_argument("--step-method", type=str, help="Step policy (line_search or fixed)")
    parser.add_argument("--step-size", type=float, help="Step size for the fixed policy")
    parser.add_argument("--max-iterations", type=int, help="Safety cap on iterations")
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--prometheus-port", type=int, help="Expose Prometheus metrics on this port")
    args = parser.parse_args()

    configure_logging(args.log_level, json_output=args.json_logs)
    logger = get_logger("run_optimizer")

    kwargs = {"dim": args.dim} if args.problem == "quadratic" else {}
    problem = registry.create(args.problem, **kwargs)
    try:
        config = build_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    observers = [LoggingObserver()]
    if args.prometheus_port:
        prometheus = PrometheusObserver(run_id=problem.name)
        prometheus.start_server(args.prometheus_port)
        observers.append(prometheus)

    try:
        result = minimize(problem.f, problem.f_prime, problem.x0, config, observers=observers)
    except OptimizationError as exc:
        logger.error(f"Optimization failed: {exc}")
        return 1

    logger.info(f"Stop reason: {result.stop_reason} after {result.iterations} iterations")
    logger.info(f"x* = {result.state.x1}")
    logger.info(f"f(x*) = {result.state.fx1:.6e}")
    return 0 if result.converged else 2


if __name__ == "__main__":
    sys.exit(main())
