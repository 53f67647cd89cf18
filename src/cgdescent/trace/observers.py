"""Observers receiving one snapshot per optimizer iteration or line-search trial."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Protocol, runtime_checkable

from cgdescent.utils import get_logger


@dataclass(frozen=True)
class TraceRecord:
    """Immutable snapshot tagged with the payload's type name."""

    tag: str
    iteration: int
    payload: Any
    timestamp: float = field(default_factory=time.time)


def make_record(payload: Any, iteration: int) -> TraceRecord:
    return TraceRecord(tag=type(payload).__name__, iteration=iteration, payload=payload)


@runtime_checkable
class Observer(Protocol):
    def on_record(self, record: TraceRecord) -> None: ...

    def on_complete(self, reason: str) -> None: ...


class InMemoryTrace:
    """In-memory sink keeping every record and the completion reason."""

    def __init__(self) -> None:
        self.records: List[TraceRecord] = []
        self.completed: Optional[str] = None
        self.completions = 0

    def on_record(self, record: TraceRecord) -> None:
        self.records.append(record)

    def on_complete(self, reason: str) -> None:
        self.completed = reason
        self.completions += 1

    def by_tag(self, tag: str) -> List[TraceRecord]:
        return [r for r in self.records if r.tag == tag]

    def payloads(self, tag: str) -> List[Any]:
        return [r.payload for r in self.by_tag(tag)]


class LoggingObserver:
    """Writes each record to the package logger."""

    def __init__(self, level: int = logging.DEBUG, name: str = "trace") -> None:
        self.level = level
        self._logger = get_logger(name)

    def on_record(self, record: TraceRecord) -> None:
        if not self._logger.isEnabledFor(self.level):
            return
        payload = record.payload
        if record.tag == "OptimizerState":
            self._logger.log(
                self.level,
                "iter=%d fx=%.6e step=%.3e",
                record.iteration,
                payload.fx1,
                payload.step_size,
                extra={"iteration": record.iteration},
            )
        elif record.tag == "BacktrackingState":
            self._logger.log(
                self.level,
                "iter=%d line search attempt=%d step=%.3e fx=%.6e",
                record.iteration,
                payload.attempt,
                payload.x,
                payload.fx,
                extra={"iteration": record.iteration},
            )
        else:
            self._logger.log(self.level, "iter=%d %s", record.iteration, record.tag)

    def on_complete(self, reason: str) -> None:
        self._logger.info("Optimization finished: %s", reason)


class CompositeObserver:
    """Fan-out observer that forwards to multiple underlying observers."""

    def __init__(self, observers: Iterable[Observer]) -> None:
        self.observers = list(observers)

    def attach(self, space: Any) -> None:
        for o in self.observers:
            attach = getattr(o, "attach", None)
            if attach is not None:
                attach(space)

    def on_record(self, record: TraceRecord) -> None:
        for o in self.observers:
            o.on_record(record)

    def on_complete(self, reason: str) -> None:
        for o in self.observers:
            o.on_complete(reason)


class NullObserver:
    def on_record(self, record: TraceRecord) -> None:
        pass

    def on_complete(self, reason: str) -> None:
        pass


def combine_observers(observers: Optional[Iterable[Observer]]) -> Observer:
    items = list(observers or ())
    if not items:
        return NullObserver()
    if len(items) == 1:
        return items[0]
    return CompositeObserver(items)
