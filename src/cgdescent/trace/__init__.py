from cgdescent.trace.observers import (
    CompositeObserver,
    InMemoryTrace,
    LoggingObserver,
    NullObserver,
    Observer,
    TraceRecord,
    combine_observers,
    make_record,
)
from cgdescent.trace.prometheus import PrometheusObserver

__all__ = [
    "CompositeObserver",
    "InMemoryTrace",
    "LoggingObserver",
    "NullObserver",
    "Observer",
    "PrometheusObserver",
    "TraceRecord",
    "combine_observers",
    "make_record",
]
