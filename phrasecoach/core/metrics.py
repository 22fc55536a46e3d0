"""In-process latency and fallback counters."""
import time
from contextlib import contextmanager
from collections import defaultdict, deque

# Latency samples kept per timer; older samples are dropped
MAX_TIMER_SAMPLES = 1000

_timers = defaultdict(lambda: deque(maxlen=MAX_TIMER_SAMPLES))
_counters = defaultdict(int)


@contextmanager
def record_latency(name: str):
    start = time.perf_counter()
    try:
        yield
    finally:
        _timers[name].append((time.perf_counter() - start) * 1000.0)


def increment(name: str, amount: int = 1) -> None:
    _counters[name] += amount


def get_metrics_snapshot():
    return {
        "timers": {k: {
            "count": len(v),
            "avg_ms": (sum(v) / len(v)) if v else 0.0,
            "p95_ms": sorted(v)[max(int(len(v) * 0.95) - 1, 0)] if v else 0.0
        } for k, v in _timers.items()},
        "counters": dict(_counters),
    }


def reset_metrics() -> None:
    _timers.clear()
    _counters.clear()
