"""kelonio: measure, aggregate and report function performance in test suites.

Typical use inside a test::

    from kelonio import get_default_benchmark

    def test_parse_speed():
        get_default_benchmark().record(["parser", "small"], parse_small, mean_under=2)
"""

from __future__ import annotations

import threading

from kelonio.benchmark import (
    Benchmark,
    BenchmarkData,
    BenchmarkEvents,
    BenchmarkNode,
    Criteria,
)
from kelonio.errors import DescriptionError, KelonioError, MeasurementError, PerformanceError
from kelonio.measure import MeasureOptions, measure, measure_async, verify_measurement
from kelonio.measurement import Measurement

__version__ = "0.1.0"

__all__ = [
    "Benchmark",
    "BenchmarkData",
    "BenchmarkEvents",
    "BenchmarkNode",
    "Criteria",
    "DescriptionError",
    "KelonioError",
    "MeasureOptions",
    "Measurement",
    "MeasurementError",
    "PerformanceError",
    "get_default_benchmark",
    "measure",
    "measure_async",
    "reset_default_benchmark",
    "verify_measurement",
]

_default: Benchmark | None = None
_default_lock = threading.Lock()


def get_default_benchmark() -> Benchmark:
    """Return the process-wide convenience instance, creating it on first use.

    Independent instances can always be created with ``Benchmark()``.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = Benchmark()
        return _default


def reset_default_benchmark() -> Benchmark:
    """Replace the process-wide instance with a fresh one and return it.

    Listeners registered on the previous instance, including the pytest
    reporter's, are not carried over.
    """
    global _default
    with _default_lock:
        _default = Benchmark()
        return _default
