"""Timed execution of a function over repeated iterations.

Each iteration is timed individually with a monotonic high-resolution
clock; the ``before_each``/``after_each`` hooks run outside the timed
region.  A second, outer timer spans the whole batch (hooks included) and
becomes the Measurement's ``total_duration``.

Two entry points are provided:

* :func:`measure` for plain callables.  Concurrent mode runs the
  iterations on a thread pool.
* :func:`measure_async` for coroutine functions, or any callable that
  may return an awaitable.  Concurrent mode gathers the iterations on the
  running event loop.

Neither entry point enforces a deadline, retries, or cancels iterations
that are still running when a sibling fails.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from kelonio.errors import PerformanceError
from kelonio.logging import get_logger
from kelonio.measurement import Measurement

log = get_logger("measure")

Hook = Callable[[], Any]

# Upper bound on worker threads for concurrent synchronous measurement.
MAX_THREADS = 128


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


@dataclass
class MeasureOptions:
    """Options for :func:`measure` and :meth:`Benchmark.record`."""

    # Number of times to call the function and measure its duration.
    iterations: int = 100
    # Wait for each iteration to finish before starting the next.
    serial: bool = True

    # Thresholds, in milliseconds.  Exceeding one raises PerformanceError.
    mean_under: float | None = None
    min_under: float | None = None
    max_under: float | None = None
    margin_of_error_under: float | None = None
    standard_deviation_under: float | None = None

    before_each: Hook | None = None
    after_each: Hook | None = None

    # Whether to enforce the thresholds above at all.
    verify: bool = True

    def __post_init__(self) -> None:
        if self.iterations < 1:
            raise ValueError(f"iterations must be at least 1 (got {self.iterations})")

    def merged(self, **overrides: Any) -> MeasureOptions:
        """Return a copy with *overrides* applied.

        Raises:
            TypeError: If an override does not name an option.
        """
        if not overrides:
            return self
        return dataclasses.replace(self, **overrides)


def resolve_options(options: MeasureOptions | None = None, **overrides: Any) -> MeasureOptions:
    """Combine an optional options object with keyword overrides."""
    base = options if options is not None else MeasureOptions()
    return base.merged(**overrides)


# Verification order is fixed: the first exceeded threshold is reported.
_THRESHOLDS: tuple[tuple[str, str, str], ...] = (
    ("mean_under", "mean", "Mean time"),
    ("min_under", "min", "Minimum time"),
    ("max_under", "max", "Maximum time"),
    ("margin_of_error_under", "margin_of_error", "Margin of error time"),
    ("standard_deviation_under", "standard_deviation", "Standard deviation time"),
)


def verify_measurement(measurement: Measurement, options: MeasureOptions) -> None:
    """Check *measurement* against the thresholds configured in *options*.

    Does nothing when ``options.verify`` is false.  A value equal to its
    threshold passes.

    Raises:
        PerformanceError: For the first threshold exceeded, in the order
            mean, min, max, margin of error, standard deviation.
    """
    if not options.verify:
        return
    for option, attribute, metric in _THRESHOLDS:
        threshold = getattr(options, option)
        if threshold is None:
            continue
        value = getattr(measurement, attribute)
        if value > threshold:
            log.debug("%s of %s ms exceeded %s=%s", metric, value, option, threshold)
            raise PerformanceError(metric, option, value, threshold, measurement)


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


class Timer:
    """Monotonic timer: started on creation, read in milliseconds."""

    def __init__(self) -> None:
        self._start = time.perf_counter_ns()

    def elapsed_ms(self) -> float:
        """Milliseconds elapsed since the timer was created."""
        return (time.perf_counter_ns() - self._start) / 1e6


# ---------------------------------------------------------------------------
# Synchronous measurement
# ---------------------------------------------------------------------------


def _call(fn: Hook) -> None:
    result = fn()
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(
            f"{getattr(fn, '__qualname__', fn)!s} returned an awaitable; "
            "use measure_async() or Benchmark.record_async() for asynchronous functions"
        )


def _run_iteration(fn: Hook, options: MeasureOptions) -> float:
    if options.before_each is not None:
        _call(options.before_each)
    timer = Timer()
    _call(fn)
    duration = timer.elapsed_ms()
    if options.after_each is not None:
        _call(options.after_each)
    return duration


def _run_concurrently(fn: Hook, options: MeasureOptions) -> list[float]:
    with ThreadPoolExecutor(max_workers=min(options.iterations, MAX_THREADS)) as pool:
        futures = [pool.submit(_run_iteration, fn, options) for _ in range(options.iterations)]
    # The pool has drained: every iteration has settled.  result() re-raises
    # the first failure in submission order.
    return [future.result() for future in futures]


def measure(
    fn: Hook,
    options: MeasureOptions | None = None,
    **overrides: Any,
) -> Measurement:
    """Measure the time it takes for *fn* to execute.

    Args:
        fn: No-argument callable to measure.
        options: Options object; defaults to :class:`MeasureOptions()`.
        **overrides: Individual option values, applied on top of *options*.

    With ``serial=False`` the iterations run on a thread pool of at most
    :data:`MAX_THREADS` workers; further iterations start as workers free
    up.

    Returns:
        The Measurement for the batch.

    Raises:
        PerformanceError: If verification is enabled and a threshold is
            exceeded.  The completed Measurement is attached to the error.
        TypeError: If *fn* or a hook returns an awaitable.
    """
    opts = resolve_options(options, **overrides)
    measurement = _measure_batch(fn, opts)
    verify_measurement(measurement, opts)
    return measurement


def _measure_batch(fn: Hook, options: MeasureOptions) -> Measurement:
    batch_timer = Timer()
    if options.serial:
        durations = [_run_iteration(fn, options) for _ in range(options.iterations)]
    else:
        durations = _run_concurrently(fn, options)
    total = batch_timer.elapsed_ms()
    log.debug(
        "Measured %d iterations (%s) in %.3f ms",
        options.iterations,
        "serial" if options.serial else "concurrent",
        total,
    )
    return Measurement(durations, total)


# ---------------------------------------------------------------------------
# Asynchronous measurement
# ---------------------------------------------------------------------------


async def _call_async(fn: Hook) -> None:
    result = fn()
    if inspect.isawaitable(result):
        await result


async def _run_iteration_async(fn: Hook, options: MeasureOptions) -> float:
    if options.before_each is not None:
        await _call_async(options.before_each)
    timer = Timer()
    await _call_async(fn)
    duration = timer.elapsed_ms()
    if options.after_each is not None:
        await _call_async(options.after_each)
    return duration


async def measure_async(
    fn: Hook,
    options: MeasureOptions | None = None,
    **overrides: Any,
) -> Measurement:
    """Asynchronous counterpart of :func:`measure`.

    *fn* and the hooks may be coroutine functions or plain callables; any
    awaitable they return is awaited inside the iteration.  With
    ``serial=False`` every iteration is scheduled at once and the call
    completes when all of them have settled, failing with the first error
    raised.
    """
    opts = resolve_options(options, **overrides)
    measurement = await _measure_batch_async(fn, opts)
    verify_measurement(measurement, opts)
    return measurement


async def _measure_batch_async(fn: Hook, options: MeasureOptions) -> Measurement:
    batch_timer = Timer()
    if options.serial:
        durations = []
        for _ in range(options.iterations):
            durations.append(await _run_iteration_async(fn, options))
    else:
        durations = list(
            await asyncio.gather(
                *(_run_iteration_async(fn, options) for _ in range(options.iterations))
            )
        )
    total = batch_timer.elapsed_ms()
    log.debug(
        "Measured %d async iterations (%s) in %.3f ms",
        options.iterations,
        "serial" if options.serial else "concurrent",
        total,
    )
    return Measurement(durations, total)
