"""Aggregation of measurements into a named tree.

A :class:`Benchmark` owns a :data:`BenchmarkData` tree keyed by
description segments.  Each :meth:`Benchmark.record` call measures a
function, splices the result into the tree, notifies ``record``
listeners and only then enforces the configured thresholds, so a
failing benchmark is still visible to reporting.

Tree shape (also the JSON shape of :meth:`Benchmark.to_dict`)::

    {
        "foo": {
            "durations": [1.2, 1.1],
            "total_duration": 2.5,
            "children": {
                "bar": {"durations": [...], "total_duration": ..., "children": {}}
            }
        }
    }
"""

from __future__ import annotations

import enum
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Sequence, Union

from kelonio.config import BenchmarkConfig
from kelonio.errors import DescriptionError
from kelonio.formatting import format_report
from kelonio.logging import get_logger
from kelonio.measure import (
    Hook,
    MeasureOptions,
    measure,
    measure_async,
    resolve_options,
    verify_measurement,
)
from kelonio.measurement import Measurement
from kelonio.state import BenchmarkFileState

log = get_logger("benchmark")

# A single segment, or an ordered sequence of segments.
Description = Union[str, Sequence[str]]

RecordListener = Callable[[list[str], Measurement], Any]


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkNode:
    """One entry of the tree: accumulated samples plus nested children.

    ``total_duration`` is ``None`` only for nodes loaded from data that
    predates batch totals; it merges as 0 and reports as the sum of
    ``durations``.
    """

    durations: list[float] = field(default_factory=list)
    total_duration: float | None = 0.0
    children: dict[str, BenchmarkNode] = field(default_factory=dict)

    def absorb(self, measurement: Measurement) -> None:
        """Concatenate the measurement's samples and add its total."""
        self.durations.extend(measurement.durations)
        self.total_duration = (self.total_duration or 0.0) + (measurement.total_duration or 0.0)

    def to_measurement(self) -> Measurement:
        """Measurement over this node's own samples (must be non-empty)."""
        return Measurement(self.durations, self.total_duration)

    def to_dict(self) -> dict[str, Any]:
        return {
            "durations": list(self.durations),
            "total_duration": self.total_duration,
            "children": {name: child.to_dict() for name, child in self.children.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BenchmarkNode:
        return cls(
            durations=list(data.get("durations", [])),
            total_duration=data.get("total_duration"),
            children=data_from_dict(data.get("children") or {}),
        )


BenchmarkData = dict[str, BenchmarkNode]


def data_from_dict(raw: Mapping[str, Any]) -> BenchmarkData:
    """Build a tree from its plain JSON-compatible form."""
    return {name: BenchmarkNode.from_dict(node) for name, node in raw.items()}


def data_to_dict(data: Mapping[str, BenchmarkNode]) -> dict[str, Any]:
    """Plain JSON-compatible form of a tree."""
    return {name: node.to_dict() for name, node in data.items()}


def _walk(data: Mapping[str, BenchmarkNode], prefix: list[str]) -> Iterator[Measurement]:
    for segment, node in data.items():
        path = [*prefix, segment]
        if node.durations:
            measurement = node.to_measurement()
            measurement.description = path
            yield measurement
        yield from _walk(node.children, path)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class Criteria(enum.Enum):
    """Which end of the ranking :meth:`Benchmark.find` looks for."""

    FASTEST = "fastest"
    SLOWEST = "slowest"

    def prefers(self, candidate: float, incumbent: float) -> bool:
        """True if *candidate* is strictly better than *incumbent*."""
        if self is Criteria.FASTEST:
            return candidate < incumbent
        return candidate > incumbent


def worst_plausible_mean(measurement: Measurement) -> float:
    """Default ranking value for :meth:`Benchmark.find`."""
    return measurement.mean + measurement.margin_of_error


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class BenchmarkEvents:
    """Synchronous observer registry for the ``record`` event.

    Listeners are called with ``(description, measurement)`` in
    registration order.  An exception raised by a listener propagates to
    whoever emitted the event.
    """

    EVENTS = ("record",)

    def __init__(self) -> None:
        self._listeners: dict[str, list[RecordListener]] = {name: [] for name in self.EVENTS}

    def _check(self, event: str) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}; supported: {', '.join(self.EVENTS)}")

    def on(self, event: str, listener: RecordListener) -> RecordListener:
        self._check(event)
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: RecordListener) -> None:
        self._check(event)
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def listeners(self, event: str) -> list[RecordListener]:
        self._check(event)
        return list(self._listeners[event])

    def remove_all_listeners(self, event: str | None = None) -> None:
        names = self.EVENTS if event is None else (event,)
        for name in names:
            self._check(name)
            self._listeners[name].clear()

    def emit(self, event: str, description: Sequence[str], measurement: Measurement) -> None:
        self._check(event)
        for listener in list(self._listeners[event]):
            listener(list(description), measurement)


# ---------------------------------------------------------------------------
# Benchmark
# ---------------------------------------------------------------------------


def _segments(description: Description) -> list[str]:
    if isinstance(description, str):
        segments = [description] if description else []
    else:
        segments = list(description)
    if not segments:
        raise DescriptionError()
    return segments


class Benchmark:
    """Aggregate benchmark results into a tree and report on them.

    Usage::

        benchmark = Benchmark()
        benchmark.record(["parser", "small input"], lambda: parse(SMALL))
        benchmark.record(["parser", "large input"], lambda: parse(LARGE), mean_under=5)
        print(benchmark.report())

    Each instance owns its tree; any number of instances can coexist.
    """

    def __init__(self, config: BenchmarkConfig | None = None) -> None:
        self.config = config or BenchmarkConfig()
        self.data: BenchmarkData = {}
        self.events = BenchmarkEvents()
        # Prepended to every recorded description.
        self.base_description: list[str] = []
        self._lock = threading.RLock()

    # -- recording ----------------------------------------------------------

    def record(
        self,
        description: Description | None,
        fn: Hook,
        options: MeasureOptions | None = None,
        **overrides: Any,
    ) -> Measurement:
        """Measure *fn*, store the result and verify it.

        Args:
            description: Where to store the result: a segment, a sequence
                of segments, or ``None`` to store nothing beyond
                :attr:`base_description`.  An empty string or sequence
                is rejected before *fn* runs.
            fn: The function to measure.
            options: Measurement options; see :class:`MeasureOptions`.
            **overrides: Individual option values applied over *options*.

        Raises:
            DescriptionError: If *description* is empty.
            PerformanceError: If a threshold is exceeded.  The result has
                already been stored and announced when this is raised.
        """
        segments = _segments(description) if description is not None else []
        opts = resolve_options(options, **overrides)
        measurement = measure(fn, opts.merged(verify=False))
        self._commit(segments, measurement)
        verify_measurement(measurement, opts)
        return measurement

    async def record_async(
        self,
        description: Description | None,
        fn: Hook,
        options: MeasureOptions | None = None,
        **overrides: Any,
    ) -> Measurement:
        """Asynchronous counterpart of :meth:`record`, using :func:`measure_async`."""
        segments = _segments(description) if description is not None else []
        opts = resolve_options(options, **overrides)
        measurement = await measure_async(fn, opts.merged(verify=False))
        self._commit(segments, measurement)
        verify_measurement(measurement, opts)
        return measurement

    def _commit(self, segments: list[str], measurement: Measurement) -> None:
        path = [*self.base_description, *segments]
        measurement.description = list(path)
        with self._lock:
            if path:
                self.incorporate(path, measurement)
            self.events.emit("record", path, measurement)
            if path and self.config.serialize_data:
                BenchmarkFileState(self.config.state_file).incorporate(path, measurement)

    def incorporate(self, description: Description, measurement: Measurement) -> None:
        """Add a precomputed measurement to the tree at *description*.

        Nodes along the path are created as needed.  The measurement's
        durations are appended to the terminal node's and its total
        duration is added to the node's total.

        Raises:
            DescriptionError: If *description* is empty.
        """
        path = _segments(description)
        with self._lock:
            node = self.data.setdefault(path[0], BenchmarkNode())
            for segment in path[1:]:
                node = node.children.setdefault(segment, BenchmarkNode())
            node.absorb(measurement)
        log.debug("Incorporated %d durations at %s", measurement.iterations, "/".join(path))

    # -- queries ------------------------------------------------------------

    @property
    def measurements(self) -> list[Measurement]:
        """One Measurement per node with samples, parents before children.

        Each is tagged with its full path as ``description``.
        """
        with self._lock:
            return list(_walk(self.data, []))

    def find(
        self,
        criteria: Criteria,
        value_fn: Callable[[Measurement], float] | None = None,
    ) -> Measurement | None:
        """Find the fastest or slowest measurement.

        Args:
            criteria: :attr:`Criteria.FASTEST` or :attr:`Criteria.SLOWEST`.
            value_fn: Ranking value; defaults to ``mean + margin_of_error``.

        Returns:
            The first measurement with the best value (earlier ones win
            ties), or ``None`` when nothing has been recorded.
        """
        rank = value_fn or worst_plausible_mean
        best: Measurement | None = None
        best_value = math.nan
        for candidate in self.measurements:
            value = rank(candidate)
            if best is None or criteria.prefers(value, best_value):
                best = candidate
                best_value = value
        return best

    def report(self) -> str:
        """Render the tree as text, or ``""`` when nothing was recorded."""
        with self._lock:
            return format_report(self.data)

    # -- state --------------------------------------------------------------

    def clear(self) -> None:
        """Discard every recorded result."""
        with self._lock:
            self.data = {}

    def to_dict(self) -> dict[str, Any]:
        """The tree in plain JSON-compatible form."""
        with self._lock:
            return data_to_dict(self.data)

    def load(self, raw: Mapping[str, Any]) -> None:
        """Replace the tree with one in the form produced by :meth:`to_dict`."""
        data = data_from_dict(raw)
        with self._lock:
            self.data = data
