"""Measurement value object and its descriptive statistics.

All durations are in milliseconds.  Statistics are computed on access
from ``durations``; nothing derived is cached, so a Measurement that has
been built can be inspected any number of times without side effects.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import Any

from kelonio.errors import MeasurementError

# z-score for a two-sided 95% confidence interval (normal approximation).
CONFIDENCE_Z = 1.96


@dataclass
class Measurement:
    """Performance measurement result from running a benchmark.

    Args:
        durations: Durations measured, in milliseconds.  Must not be empty.
        total_duration: Duration of the entire batch, in milliseconds,
            including any ``before_each``/``after_each`` hooks.  When not
            given, the sum of ``durations`` is used.  With concurrent
            execution this is lower than the sum of the durations.
    """

    durations: list[float]
    total_duration: float | None = None
    # Path segments used for tagging when extracted from a Benchmark tree.
    description: list[str] = field(default_factory=list, compare=False)

    def __post_init__(self) -> None:
        self.durations = list(self.durations)
        if not self.durations:
            raise MeasurementError("The list of durations must not be empty")
        if self.total_duration is None:
            self.total_duration = math.fsum(self.durations)

    # -- statistics ---------------------------------------------------------

    @property
    def iterations(self) -> int:
        """Number of durations measured."""
        return len(self.durations)

    @property
    def mean(self) -> float:
        """Mean of all durations measured, in milliseconds."""
        return statistics.fmean(self.durations)

    @property
    def min(self) -> float:
        """Minimum duration measured, in milliseconds."""
        return min(self.durations)

    @property
    def max(self) -> float:
        """Maximum duration measured, in milliseconds."""
        return max(self.durations)

    @property
    def variance(self) -> float:
        """Variance of the durations (n - 1 denominator, 0 for one sample)."""
        if len(self.durations) < 2:
            return 0.0
        return statistics.variance(self.durations)

    @property
    def standard_deviation(self) -> float:
        """Standard deviation of all durations measured, in milliseconds."""
        return math.sqrt(self.variance)

    @property
    def margin_of_error(self) -> float:
        """Margin of error at 95% confidence level, in milliseconds."""
        return math.sqrt(self.variance / len(self.durations)) * CONFIDENCE_Z

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "description": list(self.description),
            "durations": list(self.durations),
            "total_duration": self.total_duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Measurement:
        """Deserialize from a dict produced by :meth:`to_dict`."""
        measurement = cls(data["durations"], data.get("total_duration"))
        measurement.description = list(data.get("description", []))
        return measurement
