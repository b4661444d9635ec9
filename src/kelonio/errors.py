"""Exception types raised by kelonio.

Errors raised by the functions under measurement (and by their
``before_each``/``after_each`` hooks) are never wrapped in one of these;
they reach the caller unmodified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kelonio.measurement import Measurement


class KelonioError(Exception):
    """Base class for errors originating in kelonio itself."""


class MeasurementError(KelonioError, ValueError):
    """A Measurement could not be constructed from the given durations."""


class DescriptionError(KelonioError, ValueError):
    """An empty description was supplied where a non-empty one is required."""

    def __init__(self, message: str = "The description must not be empty") -> None:
        super().__init__(message)


class PerformanceError(KelonioError, AssertionError):
    """A measured statistic exceeded its configured threshold.

    Subclasses :class:`AssertionError` so that test runners report a
    threshold violation as a failed test rather than an errored one.

    Attributes:
        metric: Human-readable metric name, e.g. ``"Mean time"``.
        option: Name of the option that set the threshold, e.g. ``"mean_under"``.
        value: The computed statistic, in milliseconds.
        threshold: The configured limit, in milliseconds.
        measurement: The completed Measurement that failed verification.
    """

    def __init__(
        self,
        metric: str,
        option: str,
        value: float,
        threshold: float,
        measurement: Measurement | None = None,
    ) -> None:
        self.metric = metric
        self.option = option
        self.value = value
        self.threshold = threshold
        self.measurement = measurement
        super().__init__(f"{metric} of {value} ms exceeded threshold of {threshold} ms")
