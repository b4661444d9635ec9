"""Tests for kelonio.measurement — the Measurement value object."""

from __future__ import annotations

import unittest

from kelonio.errors import MeasurementError
from kelonio.measurement import Measurement


class TestMeasurementConstruction(unittest.TestCase):
    """Tests for building Measurements."""

    def test_rejects_empty_durations(self) -> None:
        with self.assertRaises(MeasurementError) as ctx:
            Measurement([])
        self.assertIn("must not be empty", str(ctx.exception))

    def test_empty_durations_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            Measurement([])

    def test_total_duration_defaults_to_sum(self) -> None:
        self.assertEqual(Measurement([1, 2, 3]).total_duration, 6)

    def test_explicit_total_duration_kept(self) -> None:
        self.assertEqual(Measurement([1, 2, 3], 101).total_duration, 101)

    def test_durations_are_copied(self) -> None:
        source = [1.0, 2.0]
        m = Measurement(source)
        source.append(3.0)
        self.assertEqual(m.durations, [1.0, 2.0])

    def test_description_not_part_of_identity(self) -> None:
        a = Measurement([1, 2], 3)
        b = Measurement([1, 2], 3)
        b.description = ["foo", "bar"]
        self.assertEqual(a, b)


class TestMeasurementStatistics(unittest.TestCase):
    """Known-value tests for the derived statistics."""

    def setUp(self) -> None:
        self.measurement = Measurement([1, 4, 10])

    def test_mean(self) -> None:
        self.assertEqual(self.measurement.mean, 5)

    def test_min(self) -> None:
        self.assertEqual(self.measurement.min, 1)

    def test_max(self) -> None:
        self.assertEqual(self.measurement.max, 10)

    def test_standard_deviation(self) -> None:
        self.assertAlmostEqual(self.measurement.standard_deviation, 4.58257569495584, places=12)

    def test_margin_of_error(self) -> None:
        self.assertAlmostEqual(self.measurement.margin_of_error, 5.185672569686598, places=12)

    def test_iterations(self) -> None:
        self.assertEqual(self.measurement.iterations, 3)

    def test_single_sample_has_no_spread(self) -> None:
        m = Measurement([7.5])
        self.assertEqual(m.mean, 7.5)
        self.assertEqual(m.standard_deviation, 0.0)
        self.assertEqual(m.margin_of_error, 0.0)

    def test_accessors_do_not_mutate(self) -> None:
        m = Measurement([3, 1, 2])
        for name in ("min", "max", "mean", "standard_deviation", "margin_of_error"):
            getattr(m, name)
        self.assertEqual(m.durations, [3, 1, 2])


class TestMeasurementSerialization(unittest.TestCase):
    """Tests for to_dict/from_dict."""

    def test_to_dict(self) -> None:
        m = Measurement([1.5, 2.5], 4.5)
        m.description = ["foo"]
        self.assertEqual(
            m.to_dict(),
            {"description": ["foo"], "durations": [1.5, 2.5], "total_duration": 4.5},
        )

    def test_from_dict_without_total(self) -> None:
        m = Measurement.from_dict({"description": ["a", "b"], "durations": [4, 5, 6]})
        self.assertEqual(m.description, ["a", "b"])
        self.assertEqual(m.total_duration, 15)


if __name__ == "__main__":
    unittest.main()
