"""Tests for kelonio.state — the on-disk benchmark state file."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from kelonio.errors import DescriptionError
from kelonio.measurement import Measurement
from kelonio.state import STATE_FILE, BenchmarkFileState


class TestBenchmarkFileState(unittest.TestCase):
    """Tests for BenchmarkFileState."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self._tmpdir.name) / STATE_FILE
        self.state = BenchmarkFileState(self.path)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_default_path(self) -> None:
        self.assertEqual(BenchmarkFileState().path, Path(".kelonio.state.json"))

    def test_exists(self) -> None:
        self.assertFalse(self.state.exists())
        self.state.write({})
        self.assertTrue(self.state.exists())

    def test_write_read(self) -> None:
        data = {"foo": {"durations": [1, 2], "total_duration": 3, "children": {}}}
        self.state.write(data)
        self.assertEqual(self.state.read(), data)
        self.assertEqual(json.loads(self.path.read_text()), data)

    def test_read_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            self.state.read()

    def test_read_rejects_non_object(self) -> None:
        self.path.write_text("[1, 2]")
        with self.assertRaises(ValueError):
            self.state.read()

    def test_append_merges_top_level(self) -> None:
        self.state.write({"foo": 1, "bar": 2})
        self.state.append({"bar": 3, "baz": 4})
        self.assertEqual(self.state.read(), {"foo": 1, "bar": 3, "baz": 4})

    def test_append_to_missing_file(self) -> None:
        self.state.append({"foo": 1})
        self.assertEqual(self.state.read(), {"foo": 1})

    def test_append_to_corrupt_file(self) -> None:
        self.path.write_text("{not json")
        self.state.append({"foo": 1})
        self.assertEqual(self.state.read(), {"foo": 1})

    def test_write_leaves_no_temp_files(self) -> None:
        self.state.write({"foo": 1})
        self.state.write({"foo": 2})
        self.assertEqual(list(self.path.parent.iterdir()), [self.path])
        self.assertEqual(self.state.read(), {"foo": 2})

    def test_incorporate_merges_samples(self) -> None:
        self.state.incorporate(["bar"], Measurement([4, 5, 6]))
        self.state.incorporate("bar", Measurement([7]))
        self.assertEqual(
            self.state.read(),
            {"bar": {"durations": [4, 5, 6, 7], "total_duration": 22.0, "children": {}}},
        )

    def test_incorporate_keeps_other_entries(self) -> None:
        foo = {"durations": [1], "total_duration": 1, "children": {}}
        self.state.write({"foo": foo})
        self.state.incorporate(["foo", "baz"], Measurement([2]))
        stored = self.state.read()["foo"]
        self.assertEqual(stored["durations"], [1])
        self.assertEqual(stored["children"]["baz"]["durations"], [2])

    def test_incorporate_into_corrupt_file(self) -> None:
        self.path.write_text("{")
        self.state.incorporate("foo", Measurement([3]))
        self.assertEqual(list(self.state.read()), ["foo"])

    def test_incorporate_rejects_empty_description(self) -> None:
        with self.assertRaises(DescriptionError):
            self.state.incorporate([], Measurement([1]))
        self.assertFalse(self.path.exists())

    def test_delete(self) -> None:
        self.state.write({})
        self.state.delete()
        self.assertFalse(self.path.exists())

    def test_delete_missing_file(self) -> None:
        self.state.delete()
        self.assertFalse(self.path.exists())


if __name__ == "__main__":
    unittest.main()
