"""Tests for kelonio.cli — Click CLI over the benchmark state file."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from kelonio.cli import main
from kelonio.formatting import FOOTER, HEADER

STATE = {
    "foo": {"durations": [1, 2, 3], "total_duration": 101, "children": {}},
    "bar": {"durations": [4, 5, 6], "children": {}},
}


def _reset_logging() -> None:
    # main() points the kelonio logger at the runner's temporary stderr.
    logger = logging.getLogger("kelonio")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)


class TestCliHelp(unittest.TestCase):
    def tearDown(self) -> None:
        _reset_logging()

    def test_group_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("report", "find", "clear"):
            self.assertIn(command, result.output)

    def test_report_help(self) -> None:
        result = CliRunner().invoke(main, ["report", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--extension", result.output)
        self.assertIn("STATE_FILE", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


class _StateFileTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmpdir.name)
        self.state_file = self.dir / "state.json"
        self.state_file.write_text(json.dumps(STATE))

    def tearDown(self) -> None:
        _reset_logging()
        self._tmpdir.cleanup()


class TestReportCommand(_StateFileTestCase):
    """Tests for kelonio report."""

    def test_prints_report(self) -> None:
        result = CliRunner().invoke(main, ["report", str(self.state_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        expected = "\n".join(
            [
                HEADER,
                "foo:",
                "  2 ms (+/- 1.13161 ms) from 3 iterations (101 ms total)",
                "bar:",
                "  5 ms (+/- 1.13161 ms) from 3 iterations (15 ms total)",
                FOOTER,
            ]
        )
        self.assertIn(expected, result.output)
        self.assertTrue(self.state_file.exists())

    def test_delete_after_report(self) -> None:
        result = CliRunner().invoke(main, ["report", str(self.state_file), "--delete"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(self.state_file.exists())

    def test_missing_state_file(self) -> None:
        result = CliRunner().invoke(main, ["report", str(self.dir / "missing.json")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("serialize_data", result.output)

    def test_corrupt_state_file(self) -> None:
        self.state_file.write_text("[]")
        result = CliRunner().invoke(main, ["report", str(self.state_file)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Could not parse", result.output)

    def test_extension_report(self) -> None:
        (self.dir / "kelonio_cli_ext.py").write_text(
            textwrap.dedent(
                """
                def extra_report(benchmark):
                    return f"{len(benchmark.measurements)} measurements"
                """
            )
        )
        with patch.object(sys, "path", [str(self.dir), *sys.path]):
            result = CliRunner().invoke(
                main,
                ["report", str(self.state_file), "--extension", "kelonio_cli_ext:extra_report"],
            )
        sys.modules.pop("kelonio_cli_ext", None)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("2 measurements", result.output)

    def test_bad_extension(self) -> None:
        result = CliRunner().invoke(
            main, ["report", str(self.state_file), "--extension", "kelonio_missing_mod:ext"]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Could not load extension", result.output)

    def test_config_profile(self) -> None:
        profile = self.dir / "kelonio.yaml"
        profile.write_text("extensions:\n  - 'not-a-lookup'\n")
        result = CliRunner().invoke(
            main, ["report", str(self.state_file), "--config", str(profile)]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("extensions[0]", result.output)


class TestFindCommand(_StateFileTestCase):
    """Tests for kelonio find."""

    def test_fastest(self) -> None:
        result = CliRunner().invoke(main, ["find", str(self.state_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Fastest: "foo"', result.output)

    def test_slowest(self) -> None:
        result = CliRunner().invoke(main, ["find", str(self.state_file), "--slowest"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Slowest: "bar"', result.output)

    def test_empty_state(self) -> None:
        self.state_file.write_text("{}")
        result = CliRunner().invoke(main, ["find", str(self.state_file)])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("No measurements recorded.", result.output)


class TestClearCommand(_StateFileTestCase):
    def test_clear(self) -> None:
        result = CliRunner().invoke(main, ["clear", str(self.state_file)])
        self.assertEqual(result.exit_code, 0)
        self.assertFalse(self.state_file.exists())

    def test_clear_missing(self) -> None:
        result = CliRunner().invoke(main, ["clear", str(self.dir / "missing.json")])
        self.assertEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
