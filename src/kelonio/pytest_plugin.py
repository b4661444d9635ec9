"""pytest reporter adapter for kelonio.

Registered through the ``pytest11`` entry point.  The plugin listens to
the default Benchmark's ``record`` event, files every measurement under
the title path of the test that recorded it, and prints the aggregated
report (plus any extension reports) in the terminal summary.

Options::

    --kelonio-no-report          do not print the report at the end
    --kelonio-config PATH        YAML reporter profile (see kelonio.config)
    --kelonio-extension MOD:ATTR extra report provider (repeatable)
    --kelonio-state              also merge results into the state file

The ``kelonio_config`` ini key can name the profile instead of the
command line option.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from kelonio import get_default_benchmark
from kelonio.benchmark import Benchmark
from kelonio.config import ReporterConfig, load_config
from kelonio.extensions import handle_extra_reports
from kelonio.logging import get_logger
from kelonio.measurement import Measurement
from kelonio.state import BenchmarkFileState

log = get_logger("pytest")

_PLUGIN_NAME = "kelonio-reporter"


def title_path(item: pytest.Item) -> list[str]:
    """Module stem, enclosing class names and test name of *item*."""
    module, *rest = item.nodeid.split("::")
    return [Path(module).stem, *rest]


class KelonioReporter:
    """Collects measurements recorded during a session and reports them."""

    def __init__(self, config: ReporterConfig, source: Benchmark) -> None:
        self.config = config
        self.source = source
        self.benchmark = Benchmark()
        self.base_description: list[str] = []
        self.state = BenchmarkFileState(config.state_file) if config.serialize_data else None

    # -- event wiring -------------------------------------------------------

    def on_record(self, description: list[str], measurement: Measurement) -> None:
        path = [*self.base_description, *description]
        if not path:
            log.debug("Dropping measurement recorded outside of any test without description")
            return
        self.benchmark.incorporate(path, measurement)
        if self.state is not None:
            self.state.incorporate(path, measurement)

    # -- pytest hooks -------------------------------------------------------

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        if self.state is not None:
            if self.config.keep_state_at_start:
                self.state.append({})
            else:
                self.state.write({})
        self.source.events.on("record", self.on_record)

    def pytest_runtest_setup(self, item: pytest.Item) -> None:
        self.base_description = title_path(item) if self.config.infer_descriptions else []

    def pytest_runtest_logfinish(self, nodeid: str, location: Any) -> None:
        self.base_description = []

    def pytest_terminal_summary(self, terminalreporter: Any) -> None:
        if not self.config.print_report_at_end:
            return
        benchmark = self.benchmark
        if self.state is not None and self.state.exists():
            # The state file also holds earlier sessions when keep_state_at_start is set.
            benchmark = Benchmark()
            benchmark.load(self.state.read())

        text = benchmark.report()
        if text:
            terminalreporter.write_line("")
            for line in text.splitlines():
                terminalreporter.write_line(line)
        handle_extra_reports(self.config.extensions, benchmark, terminalreporter.write_line)

    def pytest_unconfigure(self, config: pytest.Config) -> None:
        self.source.events.off("record", self.on_record)
        if self.state is not None and not self.config.keep_state_at_end:
            self.state.delete()


# ---------------------------------------------------------------------------
# Plugin entry points
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("kelonio", "kelonio performance reporting")
    group.addoption(
        "--kelonio-no-report",
        action="store_true",
        default=False,
        dest="kelonio_no_report",
        help="Do not print the kelonio performance report at the end of the session.",
    )
    group.addoption(
        "--kelonio-config",
        default=None,
        dest="kelonio_config",
        metavar="PATH",
        help="YAML reporter profile for kelonio.",
    )
    group.addoption(
        "--kelonio-extension",
        action="append",
        default=[],
        dest="kelonio_extensions",
        metavar="MODULE:ATTR",
        help="Extra report provider (repeatable).",
    )
    group.addoption(
        "--kelonio-state",
        action="store_true",
        default=False,
        dest="kelonio_state",
        help="Merge recorded measurements into the kelonio state file.",
    )
    parser.addini("kelonio_config", "YAML reporter profile for kelonio.", default="")


def pytest_configure(config: pytest.Config) -> None:
    profile = config.getoption("kelonio_config") or config.getini("kelonio_config") or None
    overrides = {
        "print_report_at_end": False if config.getoption("kelonio_no_report") else None,
        "serialize_data": True if config.getoption("kelonio_state") else None,
    }
    try:
        reporter_config = load_config(
            Path(profile) if profile else None,
            overrides=overrides,
        )
    except (ValueError, OSError) as exc:
        raise pytest.UsageError(f"kelonio: {exc}") from exc
    reporter_config.extensions.extend(config.getoption("kelonio_extensions"))

    reporter = KelonioReporter(reporter_config, get_default_benchmark())
    config.pluginmanager.register(reporter, _PLUGIN_NAME)


@pytest.fixture
def kelonio_benchmark() -> Benchmark:
    """The default Benchmark instance observed by the kelonio reporter."""
    return get_default_benchmark()
