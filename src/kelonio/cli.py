"""Command-line interface for kelonio.

Works on the state file written by benchmarks with ``serialize_data``
enabled (or by the pytest plugin with ``--kelonio-state``).

Subcommands:
    kelonio report   Print the performance report
    kelonio find     Print the fastest or slowest measurement
    kelonio clear    Delete the state file
"""

from __future__ import annotations

from pathlib import Path

import click

from kelonio import __version__
from kelonio.benchmark import Benchmark, Criteria
from kelonio.config import load_config
from kelonio.extensions import handle_extra_reports
from kelonio.logging import get_logger, setup_logging
from kelonio.state import STATE_FILE, BenchmarkFileState

log = get_logger("cli")

_state_file_argument = click.argument(
    "state_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(STATE_FILE),
    required=False,
)


def _load_benchmark(state_file: Path) -> Benchmark:
    state = BenchmarkFileState(state_file)
    if not state.exists():
        raise click.ClickException(
            f"No benchmark state at {state_file}. Record with serialize_data enabled "
            "(or run pytest with --kelonio-state) to produce one."
        )
    try:
        raw = state.read()
    except ValueError as exc:
        raise click.ClickException(f"Could not parse {state_file}: {exc}") from exc
    benchmark = Benchmark()
    benchmark.load(raw)
    log.debug("Loaded %d measurements from %s", len(benchmark.measurements), state_file)
    return benchmark


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
def main(verbose: bool, quiet: bool) -> None:
    """kelonio — performance reports for benchmarks recorded in test suites."""
    setup_logging(verbose=verbose, quiet=quiet)


@main.command()
@_state_file_argument
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML reporter profile.",
)
@click.option(
    "--extension",
    "extensions",
    type=str,
    multiple=True,
    help="Extra report provider as 'module:attribute' (repeatable).",
)
@click.option("--delete", is_flag=True, help="Delete the state file after reporting.")
def report(
    state_file: Path,
    config_path: Path | None,
    extensions: tuple[str, ...],
    delete: bool,
) -> None:
    """Print the performance report stored in STATE_FILE."""
    try:
        config = load_config(config_path)
    except (ValueError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc

    benchmark = _load_benchmark(state_file)
    text = benchmark.report()
    if text:
        click.echo(text)
    else:
        log.info("No measurements recorded in %s", state_file)

    try:
        handle_extra_reports([*config.extensions, *extensions], benchmark, click.echo)
    except (ImportError, AttributeError, ValueError) as exc:
        raise click.ClickException(f"Could not load extension: {exc}") from exc

    if delete:
        BenchmarkFileState(state_file).delete()


@main.command()
@_state_file_argument
@click.option(
    "--fastest/--slowest",
    default=True,
    show_default=True,
    help="Which end of the ranking to show.",
)
def find(state_file: Path, fastest: bool) -> None:
    """Print the fastest (or slowest) measurement in STATE_FILE.

    Ranking uses mean plus margin of error.
    """
    benchmark = _load_benchmark(state_file)
    criteria = Criteria.FASTEST if fastest else Criteria.SLOWEST
    found = benchmark.find(criteria)
    if found is None:
        click.echo("No measurements recorded.")
        return
    click.echo(
        f'{criteria.value.capitalize()}: "{"/".join(found.description)}" '
        f"({found.mean} ms +/- {found.margin_of_error} ms)"
    )


@main.command()
@_state_file_argument
def clear(state_file: Path) -> None:
    """Delete STATE_FILE."""
    BenchmarkFileState(state_file).delete()
    log.info("Removed %s", state_file)
