"""Extra report providers loaded by reporter adapters.

An extension is an object with an ``extra_report(benchmark)`` method, or
a plain callable taking the benchmark, that returns an additional report
string (or ``None`` to print nothing).  Adapters refer to extensions by
``"module:attribute"`` and call them after printing the main report::

    # myproject/bench_extras.py
    from kelonio import Criteria

    def extra_report(benchmark):
        fastest = benchmark.find(Criteria.FASTEST)
        if fastest:
            return f'Fastest: "{"/".join(fastest.description)}" ({fastest.mean} ms)'
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable

from kelonio.logging import get_logger

if TYPE_CHECKING:
    from kelonio.benchmark import Benchmark

log = get_logger("extensions")


@dataclass(frozen=True)
class ExtensionLookup:
    """Where to find an extension: ``module`` and attribute ``extension``."""

    module: str
    extension: str

    def __str__(self) -> str:
        return f"{self.module}:{self.extension}"


def parse_lookup(text: str) -> ExtensionLookup:
    """Parse ``"module:attribute"`` into an ExtensionLookup.

    Raises:
        ValueError: If *text* does not have both parts.
    """
    module, sep, attribute = text.strip().partition(":")
    if not sep or not module or not attribute:
        raise ValueError(f"Extension must look like 'module:attribute' (got {text!r})")
    return ExtensionLookup(module=module, extension=attribute)


def load_extension(lookup: ExtensionLookup | str) -> Any:
    """Import the module and return the named attribute.

    Dotted attributes (``"pkg.mod:holder.extension"``) are followed.
    """
    if isinstance(lookup, str):
        lookup = parse_lookup(lookup)
    obj: Any = importlib.import_module(lookup.module)
    for part in lookup.extension.split("."):
        obj = getattr(obj, part)
    return obj


def _report_function(extension: Any) -> Callable[[Benchmark], str | None] | None:
    extra = getattr(extension, "extra_report", None)
    if callable(extra):
        return extra
    if callable(extension):
        return extension
    return None


def handle_extra_reports(
    lookups: Iterable[ExtensionLookup | str],
    benchmark: Benchmark,
    emit: Callable[[str], Any],
) -> list[str]:
    """Run each extension against *benchmark* and emit non-empty reports.

    Returns the reports that were emitted, in order.
    """
    reports: list[str] = []
    for lookup in lookups:
        extension = load_extension(lookup)
        report_fn = _report_function(extension)
        if report_fn is None:
            log.warning("Extension %s provides no extra_report; skipping", lookup)
            continue
        report = report_fn(benchmark)
        if report:
            emit(report)
            reports.append(report)
    return reports
