"""Text rendering of benchmark trees.

Produces the indented report used by :meth:`Benchmark.report` and by the
reporter adapters.  Values are rounded for display only; the tree keeps
full precision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from kelonio.measurement import Measurement

if TYPE_CHECKING:
    from kelonio.benchmark import BenchmarkNode

_HEADER_SIDE = ("- " * 17).strip()
HEADER = f"{_HEADER_SIDE} Performance {_HEADER_SIDE}"
FOOTER = ("- " * 40).strip()

INDENT = "  "


def format_number(value: float, places: int = 5) -> str:
    """Round *value* to *places* decimals and drop trailing zeros.

    Examples: ``2.5``, ``1.26517``, ``0``, ``101``.
    """
    text = f"{round(value, places):.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_stats_line(measurement: Measurement) -> str:
    """One-line summary of a measurement's mean, margin of error and totals."""
    return (
        f"{format_number(measurement.mean)} ms "
        f"(+/- {format_number(measurement.margin_of_error)} ms) "
        f"from {measurement.iterations} iterations "
        f"({format_number(measurement.total_duration or 0.0)} ms total)"
    )


def format_tree(data: Mapping[str, BenchmarkNode], depth: int = 0) -> list[str]:
    """Render *data* depth-first, preserving insertion order at each level.

    Returns the report body as a list of lines, without the banner.
    """
    lines: list[str] = []
    prefix = INDENT * depth
    for segment, node in data.items():
        lines.append(f"{prefix}{segment}:")
        if node.durations:
            measurement = node.to_measurement()
            lines.append(f"{prefix}{INDENT}{format_stats_line(measurement)}")
            if node.children:
                lines.append("")
        lines.extend(format_tree(node.children, depth + 1))
    return lines


def format_report(data: Mapping[str, BenchmarkNode]) -> str:
    """Full report with header and footer, or ``""`` for an empty tree."""
    if not data:
        return ""
    return "\n".join([HEADER, *format_tree(data), FOOTER])
