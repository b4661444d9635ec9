"""Shared helpers for kelonio tests."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from kelonio.benchmark import BenchmarkNode


def make_node(
    durations: list[float],
    *,
    total_duration: float | None = None,
    children: dict[str, BenchmarkNode] | None = None,
) -> BenchmarkNode:
    """Create a BenchmarkNode; total_duration defaults to the legacy None."""
    return BenchmarkNode(
        durations=list(durations),
        total_duration=total_duration,
        children=children or {},
    )


def sleeper(ms: float) -> Any:
    """Return a callable that blocks for *ms* milliseconds."""

    def _sleep() -> None:
        time.sleep(ms / 1000)

    return _sleep


def async_sleeper(ms: float) -> Any:
    """Return a coroutine function that sleeps for *ms* milliseconds."""

    async def _sleep() -> None:
        await asyncio.sleep(ms / 1000)

    return _sleep


class Counter:
    """Callable that counts its invocations."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1
