"""On-disk benchmark state shared between processes.

A test session that records measurements and a later ``kelonio report``
invocation exchange the plain benchmark tree through a JSON file in the
working directory.  Sessions run one after another can keep adding to the
same file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kelonio.benchmark import Description
    from kelonio.measurement import Measurement

log = logging.getLogger("kelonio")

STATE_FILE = ".kelonio.state.json"


class BenchmarkFileState:
    """Read and write the serialized benchmark tree at *path*."""

    def __init__(self, path: str | Path = STATE_FILE) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict[str, Any]:
        """Parse the state file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file does not hold a JSON object.
        """
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"State file {self.path} must hold a JSON object")
        return data

    def _read_or_empty(self) -> dict[str, Any]:
        try:
            return self.read()
        except (OSError, ValueError) as exc:
            log.debug("Starting from empty state (%s): %s", self.path, exc)
            return {}

    def write(self, data: dict[str, Any]) -> None:
        """Replace the file contents atomically using a temp file and os.replace."""
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(data))
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def append(self, data: dict[str, Any]) -> None:
        """Shallow-merge *data* over whatever the file currently holds.

        A missing or unreadable file counts as empty.
        """
        self.write({**self._read_or_empty(), **data})

    def incorporate(self, description: Description, measurement: Measurement) -> None:
        """Merge *measurement* into the stored tree at *description*.

        The stored tree is loaded into a scratch Benchmark, which merges
        the samples the same way :meth:`Benchmark.incorporate` does.  A
        missing or unreadable file counts as empty.

        Raises:
            DescriptionError: If *description* is empty.
        """
        from kelonio.benchmark import Benchmark

        scratch = Benchmark()
        scratch.load(self._read_or_empty())
        scratch.incorporate(description, measurement)
        self.write(scratch.to_dict())

    def delete(self) -> None:
        """Remove the file; a missing file is not an error."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
