"""Logging setup for kelonio.

kelonio is imported by test suites, so importing it never configures
output: the ``kelonio`` logger only carries a NullHandler until a command
line entry point calls :func:`setup_logging`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO

_LOGGER_NAME = "kelonio"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"

logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the kelonio logger.

    Args:
        verbose: Console level DEBUG.
        quiet: Console level WARNING.  Ignored if *verbose* is True.
        log_file: Also log everything at DEBUG to this path.
        stream: Console stream; defaults to stderr so that reports
            written to stdout stay clean.

    Returns:
        The configured ``kelonio`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console = logging.StreamHandler(stream)
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Named child logger under the kelonio namespace (``kelonio.<name>``)."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
