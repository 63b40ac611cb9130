"""Loggers for the analysis pipeline.

Every component logs under the ``repolens`` hierarchy (``repolens.aggregator``,
``repolens.patterns.api``, ``repolens.graph.cycles`` ...).  Detectors and the
aggregator only emit DEBUG records; ``configure_logging`` decides whether they
reach the console.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

ROOT_LOGGER = "repolens"
CONSOLE_FORMAT = "[repolens] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for ``component``, e.g. ``get_logger("graph.resolver")``."""
    if not component:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route pipeline logs to stderr, and to ``log_file`` when given.

    ``verbose`` lowers the threshold to DEBUG so per-file detector hits and
    phase timings become visible.  Calling this again replaces the handlers
    installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False

    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()

    root.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        root.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT))
    return root


@contextmanager
def log_phase(logger: logging.Logger, phase: str) -> Iterator[None]:
    """Log how long an aggregation phase (a detector, graph build ...) took."""
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s finished in %.1fms", phase, (time.perf_counter() - started) * 1000)


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger", "log_phase"]
