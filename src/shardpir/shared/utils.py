"""
Shared utility functions.
"""
import logging
import os
import time
from typing import Optional

EXPLAIN_ENV = "SHARDPIR_EXPLAIN"

_EXPLAIN_TO_LEVEL = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def explain_level() -> int:
    """
    Get the walkthrough verbosity requested through ``SHARDPIR_EXPLAIN``.

    Level 1 narrates each protocol step, level 2 adds per-key detail and
    level 3 additionally dumps shard and vector contents.
    """
    try:
        return max(0, int(os.environ.get(EXPLAIN_ENV, "0")))
    except ValueError:
        return 0


def configure_logging(level: Optional[int] = None) -> None:
    """
    Route shardpir log records to stderr.

    Args:
        level: Explicit explain level; read from the environment when None
    """
    if level is None:
        level = explain_level()
    log_level = _EXPLAIN_TO_LEVEL.get(min(level, 2), logging.WARNING)

    logger = logging.getLogger("shardpir")
    logger.setLevel(log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s"))
        logger.addHandler(handler)


class Timer:
    """Context manager for timing operations."""

    def __init__(self, name: str = "Operation"):
        self.name = name
        self.start_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self.start_time

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.elapsed is None:
            if self.start_time is not None:
                return (time.perf_counter() - self.start_time) * 1000
            return 0.0
        return self.elapsed * 1000
