# chess_patterns/tracing.py

"""
tracing
~~~~~~~

This module provides components for application-wide traceability and
context-aware logging.
"""

import functools
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

@dataclass(frozen=True, slots=True)
class CorrelationID:
    """A unique identifier for a single unit of work."""
    run_id: str
    record_id: str

    @property
    def short_id(self) -> str:
        """A short, human-readable version of the full ID."""
        return f"{self.run_id[:8]}:{self.record_id}"

    def as_dict(self) -> dict:
        """Returns the ID as a dictionary suitable for logging."""
        return asdict(self)


def trace_stage(func: Callable) -> Callable:
    """A decorator to add structured tracing to a processing stage."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        stage_name = args[0].__class__.__name__
        logger.debug("Entering processing stage.", stage=stage_name)
        started = time.perf_counter()
        result = func(*args, **kwargs)
        logger.debug(
            "Exiting processing stage.", stage=stage_name,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3)
        )
        return result
    return wrapper
