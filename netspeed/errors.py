"""
Exception hierarchy for the measurement engine.

Only ``SampleFailure`` is recovered inside a run; everything else reaches
the caller of ``PhaseController.start()``.
"""
from __future__ import annotations

from typing import Any, Sequence


class SpeedTestError(Exception):
    """Base class for every error raised by the engine."""


class SampleFailure(SpeedTestError):
    """A single ping / download / upload sample failed or timed out."""


class AllSamplesFailed(SpeedTestError):
    """Every sample of a throughput probe failed."""

    def __init__(self, direction: Any, stats: Any = None) -> None:
        self.direction = direction
        self.stats = stats
        name = getattr(direction, "value", direction)
        super().__init__(f"All {name} samples failed")


class TestCancelled(SpeedTestError):
    """The run was cancelled cooperatively.  Not a failure."""

    __test__ = False  # keep test collectors from picking this up

    def __init__(self, partial: Sequence[Any] = ()) -> None:
        self.partial = tuple(partial)
        super().__init__("Test cancelled")


class ConcurrentStart(SpeedTestError):
    """``start()`` was called while a run was already active."""

    def __init__(self) -> None:
        super().__init__("A speed test is already running")


class InvalidTransition(SpeedTestError):
    """An illegal phase change was attempted."""


class HistoryError(SpeedTestError):
    """The result was built but could not be persisted."""
