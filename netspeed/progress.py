"""
Phase state machine and progress events.

``Phase`` is a plain tagged enum; the transition table lives next to it so
the state machine can be checked exhaustively.  ``ProgressTracker`` maps the
probe-local fractions onto the overall 0-100 range and keeps the emitted
sequence non-decreasing.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from .constants import DOWNLOAD_RANGE, MAX_RUNNING_PERCENT, PING_RANGE, UPLOAD_RANGE
from .errors import InvalidTransition


class Phase(enum.Enum):
    IDLE = "idle"
    PING = "ping"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    COMPLETE = "complete"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (Phase.COMPLETE, Phase.CANCELLED)

    @property
    def active(self) -> bool:
        return self in (Phase.PING, Phase.DOWNLOAD, Phase.UPLOAD)

    def can_transition(self, target: Phase) -> bool:
        return target in _TRANSITIONS[self]

    def transition(self, target: Phase) -> Phase:
        if not self.can_transition(target):
            raise InvalidTransition(f"Cannot move from {self.value} to {target.value}")
        return target


_TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.IDLE: frozenset({Phase.PING, Phase.CANCELLED}),
    Phase.PING: frozenset({Phase.DOWNLOAD, Phase.CANCELLED, Phase.IDLE}),
    Phase.DOWNLOAD: frozenset({Phase.UPLOAD, Phase.CANCELLED, Phase.IDLE}),
    Phase.UPLOAD: frozenset({Phase.COMPLETE, Phase.CANCELLED, Phase.IDLE}),
    # A finished run only leaves through a fresh start(), which resets to IDLE.
    Phase.COMPLETE: frozenset({Phase.IDLE}),
    Phase.CANCELLED: frozenset({Phase.IDLE}),
}

PHASE_RANGES: Dict[Phase, Tuple[float, float]] = {
    Phase.PING: PING_RANGE,
    Phase.DOWNLOAD: DOWNLOAD_RANGE,
    Phase.UPLOAD: UPLOAD_RANGE,
}


@dataclass(frozen=True)
class TestProgress:
    """One progress event emitted by the controller."""

    __test__ = False

    phase: Phase
    percent: float = 0.0
    current_speed_mbps: float = 0.0


ProgressCallback = Callable[[TestProgress], None]


class ProgressTracker:
    """Turns probe-local progress into overall, monotonic ``TestProgress``."""

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.callback = callback
        self.percent = 0.0

    def scale(self, phase: Phase, fraction: float) -> float:
        lo, hi = PHASE_RANGES[phase]
        fraction = max(0.0, min(fraction, 1.0))
        return min(lo + (hi - lo) * fraction, MAX_RUNNING_PERCENT)

    def phase_started(self, phase: Phase) -> None:
        self._emit(phase, PHASE_RANGES[phase][0], 0.0)

    def update(self, phase: Phase, done: int, total: int, speed_mbps: float = 0.0) -> None:
        fraction = done / total if total else 1.0
        self._emit(phase, self.scale(phase, fraction), speed_mbps)

    def complete(self) -> None:
        self._emit(Phase.COMPLETE, 100.0, 0.0, force=True)

    def cancelled(self) -> None:
        self._emit(Phase.CANCELLED, self.percent, 0.0)

    def _emit(self, phase: Phase, percent: float, speed: float, force: bool = False) -> None:
        if not force:
            percent = min(percent, MAX_RUNNING_PERCENT)
        self.percent = max(self.percent, percent)
        if self.callback:
            self.callback(TestProgress(phase=phase, percent=self.percent, current_speed_mbps=speed))
