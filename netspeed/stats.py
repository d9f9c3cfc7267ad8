"""
Network measurement statistics.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .constants import PENALTY_MS


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbeSample:
    """One timed exchange recorded by a probe."""

    size_bytes: int = 0
    elapsed_ms: float = 0.0
    success: bool = True

    @property
    def mbps(self) -> float:
        if not self.success:
            return 0.0
        return calculate_mbps(self.size_bytes, self.elapsed_ms)


@dataclass(frozen=True)
class PingStats:
    """Latency summary of one ping phase."""

    avg_ms: float = 0.0
    jitter_ms: float = 0.0
    packet_loss_pct: float = 0.0
    samples: Tuple[ProbeSample, ...] = field(default_factory=tuple)

    @classmethod
    def from_samples(
        cls,
        samples: Sequence[ProbeSample],
        penalty_ms: float = PENALTY_MS,
    ) -> PingStats:
        rtts = [s.elapsed_ms for s in samples]
        if not rtts:
            return cls()
        return cls(
            avg_ms=statistics.mean(rtts),
            jitter_ms=calculate_jitter(rtts),
            packet_loss_pct=calculate_packet_loss(rtts, penalty_ms),
            samples=tuple(samples),
        )

    @property
    def rtts(self) -> List[float]:
        return [s.elapsed_ms for s in self.samples]


@dataclass(frozen=True)
class ThroughputStats:
    """Throughput summary of one download or upload phase."""

    mbps: float = 0.0
    sample_count: int = 0
    failed_count: int = 0
    samples: Tuple[ProbeSample, ...] = field(default_factory=tuple)

    @classmethod
    def from_samples(cls, samples: Sequence[ProbeSample]) -> ThroughputStats:
        speeds = [s.mbps for s in samples if s.success]
        failed = sum(1 for s in samples if not s.success)
        return cls(
            mbps=statistics.mean(speeds) if speeds else 0.0,
            sample_count=len(samples),
            failed_count=failed,
            samples=tuple(samples),
        )

    @property
    def all_failed(self) -> bool:
        return self.sample_count == self.failed_count


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_mbps(size_bytes: int, elapsed_ms: float) -> float:
    """Megabits per second for *size_bytes* moved in *elapsed_ms*."""
    if elapsed_ms <= 0 or size_bytes <= 0:
        return 0.0
    return (size_bytes * 8) / (elapsed_ms / 1000) / 1_000_000


def calculate_jitter(samples: Sequence[float]) -> float:
    """Population standard deviation of the RTT samples."""
    if len(samples) < 2:
        return 0.0
    return statistics.pstdev(samples)


def calculate_packet_loss(samples: Sequence[float], penalty_ms: float = PENALTY_MS) -> float:
    """Percentage of samples at or above the penalty threshold."""
    if not samples:
        return 0.0
    lost = sum(1 for s in samples if s >= penalty_ms)
    return lost / len(samples) * 100


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"
