"""
Final result record and the pure function that builds it.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from .stats import PingStats, ThroughputStats


@dataclass(frozen=True)
class SpeedTestResult:
    """Outcome of one completed run.  Never mutated after creation."""

    download_mbps: float
    upload_mbps: float
    ping_ms: float
    jitter_ms: float
    packet_loss_pct: float
    test_duration_sec: float
    timestamp_utc: datetime

    # -- Serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON object for export and history files."""
        return {
            "downloadMbps": round(self.download_mbps, 2),
            "uploadMbps": round(self.upload_mbps, 2),
            "pingMs": round(self.ping_ms, 2),
            "jitterMs": round(self.jitter_ms, 2),
            "packetLossPct": round(self.packet_loss_pct, 1),
            "testDurationSec": round(self.test_duration_sec, 2),
            "timestampUTC": self.timestamp_utc.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SpeedTestResult:
        ts_raw = data.get("timestampUTC")
        try:
            ts = datetime.fromisoformat(ts_raw) if ts_raw else _epoch()
        except (TypeError, ValueError):
            ts = _epoch()
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        return cls(
            download_mbps=float(data.get("downloadMbps", 0)),
            upload_mbps=float(data.get("uploadMbps", 0)),
            ping_ms=float(data.get("pingMs", 0)),
            jitter_ms=float(data.get("jitterMs", 0)),
            packet_loss_pct=float(data.get("packetLossPct", 0)),
            test_duration_sec=float(data.get("testDurationSec", 0)),
            timestamp_utc=ts.astimezone(timezone.utc),
        )


def _epoch() -> datetime:
    return datetime.fromtimestamp(0, tz=timezone.utc)


def build_result(
    ping: PingStats,
    download: ThroughputStats,
    upload: ThroughputStats,
    started_at: datetime,
    finished_at: datetime,
) -> SpeedTestResult:
    """Combine the three phase outputs into a ``SpeedTestResult``.

    The duration is the wall-clock span of the whole run, not the sum of
    the per-sample times.
    """
    duration = (finished_at - started_at).total_seconds()
    if duration < 0:
        raise ValueError("finished_at is earlier than started_at")

    if finished_at.tzinfo is None:
        finished_at = finished_at.replace(tzinfo=timezone.utc)

    return SpeedTestResult(
        download_mbps=download.mbps,
        upload_mbps=upload.mbps,
        ping_ms=ping.avg_ms,
        jitter_ms=ping.jitter_ms,
        packet_loss_pct=ping.packet_loss_pct,
        test_duration_sec=duration,
        timestamp_utc=finished_at.astimezone(timezone.utc),
    )
