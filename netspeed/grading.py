"""
Speed ratings and comparison helpers.

Provides qualitative labels for throughput and latency, a rough connection
type guess, delta comparison against the previous result, and the plain-text
share block.
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from .result import SpeedTestResult


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

_SPEED_THRESHOLDS = [
    (100.0, "Excellent", "green"),
    (50.0,  "Very Good", "blue"),
    (25.0,  "Good",      "yellow"),
    (10.0,  "Fair",      "dark_orange"),
]

_PING_THRESHOLDS = [
    (20.0,  "Excellent", "green"),
    (50.0,  "Good",      "blue"),
    (100.0, "Fair",      "yellow"),
]


def grade_speed(mbps: float) -> Tuple[str, str]:
    """Return (label, color) for a throughput figure."""
    for threshold, label, color in _SPEED_THRESHOLDS:
        if mbps >= threshold:
            return (label, color)
    return ("Poor", "red")


def rate_ping(ping_ms: float) -> Tuple[str, str]:
    """Return (label, color) for an average RTT.  Lower is better."""
    for threshold, label, color in _PING_THRESHOLDS:
        if ping_ms < threshold:
            return (label, color)
    return ("Poor", "red")


def connection_type(download_mbps: float) -> str:
    """Guess the access technology from the download speed."""
    if download_mbps > 100:
        return "ethernet"
    if download_mbps > 25:
        return "wifi"
    return "mobile"


# ---------------------------------------------------------------------------
# Delta comparison
# ---------------------------------------------------------------------------

def compare_with_previous(
    current: SpeedTestResult,
    history: Sequence[SpeedTestResult],
) -> Optional[Dict[str, float]]:
    """
    Compare *current* with the newest entry in *history* (taken before the
    run was recorded).

    Returns a dict with delta values, or None if there's nothing to compare.
    Keys: ping_delta, download_delta, upload_delta (all in their native units).
    """
    if not history:
        return None

    prev = history[0]
    return {
        "ping_delta": current.ping_ms - prev.ping_ms,
        "download_delta": current.download_mbps - prev.download_mbps,
        "upload_delta": current.upload_mbps - prev.upload_mbps,
        "prev_ping": prev.ping_ms,
        "prev_download": prev.download_mbps,
        "prev_upload": prev.upload_mbps,
    }


def format_delta(value: float, unit: str, invert: bool = False) -> str:
    """
    Format a delta value with a +/- prefix and color hint.

    *invert*: True for metrics where lower is better (ping).
    """
    if abs(value) < 0.01:
        return "[dim](same)[/dim]"

    sign = "+" if value > 0 else ""
    # For ping, negative is good; for speed, positive is good
    is_good = (value < 0) if invert else (value > 0)
    color = "green" if is_good else "red"

    return f"[{color}]{sign}{value:.1f} {unit}[/{color}]"


# ---------------------------------------------------------------------------
# Share result
# ---------------------------------------------------------------------------

def format_share_text(result: SpeedTestResult) -> str:
    """Generate a plain-text shareable result block."""
    lines = [
        "My internet speed test results:",
        f"Download: {result.download_mbps:.1f} Mbps",
        f"Upload: {result.upload_mbps:.1f} Mbps",
        f"Ping: {result.ping_ms:.0f} ms (jitter: {result.jitter_ms:.1f} ms)",
    ]
    if result.packet_loss_pct > 0:
        lines.append(f"Packet Loss: {result.packet_loss_pct:.1f}%")
    lines.append(f"Tested {result.timestamp_utc.strftime('%Y-%m-%d %H:%M UTC')} with netspeed")
    return "\n".join(lines)
